"""Time Ledger - personal time tracking with optimistic sync."""

__version__ = "0.1.0"
