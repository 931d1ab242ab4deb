"""Rendering of aggregated time data."""

from time_ledger.analysis.reports import ReportGenerator

__all__ = ["ReportGenerator"]
