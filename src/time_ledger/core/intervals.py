"""Duration arithmetic over start/end pairs.

Durations are clamped: a missing endpoint or an end before the start yields
zero, so malformed or partially-written intervals never corrupt a total.
"""

from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

ZERO = timedelta(0)


def duration(start: Optional[datetime], end: Optional[datetime]) -> timedelta:
    """Calculate the non-negative duration between two instants.

    Args:
        start: Start instant (may be None)
        end: End instant (may be None)

    Returns:
        end - start, or zero if either endpoint is missing or end < start
    """
    if start is None or end is None:
        return ZERO
    delta = end - start
    if delta < ZERO:
        return ZERO
    return delta


def sum_durations(intervals: Iterable[Any]) -> timedelta:
    """Sum clamped durations of anything exposing start_time/end_time.

    Args:
        intervals: Interval-shaped records

    Returns:
        Total duration (zero for an empty collection)
    """
    total = ZERO
    for interval in intervals:
        total += duration(interval.start_time, interval.end_time)
    return total


def format_duration(value: timedelta) -> str:
    """Format a duration as e.g. '1h 2m 3s (1.03h)'."""
    total_seconds = max(0, int(value.total_seconds()))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    decimal_hours = max(0.0, value.total_seconds()) / 3600

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if seconds > 0:
        parts.append(f"{seconds}s")

    return f"{' '.join(parts) or '0s'} ({decimal_hours:.2f}h)"


def format_clock(value: timedelta) -> str:
    """Format a duration as a zero-padded HH:MM:SS clock."""
    total_seconds = max(0, int(value.total_seconds()))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
