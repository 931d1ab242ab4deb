"""Tests for duration arithmetic and formatting."""

from datetime import datetime, timedelta
from typing import Optional

from support import at

from time_ledger.core.intervals import (
    ZERO,
    duration,
    format_clock,
    format_duration,
    sum_durations,
)
from time_ledger.core.models import TimeInterval


def interval(start: datetime, end: Optional[datetime] = None) -> TimeInterval:
    return TimeInterval(project_id="p", user_id="u", start_time=start, end_time=end)


class TestDuration:
    """Test duration()."""

    def test_positive_range(self) -> None:
        assert duration(at(9), at(10, 30)) == timedelta(hours=1, minutes=30)

    def test_equal_endpoints_is_zero(self) -> None:
        assert duration(at(9), at(9)) == ZERO

    def test_reversed_range_clamps_to_zero(self) -> None:
        assert duration(at(10), at(9)) == ZERO

    def test_missing_endpoints_are_zero(self) -> None:
        assert duration(None, at(9)) == ZERO
        assert duration(at(9), None) == ZERO
        assert duration(None, None) == ZERO

    def test_millisecond_precision(self) -> None:
        start = datetime(2024, 3, 1, 9, 0, 0)
        end = datetime(2024, 3, 1, 9, 0, 0, 250000)
        assert duration(start, end) == timedelta(milliseconds=250)


class TestSumDurations:
    """Test sum_durations()."""

    def test_empty_is_zero(self) -> None:
        assert sum_durations([]) == ZERO

    def test_sums_and_skips_bad_records(self) -> None:
        records = [
            interval(at(9), at(10)),
            interval(at(11), at(11, 30)),
            interval(at(12), at(11)),  # reversed
            interval(at(13)),  # still running
        ]
        assert sum_durations(records) == timedelta(hours=1, minutes=30)

    def test_order_independent(self) -> None:
        records = [interval(at(9), at(10)), interval(at(14), at(14, 20))]
        assert sum_durations(records) == sum_durations(list(reversed(records)))


class TestFormatting:
    """Test human-readable duration formats."""

    def test_format_duration(self) -> None:
        assert format_duration(timedelta(hours=1, minutes=2, seconds=3)) == "1h 2m 3s (1.03h)"

    def test_format_duration_zero(self) -> None:
        assert format_duration(ZERO) == "0s (0.00h)"

    def test_format_duration_skips_zero_parts(self) -> None:
        assert format_duration(timedelta(hours=2)) == "2h (2.00h)"
        assert format_duration(timedelta(minutes=45)) == "45m (0.75h)"

    def test_format_clock(self) -> None:
        assert format_clock(timedelta(hours=1, minutes=5, seconds=9)) == "01:05:09"
        assert format_clock(timedelta(hours=27)) == "27:00:00"

    def test_negative_values_render_as_zero(self) -> None:
        assert format_clock(timedelta(seconds=-5)) == "00:00:00"
        assert format_duration(timedelta(seconds=-5)) == "0s (0.00h)"
