"""Tests for input validation."""

from datetime import datetime, timedelta, timezone

import pytest  # type: ignore[import-not-found]

from time_ledger.core.errors import ValidationError
from time_ledger.core.validation import (
    clean_description,
    parse_datetime_input,
    validate_entry_input,
    validate_entry_update,
    validate_name,
)


class TestParseDatetimeInput:
    """Test parse_datetime_input()."""

    def test_datetime_local_format(self) -> None:
        assert parse_datetime_input("2024-03-01T09:30") == datetime(2024, 3, 1, 9, 30)

    def test_space_separated_format(self) -> None:
        assert parse_datetime_input("2024-03-01 09:30") == datetime(2024, 3, 1, 9, 30)

    def test_iso_with_seconds(self) -> None:
        assert parse_datetime_input("2024-03-01T09:30:15") == datetime(2024, 3, 1, 9, 30, 15)

    def test_datetime_passes_through(self) -> None:
        value = datetime(2024, 3, 1, 9, 30)
        assert parse_datetime_input(value) is value

    @pytest.mark.parametrize("value", [None, "", "   "])  # type: ignore[misc]
    def test_missing(self, value: object) -> None:
        with pytest.raises(ValidationError, match="Missing start time"):
            parse_datetime_input(value, "start time")  # type: ignore[arg-type]

    def test_unparseable(self) -> None:
        with pytest.raises(ValidationError, match="Invalid end time"):
            parse_datetime_input("yesterday-ish", "end time")


class TestValidateEntryInput:
    """Test validate_entry_input()."""

    def test_valid_draft(self) -> None:
        draft = validate_entry_input(
            "P", "2024-03-01T09:00", "2024-03-01T10:00", "  Planning  ", task_id="T"
        )
        assert draft.project_id == "P"
        assert draft.task_id == "T"
        assert draft.start_time == datetime(2024, 3, 1, 9)
        assert draft.end_time == datetime(2024, 3, 1, 10)
        assert draft.description == "Planning"

    def test_requires_project(self) -> None:
        with pytest.raises(ValidationError, match="Please select a project or task"):
            validate_entry_input(None, "2024-03-01T09:00", "2024-03-01T10:00")

    def test_rejects_reversed_range(self) -> None:
        with pytest.raises(ValidationError, match="End time must not be before start time"):
            validate_entry_input("P", "2024-03-01T10:00", "2024-03-01T09:00")

    def test_allows_zero_length(self) -> None:
        draft = validate_entry_input("P", "2024-03-01T10:00", "2024-03-01T10:00")
        assert draft.start_time == draft.end_time

    def test_empty_task_becomes_none(self) -> None:
        draft = validate_entry_input("P", "2024-03-01T09:00", "2024-03-01T10:00", task_id="")
        assert draft.task_id is None


class TestValidateEntryUpdate:
    """Test validate_entry_update()."""

    def test_valid(self) -> None:
        changes = validate_entry_update("2024-03-01T09:00", "2024-03-01T09:30", "")
        assert changes.end_time == datetime(2024, 3, 1, 9, 30)
        assert changes.description is None

    def test_rejects_reversed_range(self) -> None:
        with pytest.raises(ValidationError):
            validate_entry_update("2024-03-01T10:00", "2024-03-01T09:59")

    def test_mixed_offset_and_local_inputs(self) -> None:
        """An input with a UTC offset is converted to local time before comparing."""
        start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        local_start = start.astimezone().replace(tzinfo=None)
        end = local_start + timedelta(hours=1)

        changes = validate_entry_update(start.isoformat(), end.strftime("%Y-%m-%dT%H:%M"))

        assert changes.start_time == local_start
        assert changes.start_time.tzinfo is None
        assert changes.end_time == end

    def test_offset_start_after_local_end_rejected(self) -> None:
        start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        end = start.astimezone().replace(tzinfo=None) - timedelta(hours=1)

        with pytest.raises(ValidationError, match="End time must not be before start time"):
            validate_entry_update(start, end.strftime("%Y-%m-%dT%H:%M"))


class TestNamesAndDescriptions:
    """Test validate_name() and clean_description()."""

    def test_name_is_trimmed(self) -> None:
        assert validate_name("  Website ", "project name") == "Website"

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Project name must not be empty"):
            validate_name("   ", "project name")

    def test_clean_description(self) -> None:
        assert clean_description(None) is None
        assert clean_description("   ") is None
        assert clean_description(" notes ") == "notes"
