"""Input validation at the user-action boundary.

Everything here runs before a mutation enters the optimistic protocol, so a
rejected input never touches local or remote state.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from time_ledger.core.errors import ValidationError

# datetime-local inputs produce minute precision without seconds
_INPUT_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M")


@dataclass
class EntryDraft:
    """Validated fields for a create or update."""

    project_id: str
    start_time: datetime
    end_time: datetime
    task_id: Optional[str] = None
    description: Optional[str] = None


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_datetime_input(value: Union[str, datetime, None], label: str = "time") -> datetime:
    """Parse a date/time from user input.

    Args:
        value: ISO-8601 string, 'YYYY-MM-DDTHH:MM' string, or datetime
        label: Field name used in the error message

    Returns:
        Parsed datetime, in naive local time. Values carrying a UTC offset
        are converted so aware and naive inputs compare.

    Raises:
        ValidationError: If the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return _local_naive(value)
    if value is None or not str(value).strip():
        raise ValidationError(f"Missing {label}")

    text = str(value).strip()
    try:
        return _local_naive(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError(f"Invalid {label}: {text!r}")


def clean_description(description: Optional[str]) -> Optional[str]:
    """Trim a description; blank becomes None."""
    if description is None:
        return None
    return description.strip() or None


def validate_name(name: Optional[str], what: str = "name") -> str:
    """Ensure a project or task name is not blank."""
    if name is None or not name.strip():
        raise ValidationError(f"{what.capitalize()} must not be empty")
    return name.strip()


def validate_entry_input(
    project_id: Optional[str],
    start: Union[str, datetime, None],
    end: Union[str, datetime, None],
    description: Optional[str] = None,
    task_id: Optional[str] = None,
) -> EntryDraft:
    """Validate a time entry before it is created or updated.

    Raises:
        ValidationError: If no project is selected, a date is unparseable,
            or the range ends before it starts
    """
    if not project_id:
        raise ValidationError("Please select a project or task")

    changes = validate_entry_update(start, end, description)
    return EntryDraft(
        project_id=project_id,
        start_time=changes.start_time,
        end_time=changes.end_time,
        task_id=task_id or None,
        description=changes.description,
    )


@dataclass
class EntryChanges:
    """Validated fields for editing an existing entry."""

    start_time: datetime
    end_time: datetime
    description: Optional[str] = None


def validate_entry_update(
    start: Union[str, datetime, None],
    end: Union[str, datetime, None],
    description: Optional[str] = None,
) -> EntryChanges:
    """Validate an edit of an existing entry.

    Raises:
        ValidationError: If a date is unparseable or the range is reversed
    """
    start_time = parse_datetime_input(start, "start time")
    end_time = parse_datetime_input(end, "end time")
    if end_time < start_time:
        raise ValidationError("End time must not be before start time")
    return EntryChanges(
        start_time=start_time,
        end_time=end_time,
        description=clean_description(description),
    )
