"""Core functionality for time tracking."""

from time_ledger.core.aggregation import aggregate
from time_ledger.core.entry_store import EntryStore
from time_ledger.core.intervals import duration, sum_durations
from time_ledger.core.models import Project, ProjectView, Task, TaskView, TimeEntry, TimeInterval

__all__ = [
    "EntryStore",
    "Project",
    "ProjectView",
    "Task",
    "TaskView",
    "TimeEntry",
    "TimeInterval",
    "aggregate",
    "duration",
    "sum_durations",
]
