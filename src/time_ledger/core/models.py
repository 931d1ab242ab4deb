"""Core data models for time tracking."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

from time_ledger.core.intervals import duration


def _new_id() -> str:
    return str(uuid4())


def _parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Project:
    """Top-level container a user tracks time against.

    Attributes:
        id: Opaque identifier
        name: Display name
        user_id: Owning user
        created_at: Creation timestamp
    """

    name: str
    user_id: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from dictionary (CSV/JSON deserialization)."""
        return cls(
            id=data["id"],
            name=data["name"],
            user_id=data["user_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class Task:
    """Optional sub-division of a project.

    Attributes:
        id: Opaque identifier
        name: Display name
        project_id: Owning project reference
        completed: Completion flag
        created_at: Creation timestamp
    """

    name: str
    project_id: str
    id: str = field(default_factory=_new_id)
    completed: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "project_id": self.project_id,
            "completed": self.completed,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create Task from dictionary (CSV/JSON deserialization)."""
        completed = data.get("completed", False)
        if isinstance(completed, str):
            completed = completed == "True"
        return cls(
            id=data["id"],
            name=data["name"],
            project_id=data["project_id"],
            completed=bool(completed),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class TimeInterval:
    """A persisted start-end record of tracked time.

    Attributes:
        id: Opaque identifier
        project_id: Owning project reference
        user_id: Owning user
        start_time: When tracking started
        end_time: When tracking ended (None only for a running timer)
        task_id: Owning task reference (optional)
        description: Free-text notes (optional)
        created_at: When this record was created
    """

    project_id: str
    user_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    task_id: Optional[str] = None
    description: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_closed(self) -> bool:
        """Check whether both endpoints are present."""
        return self.end_time is not None

    @property
    def duration(self) -> timedelta:
        """Clamped duration of this interval."""
        return duration(self.start_time, self.end_time)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_id": self.task_id or "",
            "user_id": self.user_id,
            "start_time": self.start_time.isoformat() if self.start_time else "",
            "end_time": self.end_time.isoformat() if self.end_time else "",
            "duration_seconds": int(self.duration.total_seconds()),
            "description": self.description or "",
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeInterval":
        """Create TimeInterval from dictionary (CSV/JSON deserialization).

        Unparseable timestamps are read as missing so the record still
        loads and simply contributes zero to any total.
        """
        try:
            start_time = datetime.fromisoformat(data["start_time"])
        except (TypeError, ValueError):
            start_time = None  # type: ignore[assignment]
        try:
            end_time = _parse_optional_datetime(data.get("end_time"))
        except ValueError:
            end_time = None

        return cls(
            id=data["id"],
            project_id=data["project_id"],
            task_id=data["task_id"] if data.get("task_id") else None,
            user_id=data["user_id"],
            start_time=start_time,
            end_time=end_time,
            description=data["description"] if data.get("description") else None,
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class TimeEntry:
    """Entry Store record: a time interval decorated with a display name."""

    id: str
    project_id: str
    user_id: str
    display_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    task_id: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def duration(self) -> timedelta:
        """Clamped duration, recomputed from the current endpoints."""
        return duration(self.start_time, self.end_time)

    @classmethod
    def from_interval(cls, interval: TimeInterval, display_name: str) -> "TimeEntry":
        """Decorate a time interval for display."""
        return cls(
            id=interval.id,
            project_id=interval.project_id,
            user_id=interval.user_id,
            display_name=display_name,
            start_time=interval.start_time,
            end_time=interval.end_time,
            task_id=interval.task_id,
            description=interval.description,
            created_at=interval.created_at,
        )

    def to_interval(self) -> TimeInterval:
        """Strip the display decoration."""
        return TimeInterval(
            id=self.id,
            project_id=self.project_id,
            user_id=self.user_id,
            start_time=self.start_time,
            end_time=self.end_time,
            task_id=self.task_id,
            description=self.description,
            created_at=self.created_at,
        )

    def with_changes(self, **changes: Any) -> "TimeEntry":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "display_name": self.display_name,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": int(self.duration.total_seconds()),
            "description": self.description,
        }


@dataclass
class TaskView:
    """A task annotated with its total tracked time."""

    task: Task
    total_time: timedelta = timedelta(0)

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def name(self) -> str:
        return self.task.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = self.task.to_dict()
        data["total_seconds"] = self.total_time.total_seconds()
        return data


@dataclass
class ProjectView:
    """A project annotated with its total tracked time and its tasks."""

    project: Project
    total_time: timedelta = timedelta(0)
    tasks: list[TaskView] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.project.id

    @property
    def name(self) -> str:
        return self.project.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = self.project.to_dict()
        data["total_seconds"] = self.total_time.total_seconds()
        data["tasks"] = [t.to_dict() for t in self.tasks]
        return data
