"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]

from time_ledger.core.intervals import format_duration
from time_ledger.core.models import ProjectView, TaskView, TimeEntry

# ============================================================================
# Response Models
# ============================================================================


class TaskResponse(BaseModel):
    """A task with its total tracked time."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    project_id: str
    completed: bool = False
    total_seconds: float = 0
    total_human: str = ""

    @classmethod
    def from_view(cls, view: TaskView) -> "TaskResponse":
        return cls(
            id=view.task.id,
            name=view.task.name,
            project_id=view.task.project_id,
            completed=view.task.completed,
            total_seconds=view.total_time.total_seconds(),
            total_human=format_duration(view.total_time),
        )


class ProjectResponse(BaseModel):
    """A project with its total tracked time and tasks."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    total_seconds: float = 0
    total_human: str = ""
    tasks: list[TaskResponse] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: ProjectView) -> "ProjectResponse":
        return cls(
            id=view.project.id,
            name=view.project.name,
            total_seconds=view.total_time.total_seconds(),
            total_human=format_duration(view.total_time),
            tasks=[TaskResponse.from_view(t) for t in view.tasks],
        )


class EntryResponse(BaseModel):
    """A time entry as shown in the history."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    task_id: Optional[str] = None
    display_name: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_seconds: float = 0
    description: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: TimeEntry) -> "EntryResponse":
        return cls(
            id=entry.id,
            project_id=entry.project_id,
            task_id=entry.task_id,
            display_name=entry.display_name,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration_seconds=entry.duration.total_seconds(),
            description=entry.description,
        )


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


# ============================================================================
# Request Models
# ============================================================================


class CreateProjectRequest(BaseModel):
    name: str = Field(..., description="Project name")


class CreateTaskRequest(BaseModel):
    name: str = Field(..., description="Task name")


class ToggleTaskRequest(BaseModel):
    completed: bool


class CreateEntryRequest(BaseModel):
    """Manual time entry; dates are ISO-8601 or YYYY-MM-DDTHH:MM."""

    project_id: Optional[str] = None
    task_id: Optional[str] = None
    start_time: str
    end_time: str
    description: Optional[str] = None


class UpdateEntryRequest(BaseModel):
    start_time: str
    end_time: str
    description: Optional[str] = None
