"""Project endpoints.

Aggregated project totals for the authenticated user, plus project and task
creation and task completion.
"""

from fastapi import APIRouter, Depends, status  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_remote
from time_ledger.api.models import (
    CreateProjectRequest,
    CreateTaskRequest,
    ProjectResponse,
    TaskResponse,
    ToggleTaskRequest,
)
from time_ledger.core.aggregation import aggregate
from time_ledger.core.errors import NotFound
from time_ledger.core.models import Project, Task, TaskView
from time_ledger.core.validation import validate_name
from time_ledger.sync.remote import RemoteStore, fetch_records

router = APIRouter()


async def get_owned_project(remote: RemoteStore, user_id: str, project_id: str) -> Project:
    for project in await remote.list_projects(user_id):
        if project.id == project_id:
            return project
    raise NotFound(f"Project not found: {project_id}", record_id=project_id)


async def get_owned_task(remote: RemoteStore, user_id: str, task_id: str) -> Task:
    projects = await remote.list_projects(user_id)
    for task in await remote.list_tasks([p.id for p in projects]):
        if task.id == task_id:
            return task
    raise NotFound(f"Task not found: {task_id}", record_id=task_id)


@router.get("/", response_model=list[ProjectResponse])
async def list_projects(
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> list[ProjectResponse]:
    """List projects with their total time and per-task totals.

    Example:
        >>> GET /api/v1/projects
        [
            {
                "id": "...",
                "name": "Website",
                "total_seconds": 5400.0,
                "total_human": "1h 30m 0s (1.50h)",
                "tasks": [...]
            }
        ]
    """
    projects, tasks, intervals = await fetch_records(remote, user_id)
    return [ProjectResponse.from_view(v) for v in aggregate(projects, tasks, intervals)]


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> ProjectResponse:
    """Create a project owned by the authenticated user."""
    project = await remote.insert_project(
        Project(name=validate_name(request.name, "project name"), user_id=user_id)
    )
    return ProjectResponse(id=project.id, name=project.name, total_human="0s (0.00h)")


@router.post(
    "/{project_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    project_id: str,
    request: CreateTaskRequest,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> TaskResponse:
    """Add a task to one of the user's projects."""
    name = validate_name(request.name, "task name")
    await get_owned_project(remote, user_id, project_id)
    task = await remote.insert_task(Task(name=name, project_id=project_id))
    return TaskResponse.from_view(TaskView(task=task))


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def set_task_completed(
    task_id: str,
    request: ToggleTaskRequest,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> TaskResponse:
    """Mark a task completed or not completed."""
    await get_owned_task(remote, user_id, task_id)
    task = await remote.set_task_completed(task_id, request.completed)
    return TaskResponse.from_view(TaskView(task=task))
