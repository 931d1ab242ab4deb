"""Time entry endpoints.

Every mutation is scoped to the authenticated user: an entry owned by
someone else is reported as access denied.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_remote
from time_ledger.api.endpoints.projects import get_owned_project
from time_ledger.api.models import CreateEntryRequest, EntryResponse, UpdateEntryRequest
from time_ledger.core.aggregation import build_entries, display_name
from time_ledger.core.models import TimeEntry, TimeInterval
from time_ledger.core.validation import validate_entry_input, validate_entry_update
from time_ledger.sync.remote import RemoteStore, fetch_records

router = APIRouter()


async def _to_response(remote: RemoteStore, user_id: str, interval: TimeInterval) -> EntryResponse:
    projects, tasks, _ = await fetch_records(remote, user_id, closed_only=True)
    project = next((p for p in projects if p.id == interval.project_id), None)
    task = next((t for t in tasks if t.id == interval.task_id), None)
    entry = TimeEntry.from_interval(interval, display_name(project, task))
    return EntryResponse.from_entry(entry)


@router.get("/", response_model=list[EntryResponse])
async def list_entries(
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of entries"),
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> list[EntryResponse]:
    """List completed time entries, newest first."""
    projects, tasks, intervals = await fetch_records(remote, user_id)
    entries = build_entries(projects, tasks, intervals)
    if limit:
        entries = entries[:limit]
    return [EntryResponse.from_entry(e) for e in entries]


@router.post("/", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: CreateEntryRequest,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> EntryResponse:
    """Create a manual time entry.

    Example:
        >>> POST /api/v1/entries
        {
            "project_id": "...",
            "start_time": "2024-03-01T09:00",
            "end_time": "2024-03-01T10:30",
            "description": "Planning"
        }
    """
    draft = validate_entry_input(
        request.project_id,
        request.start_time,
        request.end_time,
        request.description,
        task_id=request.task_id,
    )
    await get_owned_project(remote, user_id, draft.project_id)

    interval = await remote.insert_interval(
        TimeInterval(
            project_id=draft.project_id,
            user_id=user_id,
            task_id=draft.task_id,
            start_time=draft.start_time,
            end_time=draft.end_time,
            description=draft.description,
        )
    )
    return await _to_response(remote, user_id, interval)


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(
    entry_id: str,
    request: UpdateEntryRequest,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> EntryResponse:
    """Change the time range and description of an entry."""
    changes = validate_entry_update(request.start_time, request.end_time, request.description)
    interval = await remote.update_interval(
        entry_id,
        user_id,
        {
            "start_time": changes.start_time,
            "end_time": changes.end_time,
            "description": changes.description,
        },
    )
    return await _to_response(remote, user_id, interval)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    remote: RemoteStore = Depends(get_remote),
    user_id: str = Depends(get_current_user),
) -> Response:
    """Delete an entry."""
    await remote.delete_interval(entry_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
