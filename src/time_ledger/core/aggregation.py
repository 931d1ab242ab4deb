"""Aggregation of time intervals into per-project and per-task totals."""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from time_ledger.core.intervals import sum_durations
from time_ledger.core.models import Project, ProjectView, Task, TaskView, TimeEntry, TimeInterval

UNKNOWN_PROJECT = "Unknown Project"


def aggregate(
    projects: Iterable[Project],
    tasks: Iterable[Task],
    intervals: Iterable[TimeInterval],
) -> list[ProjectView]:
    """Build the denormalized project view.

    Each project is annotated with the total of every interval referencing it,
    regardless of task. Each task is annotated with the total of intervals
    referencing both its project and itself. Intervals pointing at unknown
    projects or tasks contribute to nothing.

    Projects and tasks keep the order the caller supplied them in. The
    function is pure, so it can be re-run on every resynchronization.

    Args:
        projects: Projects, unique by id
        tasks: Tasks, each referencing a project id
        intervals: Closed time intervals

    Returns:
        List of ProjectView in caller order
    """
    tasks_by_project: dict[str, list[Task]] = defaultdict(list)
    for task in tasks:
        tasks_by_project[task.project_id].append(task)

    intervals_by_project: dict[str, list[TimeInterval]] = defaultdict(list)
    intervals_by_task: dict[tuple[str, str], list[TimeInterval]] = defaultdict(list)
    for interval in intervals:
        intervals_by_project[interval.project_id].append(interval)
        if interval.task_id is not None:
            intervals_by_task[(interval.project_id, interval.task_id)].append(interval)

    views = []
    for project in projects:
        task_views = [
            TaskView(
                task=task,
                total_time=sum_durations(intervals_by_task.get((project.id, task.id), [])),
            )
            for task in tasks_by_project.get(project.id, [])
        ]
        views.append(
            ProjectView(
                project=project,
                total_time=sum_durations(intervals_by_project.get(project.id, [])),
                tasks=task_views,
            )
        )

    return views


def display_name(project: Optional[Project], task: Optional[Task]) -> str:
    """Combine project and optional task names for display."""
    if project is None:
        return UNKNOWN_PROJECT
    if task is not None:
        return f"{project.name} - {task.name}"
    return project.name


def _recency_key(entry: TimeEntry) -> tuple[datetime, datetime]:
    return (entry.created_at, entry.start_time or datetime.min)


def build_entries(
    projects: Iterable[Project],
    tasks: Iterable[Task],
    intervals: Iterable[TimeInterval],
) -> list[TimeEntry]:
    """Decorate closed intervals with display names, newest first.

    Args:
        projects: Known projects
        tasks: Known tasks
        intervals: Time intervals; open ones are skipped

    Returns:
        List of TimeEntry ordered by creation (then start) descending
    """
    projects_by_id = {p.id: p for p in projects}
    tasks_by_id = {t.id: t for t in tasks}

    entries = [
        TimeEntry.from_interval(
            interval,
            display_name(
                projects_by_id.get(interval.project_id),
                tasks_by_id.get(interval.task_id) if interval.task_id else None,
            ),
        )
        for interval in intervals
        if interval.is_closed
    ]
    entries.sort(key=_recency_key, reverse=True)
    return entries
