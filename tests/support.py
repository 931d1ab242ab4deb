"""Test doubles and helpers shared across test modules."""

from datetime import datetime
from typing import Any, Iterable, Optional

from time_ledger.core.errors import AccessDenied, NotFound
from time_ledger.core.models import Project, Task, TimeInterval
from time_ledger.sync.remote import RemoteStore


def at(hour: int, minute: int = 0, second: int = 0, day: int = 1) -> datetime:
    """Fixed instant on 2024-03-<day> for readable fixtures."""
    return datetime(2024, 3, day, hour, minute, second)


class FakeRemoteStore(RemoteStore):
    """In-memory remote store that counts calls and can be made to fail.

    Set ``fail_next[<method name>]`` to an exception to raise it once from
    that method, or ``fail_always`` to raise it from every call. ``gate`` maps
    method names to asyncio.Event objects the call waits on before running.
    """

    def __init__(
        self,
        projects: Optional[Iterable[Project]] = None,
        tasks: Optional[Iterable[Task]] = None,
        intervals: Optional[Iterable[TimeInterval]] = None,
    ):
        self.projects: list[Project] = list(projects or [])
        self.tasks: list[Task] = list(tasks or [])
        self.intervals: list[TimeInterval] = list(intervals or [])
        self.calls: dict[str, int] = {}
        self.fail_next: dict[str, Exception] = {}
        self.fail_always: dict[str, Exception] = {}
        self.gate: Any = None

    async def _enter(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        if self.gate is not None and name in self.gate:
            await self.gate[name].wait()
        if name in self.fail_always:
            raise self.fail_always[name]
        if name in self.fail_next:
            raise self.fail_next.pop(name)

    async def list_projects(self, user_id: str) -> list[Project]:
        await self._enter("list_projects")
        return [p for p in self.projects if p.user_id == user_id]

    async def list_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        await self._enter("list_tasks")
        wanted = set(project_ids)
        return [t for t in self.tasks if t.project_id in wanted]

    async def list_intervals(
        self, project_ids: Iterable[str], closed_only: bool = True
    ) -> list[TimeInterval]:
        await self._enter("list_intervals")
        wanted = set(project_ids)
        found = [i for i in self.intervals if i.project_id in wanted]
        if closed_only:
            found = [i for i in found if i.end_time is not None]
        return sorted(found, key=lambda i: i.created_at, reverse=True)

    async def insert_interval(self, record: TimeInterval) -> TimeInterval:
        await self._enter("insert_interval")
        self.intervals.append(record)
        return record

    async def update_interval(
        self, interval_id: str, user_id: str, fields: dict[str, Any]
    ) -> TimeInterval:
        await self._enter("update_interval")
        for interval in self.intervals:
            if interval.id == interval_id and interval.user_id == user_id:
                for key, value in fields.items():
                    setattr(interval, key, value)
                return interval
        raise AccessDenied("Time entry not found or access denied", interval_id)

    async def delete_interval(self, interval_id: str, user_id: str) -> None:
        await self._enter("delete_interval")
        for interval in list(self.intervals):
            if interval.id == interval_id and interval.user_id == user_id:
                self.intervals.remove(interval)
                return
        raise AccessDenied("Time entry not found or access denied", interval_id)

    async def insert_project(self, record: Project) -> Project:
        await self._enter("insert_project")
        self.projects.append(record)
        return record

    async def insert_task(self, record: Task) -> Task:
        await self._enter("insert_task")
        self.tasks.append(record)
        return record

    async def set_task_completed(self, task_id: str, completed: bool) -> Task:
        await self._enter("set_task_completed")
        for task in self.tasks:
            if task.id == task_id:
                task.completed = completed
                return task
        raise NotFound(f"Task not found: {task_id}", task_id)
