"""Remote store interface and the local CSV-backed implementation."""

import csv
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from time_ledger.core.errors import RemoteError, RemoteUnavailable
from time_ledger.core.models import Project, Task, TimeInterval
from time_ledger.core.storage import StorageManager
from time_ledger.sync.feed import ChangeEvent, ChangeType, InProcessChangeFeed, RecordKind

logger = logging.getLogger(__name__)


class RemoteStore(ABC):
    """Durable store of projects, tasks and intervals.

    Every call is a suspension point. Failures are raised as ``RemoteError``
    subclasses.
    """

    @abstractmethod
    async def list_projects(self, user_id: str) -> list[Project]:
        """Projects owned by user_id, sorted by name."""

    @abstractmethod
    async def list_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        """Tasks of the given projects, sorted by name."""

    @abstractmethod
    async def list_intervals(
        self, project_ids: Iterable[str], closed_only: bool = True
    ) -> list[TimeInterval]:
        """Intervals of the given projects, newest first."""

    @abstractmethod
    async def insert_interval(self, record: TimeInterval) -> TimeInterval:
        """Persist a new interval exactly as given."""

    @abstractmethod
    async def update_interval(
        self, interval_id: str, user_id: str, fields: dict[str, Any]
    ) -> TimeInterval:
        """Update an interval scoped to its owning user."""

    @abstractmethod
    async def delete_interval(self, interval_id: str, user_id: str) -> None:
        """Delete an interval scoped to its owning user."""

    @abstractmethod
    async def insert_project(self, record: Project) -> Project:
        """Persist a new project."""

    @abstractmethod
    async def insert_task(self, record: Task) -> Task:
        """Persist a new task."""

    @abstractmethod
    async def set_task_completed(self, task_id: str, completed: bool) -> Task:
        """Set a task's completion flag."""

    async def close(self) -> None:
        """Release any held resources."""


class LocalRemoteStore(RemoteStore):
    """RemoteStore backed by a local StorageManager.

    Every successful mutation is published to the change feed, if one is
    attached, so listening sessions resynchronize.
    """

    def __init__(
        self,
        storage: StorageManager,
        feed: Optional[InProcessChangeFeed] = None,
    ):
        """Initialize the store.

        Args:
            storage: CSV storage manager
            feed: Feed to publish mutations to (optional)
        """
        self.storage = storage
        self.feed = feed
        self.closed = False

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        if self.closed:
            raise RemoteUnavailable(f"Store is closed ({operation})")
        try:
            yield
        except RemoteError:
            raise
        except (OSError, csv.Error) as e:
            logger.error(f"{operation} failed: {e}")
            raise RemoteUnavailable(f"{operation} failed: {e}") from e
        except ValueError as e:
            logger.warning(f"{operation} rejected: {e}")
            raise RemoteError(f"{operation} rejected: {e}") from e

    async def _publish(
        self, kind: RecordKind, change: ChangeType, record_id: Optional[str]
    ) -> None:
        if self.feed is not None:
            await self.feed.publish(ChangeEvent(kind=kind, change=change, record_id=record_id))

    async def list_projects(self, user_id: str) -> list[Project]:
        with self._translate_errors("list_projects"):
            return self.storage.load_projects(user_id=user_id)

    async def list_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        with self._translate_errors("list_tasks"):
            return self.storage.load_tasks(project_ids=list(project_ids))

    async def list_intervals(
        self, project_ids: Iterable[str], closed_only: bool = True
    ) -> list[TimeInterval]:
        with self._translate_errors("list_intervals"):
            return self.storage.load_intervals(
                project_ids=list(project_ids), closed_only=closed_only
            )

    async def insert_interval(self, record: TimeInterval) -> TimeInterval:
        with self._translate_errors("insert_interval"):
            interval = self.storage.insert_interval(record)
        await self._publish(RecordKind.INTERVALS, ChangeType.INSERT, interval.id)
        return interval

    async def update_interval(
        self, interval_id: str, user_id: str, fields: dict[str, Any]
    ) -> TimeInterval:
        with self._translate_errors("update_interval"):
            interval = self.storage.update_interval(interval_id, user_id, fields)
        await self._publish(RecordKind.INTERVALS, ChangeType.UPDATE, interval_id)
        return interval

    async def delete_interval(self, interval_id: str, user_id: str) -> None:
        with self._translate_errors("delete_interval"):
            self.storage.delete_interval(interval_id, user_id)
        await self._publish(RecordKind.INTERVALS, ChangeType.DELETE, interval_id)

    async def insert_project(self, record: Project) -> Project:
        with self._translate_errors("insert_project"):
            self.storage.save_project(record)
        await self._publish(RecordKind.PROJECTS, ChangeType.INSERT, record.id)
        return record

    async def insert_task(self, record: Task) -> Task:
        with self._translate_errors("insert_task"):
            self.storage.save_task(record)
        await self._publish(RecordKind.TASKS, ChangeType.INSERT, record.id)
        return record

    async def set_task_completed(self, task_id: str, completed: bool) -> Task:
        with self._translate_errors("set_task_completed"):
            task = self.storage.set_task_completed(task_id, completed)
        await self._publish(RecordKind.TASKS, ChangeType.UPDATE, task_id)
        return task

    async def close(self) -> None:
        self.closed = True


async def fetch_records(
    remote: RemoteStore, user_id: str, closed_only: bool = True
) -> tuple[list[Project], list[Task], list[TimeInterval]]:
    """Fetch one user's projects, their tasks and their intervals.

    Issues exactly one call per record kind.
    """
    projects = await remote.list_projects(user_id)
    project_ids = [p.id for p in projects]
    tasks = await remote.list_tasks(project_ids)
    intervals = await remote.list_intervals(project_ids, closed_only=closed_only)
    return projects, tasks, intervals
