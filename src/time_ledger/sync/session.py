"""Sync session: the consuming view that owns the entry store."""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from time_ledger.core.aggregation import aggregate, build_entries, display_name
from time_ledger.core.entry_store import EntryStore
from time_ledger.core.errors import RemoteError
from time_ledger.core.models import Project, ProjectView, Task, TimeEntry
from time_ledger.sync.feed import ChangeFeed
from time_ledger.sync.listener import ChangeFeedListener
from time_ledger.sync.remote import RemoteStore, fetch_records

logger = logging.getLogger(__name__)


class SyncSession:
    """Client-side view of one user's projects and time entries.

    The session owns the entry store and the aggregated project views, and
    the change feed subscriptions that keep them fresh. All of it is released
    together by ``close()``; a resynchronization still in flight at that point
    has its result discarded.

    Overlapping resynchronizations are not versioned: whichever applies its
    result last wins.
    """

    def __init__(
        self,
        remote: RemoteStore,
        user_id: str,
        feed: Optional[ChangeFeed] = None,
        on_update: Optional[Callable[[list[TimeEntry]], Any]] = None,
    ):
        """Initialize session.

        Args:
            remote: Remote store, injected and owned by the caller
            user_id: Authenticated user identity
            feed: Change feed to listen on while open (optional)
            on_update: Called with a fresh snapshot whenever entries change
        """
        self.remote = remote
        self.user_id = user_id
        self.feed = feed
        self.on_update = on_update

        self.entries = EntryStore()
        self.projects: list[ProjectView] = []
        self._projects_by_id: dict[str, Project] = {}
        self._tasks_by_id: dict[str, Task] = {}

        self.listener: Optional[ChangeFeedListener] = None
        self.closed = False
        self.stale = False
        self.sync_count = 0
        self.last_synced_at: Optional[datetime] = None

    async def open(self) -> "SyncSession":
        """Start listening for changes and load the initial state."""
        if self.closed:
            raise RuntimeError("Session is closed")
        if self.feed is not None and self.listener is None:
            self.listener = ChangeFeedListener(self.feed, self._resync_on_change)
            self.listener.start()
        await self.resynchronize()
        return self

    async def close(self) -> None:
        """Tear down subscriptions and discard any in-flight result."""
        if self.listener is not None:
            self.listener.stop()
            self.listener = None
        self.closed = True
        logger.debug(f"Session for {self.user_id} closed")

    async def __aenter__(self) -> "SyncSession":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def resynchronize(self) -> bool:
        """Re-fetch everything and rebuild the project views and entry store.

        Performs exactly one fetch per record kind and one aggregation.

        Returns:
            True if the result was applied, False if it was discarded because
            the session closed while fetching

        Raises:
            RemoteError: If any fetch fails
        """
        projects, tasks, intervals = await fetch_records(self.remote, self.user_id)

        if self.closed:
            logger.debug("Discarding resynchronization result for closed session")
            return False

        self.projects = aggregate(projects, tasks, intervals)
        self._projects_by_id = {p.id: p for p in projects}
        self._tasks_by_id = {t.id: t for t in tasks}
        self.entries.reset(build_entries(projects, tasks, intervals))

        self.stale = False
        self.sync_count += 1
        self.last_synced_at = datetime.now()
        logger.debug(
            f"Resynchronized {len(projects)} projects, {len(tasks)} tasks, "
            f"{len(self.entries)} entries"
        )
        self.notify()
        return True

    async def _resync_on_change(self) -> None:
        # A feed-triggered failure must not surface in whoever published the event
        try:
            await self.resynchronize()
        except RemoteError as e:
            self.stale = True
            logger.warning(f"Resynchronization after change failed: {e}")

    def notify(self) -> None:
        """Publish the current snapshot for rendering."""
        if self.on_update is not None and not self.closed:
            self.on_update(self.entries.snapshot())

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects_by_id.get(project_id)

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        if task_id is None:
            return None
        return self._tasks_by_id.get(task_id)

    def display_name_for(self, project_id: str, task_id: Optional[str]) -> str:
        """Display name from the last known projects and tasks."""
        return display_name(self.get_project(project_id), self.get_task(task_id))

    def project_view(self, project_id: str) -> Optional[ProjectView]:
        for view in self.projects:
            if view.id == project_id:
                return view
        return None
