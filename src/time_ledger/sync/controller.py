"""Optimistic mutation controller for time entries.

Each mutation runs in three phases:

1. Local apply: the entry store is changed immediately and the new snapshot
   published for rendering.
2. Remote commit: the matching command is sent to the remote store, scoped to
   the session's user.
3. Reconciliation: on success nothing else happens, because the local apply
   computed exactly what was sent. On failure the session is fully
   resynchronized, and only then is the failure returned, so the caller shows
   the error next to server-confirmed data and never a stale optimistic view.

State per mutation::

    IDLE -> APPLIED -> CONFIRMED
                    -> RECONCILING -> IDLE

Nothing is retried automatically.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

from time_ledger.core.errors import RemoteError, RemoteUnavailable
from time_ledger.core.models import TimeEntry, TimeInterval
from time_ledger.core.validation import EntryChanges, EntryDraft
from time_ledger.sync.session import SyncSession

logger = logging.getLogger(__name__)


class MutationState(str, Enum):
    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    RECONCILING = "reconciling"


@dataclass
class MutationResult:
    """Outcome of a create, update or delete.

    Attributes:
        ok: Whether the remote commit succeeded
        action: 'create', 'update' or 'delete'
        entry: Confirmed entry on success; the attempted entry on failure
        error: Remote error on failure
    """

    ok: bool
    action: str
    entry: Optional[TimeEntry] = None
    error: Optional[RemoteError] = None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str:
        if self.ok:
            return f"{self.action.capitalize()} succeeded"
        return f"Failed to {self.action} time entry: {self.error}"

    @classmethod
    def success(cls, action: str, entry: Optional[TimeEntry]) -> "MutationResult":
        return cls(ok=True, action=action, entry=entry)

    @classmethod
    def failure(
        cls, action: str, error: RemoteError, entry: Optional[TimeEntry] = None
    ) -> "MutationResult":
        return cls(ok=False, action=action, entry=entry, error=error)


class MutationController:
    """Apply time entry mutations optimistically and reconcile with the remote."""

    def __init__(self, session: SyncSession):
        """Initialize controller.

        Args:
            session: Session whose entry store the controller mutates
        """
        self.session = session
        self.state = MutationState.IDLE
        self.last_result: Optional[MutationResult] = None

    @property
    def remote(self) -> Any:
        return self.session.remote

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def _set_state(self, state: MutationState, action: str, entry_id: Optional[str]) -> None:
        self.state = state
        logger.debug(f"{action} {entry_id}: {state.value}")

    async def create_entry(self, draft: EntryDraft) -> MutationResult:
        """Create a time entry from a validated draft.

        The id is generated here so the optimistic entry and the inserted
        record are the same row.
        """
        entry = TimeEntry(
            id=str(uuid4()),
            project_id=draft.project_id,
            user_id=self.user_id,
            display_name=self.session.display_name_for(draft.project_id, draft.task_id),
            start_time=draft.start_time,
            end_time=draft.end_time,
            task_id=draft.task_id,
            description=draft.description,
            created_at=datetime.now(),
        )
        record = entry.to_interval()

        before = self._apply("create", entry.id, lambda store: store.insert_front(entry))
        return await self._commit(
            "create", entry, lambda: self.remote.insert_interval(record), before
        )

    async def update_entry(self, entry_id: str, changes: EntryChanges) -> MutationResult:
        """Reset an entry's start, end and description."""
        fields = {
            "start_time": changes.start_time,
            "end_time": changes.end_time,
            "description": changes.description,
        }
        current = self.session.entries.get(entry_id)
        updated = current.with_changes(**fields) if current is not None else None

        def splice(store: Any) -> None:
            if updated is not None:
                store.replace_by_id(entry_id, updated)

        before = self._apply("update", entry_id, splice)
        return await self._commit(
            "update",
            updated,
            lambda: self.remote.update_interval(entry_id, self.user_id, fields),
            before,
            entry_id=entry_id,
        )

    async def delete_entry(self, entry_id: str) -> MutationResult:
        """Delete an entry."""
        removed = self.session.entries.get(entry_id)
        before = self._apply("delete", entry_id, lambda store: store.remove_by_id(entry_id))
        return await self._commit(
            "delete",
            removed,
            lambda: self.remote.delete_interval(entry_id, self.user_id),
            before,
            entry_id=entry_id,
        )

    def _apply(
        self, action: str, entry_id: str, change: Callable[[Any], Any]
    ) -> list[TimeEntry]:
        """Run the local apply and publish it. Returns the pre-apply snapshot."""
        store = self.session.entries
        before = store.snapshot()
        change(store)
        self._set_state(MutationState.APPLIED, action, entry_id)
        self.session.notify()
        return before

    async def _commit(
        self,
        action: str,
        entry: Optional[TimeEntry],
        command: Callable[[], Awaitable[Any]],
        before: list[TimeEntry],
        entry_id: Optional[str] = None,
    ) -> MutationResult:
        entry_id = entry_id or (entry.id if entry is not None else None)
        try:
            confirmed = await command()
        except RemoteError as e:
            result = await self._reconcile(action, entry, entry_id, e, before)
        except Exception as e:
            # Failures outside the store's error types count as unavailable
            logger.exception(f"Unexpected error during {action} of time entry {entry_id}")
            error = RemoteUnavailable(str(e) or type(e).__name__, entry_id)
            error.__cause__ = e
            result = await self._reconcile(action, entry, entry_id, error, before)
        else:
            if isinstance(confirmed, TimeInterval):
                entry = TimeEntry.from_interval(
                    confirmed,
                    self.session.display_name_for(confirmed.project_id, confirmed.task_id),
                )
            self._set_state(MutationState.CONFIRMED, action, entry_id)
            logger.info(f"{action.capitalize()} of time entry {entry_id} confirmed")
            result = MutationResult.success(action, entry)

        self.last_result = result
        return result

    async def _reconcile(
        self,
        action: str,
        entry: Optional[TimeEntry],
        entry_id: Optional[str],
        error: RemoteError,
        before: list[TimeEntry],
    ) -> MutationResult:
        self._set_state(MutationState.RECONCILING, action, entry_id)
        logger.warning(
            f"{action.capitalize()} of time entry {entry_id} failed ({error.kind}): "
            f"{error}; resynchronizing"
        )
        try:
            await self.session.resynchronize()
        except Exception as sync_error:
            # Cannot read the truth either: fall back to the last state we had
            # before the optimistic apply rather than keep the unconfirmed one
            logger.error(f"Resynchronization after failed {action} also failed: {sync_error}")
            self.session.entries.reset(before)
            self.session.stale = True
            self.session.notify()

        self._set_state(MutationState.IDLE, action, entry_id)
        return MutationResult.failure(action, error, entry)
