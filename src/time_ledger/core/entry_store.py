"""Ordered in-memory collection of time entries."""

from typing import Iterable, Iterator, Optional

from time_ledger.core.models import TimeEntry


class EntryStore:
    """Client-side view of time entries, newest first.

    Removal and replacement of unknown ids are no-ops: deletions race with
    resynchronization, and surfacing missing state is the resync path's job.
    """

    def __init__(self, entries: Optional[Iterable[TimeEntry]] = None):
        self._entries: list[TimeEntry] = list(entries or [])

    def insert_front(self, entry: TimeEntry) -> None:
        """Add an entry at the head."""
        self._entries.insert(0, entry)

    def remove_by_id(self, entry_id: str) -> bool:
        """Remove the first entry with a matching id.

        Returns:
            True if an entry was removed
        """
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                del self._entries[i]
                return True
        return False

    def replace_by_id(self, entry_id: str, updated: TimeEntry) -> bool:
        """Replace an entry in place without reordering.

        Returns:
            True if an entry was replaced
        """
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                self._entries[i] = updated
                return True
        return False

    def reset(self, entries: Iterable[TimeEntry]) -> None:
        """Replace the whole collection (used by resynchronization)."""
        self._entries = list(entries)

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        """Look up an entry by id."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def snapshot(self) -> list[TimeEntry]:
        """Return a copy of the current ordered sequence."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return any(entry.id == entry_id for entry in self._entries)

    def __iter__(self) -> Iterator[TimeEntry]:
        return iter(self.snapshot())
