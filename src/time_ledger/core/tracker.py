"""Running timer.

An open interval never reaches the remote store: while the timer runs it is
transient client state, persisted locally so it survives between CLI
invocations. Stopping the timer turns it into a regular create mutation.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from time_ledger.core.intervals import duration
from time_ledger.core.selection import RecentSelections, Selection
from time_ledger.core.validation import clean_description, validate_entry_input
from time_ledger.sync.controller import MutationController, MutationResult

logger = logging.getLogger(__name__)


@dataclass
class TimerState:
    """A timer that has been started but not yet stopped."""

    selection: Selection
    started_at: datetime
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "selection": self.selection.to_dict(),
            "started_at": self.started_at.isoformat(),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerState":
        return cls(
            selection=Selection.from_dict(data["selection"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            description=data.get("description"),
        )


class TimerStateStore:
    """Persists the running timer and recent selections as JSON."""

    def __init__(self, state_file: Optional[Path] = None):
        """Initialize state store.

        Args:
            state_file: Path to state file (default: ~/.time-ledger/state/timer.json)
        """
        if state_file is None:
            state_file = Path.home() / ".time-ledger" / "state" / "timer.json"
        state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file = state_file

    def _read(self) -> dict[str, Any]:
        if not self.state_file.exists():
            return {}
        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data: dict[str, Any] = json.load(f)
            return data
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load timer state: {e}")
            return {}

    def _write(self, data: dict[str, Any]) -> None:
        # Atomic write: write to temp file, then rename
        temp_file = self.state_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        temp_file.replace(self.state_file)
        logger.debug("Timer state saved")

    def load(self) -> Optional[TimerState]:
        """Load the running timer, if any."""
        timer = self._read().get("timer")
        if not timer:
            return None
        try:
            return TimerState.from_dict(timer)
        except (KeyError, ValueError) as e:
            logger.error(f"Ignoring corrupt timer state: {e}")
            return None

    def save(self, state: Optional[TimerState]) -> None:
        """Persist the running timer (None clears it)."""
        data = self._read()
        data["timer"] = state.to_dict() if state is not None else None
        self._write(data)

    def load_recent(self, limit: int = 5) -> RecentSelections:
        items = []
        for raw in self._read().get("recent", []):
            try:
                items.append(Selection.from_dict(raw))
            except KeyError:
                continue
        return RecentSelections(limit=limit, items=items)

    def save_recent(self, recent: RecentSelections) -> None:
        data = self._read()
        data["recent"] = [s.to_dict() for s in recent.items()]
        self._write(data)


class TimeTracker:
    """Start and stop a timer against a project or task."""

    def __init__(
        self,
        controller: MutationController,
        state_store: TimerStateStore,
        recent_limit: int = 5,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize time tracker.

        Args:
            controller: Controller used to save stopped timers
            state_store: Where the running timer is kept
            recent_limit: How many recent selections to remember
            clock: Source of the current time
        """
        self.controller = controller
        self.state_store = state_store
        self.recent_limit = recent_limit
        self.clock = clock

    def start(self, selection: Selection, description: Optional[str] = None) -> TimerState:
        """Start the timer.

        Raises:
            ValueError: If a timer is already running
        """
        current = self.state_store.load()
        if current is not None:
            raise ValueError(
                f"Timer already running: {current.selection.label}. Stop it first."
            )

        state = TimerState(
            selection=selection,
            started_at=self.clock(),
            description=clean_description(description),
        )
        self.state_store.save(state)

        recent = self.state_store.load_recent(self.recent_limit)
        recent.add(selection)
        self.state_store.save_recent(recent)

        logger.info(f"Timer started for {selection.label}")
        return state

    def status(self) -> Optional[TimerState]:
        """Get the running timer, if any."""
        return self.state_store.load()

    def elapsed(self) -> timedelta:
        """Time since the timer started (zero when not running)."""
        state = self.state_store.load()
        if state is None:
            return timedelta(0)
        return duration(state.started_at, self.clock())

    def recent(self) -> list[Selection]:
        return self.state_store.load_recent(self.recent_limit).items()

    async def stop(self, description: Optional[str] = None) -> MutationResult:
        """Stop the timer and save it as a time entry.

        The timer is only cleared when the save succeeds, so a failed save can
        be retried by stopping again.

        Raises:
            ValueError: If no timer is running
        """
        state = self.state_store.load()
        if state is None:
            raise ValueError("No timer is currently running")

        draft = validate_entry_input(
            state.selection.project_id,
            state.started_at,
            max(self.clock(), state.started_at),
            description if description is not None else state.description,
            task_id=state.selection.task_id,
        )
        result = await self.controller.create_entry(draft)

        if result.ok:
            self.state_store.save(None)
            logger.info(f"Timer stopped for {state.selection.label}")
        else:
            logger.warning(f"Timer for {state.selection.label} kept running: {result.message}")
        return result

    def cancel(self) -> bool:
        """Discard the running timer without saving.

        Returns:
            True if a timer was discarded
        """
        if self.state_store.load() is None:
            return False
        self.state_store.save(None)
        return True
