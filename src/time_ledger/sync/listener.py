"""Change feed listener that funnels every notification into one callback."""

import inspect
import logging
from typing import Any, Callable, Optional

from time_ledger.sync.feed import ChangeEvent, ChangeFeed, RecordKind, SubscriptionHandle

logger = logging.getLogger(__name__)

WATCHED_KINDS = (RecordKind.PROJECTS, RecordKind.TASKS, RecordKind.INTERVALS)


class ChangeFeedListener:
    """Subscribe to projects, tasks and intervals as a single unit.

    Any event, whatever its kind, payload or origin, triggers ``on_change``
    exactly once. Incremental patching is never attempted: the callback is
    expected to run a full resynchronization.
    """

    def __init__(self, feed: ChangeFeed, on_change: Callable[[], Any]):
        """Initialize listener.

        Args:
            feed: Change feed to subscribe to
            on_change: Zero-argument callback, sync or async
        """
        self.feed = feed
        self.on_change = on_change
        self._handles: list[SubscriptionHandle] = []
        self.events_seen = 0

    @property
    def active(self) -> bool:
        return bool(self._handles)

    def start(self) -> None:
        """Establish all three subscriptions.

        Raises:
            RuntimeError: If the listener is already started
        """
        if self._handles:
            raise RuntimeError("Listener already started")
        self._handles = [self.feed.subscribe(kind, self._handle) for kind in WATCHED_KINDS]
        logger.info("Change feed listener started")

    def stop(self) -> None:
        """Tear down all subscriptions together. Safe to call twice."""
        if not self._handles:
            return
        for handle in self._handles:
            self.feed.unsubscribe(handle)
        self._handles = []
        logger.info("Change feed listener stopped")

    def _handle(self, event: ChangeEvent) -> Optional[Any]:
        self.events_seen += 1
        logger.debug(f"Change on {event.kind.value}, resynchronizing")
        result = self.on_change()
        if inspect.isawaitable(result):
            return result
        return None

    def __enter__(self) -> "ChangeFeedListener":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()
