"""Change notification feed.

The realtime transport is an external collaborator; ``ChangeFeed`` is the
interface the core consumes. ``InProcessChangeFeed`` delivers events within
one process and is what ``LocalRemoteStore`` publishes to.
"""

import inspect
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    """Kinds of record the feed reports changes for."""

    PROJECTS = "projects"
    TASKS = "tasks"
    INTERVALS = "intervals"


class ChangeType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification.

    The payload is informational only; consumers resynchronize in full.
    """

    kind: RecordKind
    change: ChangeType = ChangeType.UPDATE
    record_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=datetime.now)


ChangeCallback = Callable[[ChangeEvent], Any]


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque token returned by subscribe, required to unsubscribe."""

    id: int
    kind: RecordKind


class ChangeFeed(ABC):
    """Publish/subscribe feed of record changes."""

    @abstractmethod
    def subscribe(self, kind: RecordKind, on_any_change: ChangeCallback) -> SubscriptionHandle:
        """Register a callback for every change to one record kind."""

    @abstractmethod
    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Release a subscription. Unknown handles are ignored."""


class InProcessChangeFeed(ChangeFeed):
    """Feed that delivers events to subscribers in the same process."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._subscribers: dict[SubscriptionHandle, ChangeCallback] = {}

    def subscribe(self, kind: RecordKind, on_any_change: ChangeCallback) -> SubscriptionHandle:
        handle = SubscriptionHandle(id=next(self._counter), kind=RecordKind(kind))
        self._subscribers[handle] = on_any_change
        logger.debug(f"Subscribed #{handle.id} to {handle.kind.value}")
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        if self._subscribers.pop(handle, None) is not None:
            logger.debug(f"Unsubscribed #{handle.id} from {handle.kind.value}")

    def subscriber_count(self, kind: Optional[RecordKind] = None) -> int:
        """Number of live subscriptions, optionally for one kind."""
        if kind is None:
            return len(self._subscribers)
        return sum(1 for handle in self._subscribers if handle.kind == kind)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber of its kind, in subscription order.

        Callbacks returning an awaitable are awaited before the next one runs.
        """
        targets = [
            callback
            for handle, callback in list(self._subscribers.items())
            if handle.kind == event.kind
        ]
        logger.debug(f"Publishing {event.change.value} on {event.kind.value} to {len(targets)}")
        for callback in targets:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
