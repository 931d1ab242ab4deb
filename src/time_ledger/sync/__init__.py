"""Synchronization of the client-side view with the remote store."""

from time_ledger.sync.controller import MutationController, MutationResult, MutationState
from time_ledger.sync.feed import ChangeEvent, ChangeFeed, InProcessChangeFeed, RecordKind
from time_ledger.sync.listener import ChangeFeedListener
from time_ledger.sync.remote import LocalRemoteStore, RemoteStore
from time_ledger.sync.session import SyncSession

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "ChangeFeedListener",
    "InProcessChangeFeed",
    "LocalRemoteStore",
    "MutationController",
    "MutationResult",
    "MutationState",
    "RecordKind",
    "RemoteStore",
    "SyncSession",
]
