"""Dependency injection for FastAPI endpoints."""

from fastapi import Request  # type: ignore[import-untyped]

from time_ledger.core.config import ConfigManager
from time_ledger.core.storage import StorageManager
from time_ledger.sync.remote import LocalRemoteStore, RemoteStore


def get_config(request: Request) -> ConfigManager:
    """Configuration manager stored on the application."""
    config: ConfigManager = request.app.state.config
    return config


def get_storage(request: Request) -> StorageManager:
    """Storage manager for the configured data directory."""
    return StorageManager(get_config(request).data_dir)


def get_remote(request: Request) -> RemoteStore:
    """Remote store for this request.

    An application may pin its own store in ``app.state.remote``; otherwise a
    local store over the configured data directory is used.
    """
    remote = getattr(request.app.state, "remote", None)
    if remote is not None:
        return remote  # type: ignore[no-any-return]
    return LocalRemoteStore(get_storage(request))
