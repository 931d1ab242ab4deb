"""Shared fixtures for API tests."""

from pathlib import Path
from typing import Any

import pytest  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from time_ledger.api import create_app
from time_ledger.api.auth import create_token_for_user
from time_ledger.core.config import ConfigManager
from time_ledger.core.storage import StorageManager
from time_ledger.sync.remote import LocalRemoteStore


@pytest.fixture  # type: ignore[misc]
def test_config(temp_dir: Path) -> ConfigManager:
    """Configuration with authentication on and a data dir inside temp_dir."""
    config = ConfigManager(temp_dir / "config.yml")
    config.set("general.data_dir", str(temp_dir / "data"))
    config.ensure_api_secret_key()
    return config


@pytest.fixture  # type: ignore[misc]
def api_storage(temp_dir: Path) -> StorageManager:
    return StorageManager(temp_dir / "data")


@pytest.fixture  # type: ignore[misc]
def test_app(test_config: ConfigManager, api_storage: StorageManager) -> Any:
    """Create a test FastAPI application."""
    return create_app(test_config, LocalRemoteStore(api_storage))


@pytest.fixture  # type: ignore[misc]
def client(test_app: Any) -> TestClient:
    """Create a test client."""
    return TestClient(test_app)


def auth_headers(config: ConfigManager, user_id: str) -> dict[str, str]:
    token = create_token_for_user(config, user_id=user_id)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture  # type: ignore[misc]
def alice(test_config: ConfigManager) -> dict[str, str]:
    """Authorization headers for user alice."""
    return auth_headers(test_config, "alice")


@pytest.fixture  # type: ignore[misc]
def bob(test_config: ConfigManager) -> dict[str, str]:
    """Authorization headers for user bob."""
    return auth_headers(test_config, "bob")
