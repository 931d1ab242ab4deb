"""Pytest configuration and shared fixtures."""

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterator

import pytest  # type: ignore[import-not-found]
from support import FakeRemoteStore, at

from time_ledger.core.models import Project, Task, TimeInterval
from time_ledger.core.storage import StorageManager


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Iterator[Path]:
    """Temporary directory removed after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def temp_storage(temp_dir: Path) -> StorageManager:
    """Storage manager in a temporary data directory."""
    return StorageManager(temp_dir / "data")


@pytest.fixture  # type: ignore[misc]
def sample_records() -> tuple[list[Project], list[Task], list[TimeInterval]]:
    """Two projects for user u1, one task, and three closed intervals.

    P1 totals 1500 ms (1000 ms on T1), P2 totals 900 ms.
    """
    base = at(9)
    p1 = Project(id="P1", name="Alpha", user_id="u1", created_at=base)
    p2 = Project(id="P2", name="Beta", user_id="u1", created_at=base)
    t1 = Task(id="T1", name="Design", project_id="P1", created_at=base)
    intervals = [
        TimeInterval(
            id="i1",
            project_id="P1",
            task_id="T1",
            user_id="u1",
            start_time=base,
            end_time=at(9, 0, 1),
            created_at=at(10),
        ),
        TimeInterval(
            id="i2",
            project_id="P1",
            user_id="u1",
            start_time=base,
            end_time=datetime(2024, 3, 1, 9, 0, 0, 500000),
            created_at=at(11),
        ),
        TimeInterval(
            id="i3",
            project_id="P2",
            user_id="u1",
            start_time=base,
            end_time=datetime(2024, 3, 1, 9, 0, 0, 900000),
            created_at=at(12),
        ),
    ]
    return [p1, p2], [t1], intervals


@pytest.fixture  # type: ignore[misc]
def fake_remote(sample_records: tuple[list[Project], list[Task], list[TimeInterval]]) -> FakeRemoteStore:
    projects, tasks, intervals = sample_records
    return FakeRemoteStore(projects, tasks, intervals)
