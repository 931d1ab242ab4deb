"""Tests for storage manager."""

from datetime import datetime

import pytest  # type: ignore[import-not-found]
from support import at

from time_ledger.core.errors import AccessDenied, NotFound
from time_ledger.core.models import Project, Task, TimeInterval
from time_ledger.core.storage import StorageManager


def make_interval(**overrides: object) -> TimeInterval:
    fields: dict = {
        "project_id": "P",
        "user_id": "u1",
        "start_time": at(9),
        "end_time": at(10),
    }
    fields.update(overrides)
    return TimeInterval(**fields)


class TestStorageManager:
    """Test StorageManager."""

    def test_initialization_creates_directories(self, temp_storage: StorageManager) -> None:
        """Test that initialization creates required directories."""
        assert temp_storage.data_dir.exists()
        assert temp_storage.state_dir.exists()
        assert temp_storage.backup_dir.exists()

    def test_initialization_creates_csv_files(self, temp_storage: StorageManager) -> None:
        """Test that initialization creates CSV files with headers."""
        assert temp_storage.projects_file.exists()
        assert temp_storage.tasks_file.exists()

        with open(temp_storage.intervals_file) as f:
            header = f.readline().strip()
            assert "user_id" in header
            assert "task_id" in header

    def test_projects_scoped_and_sorted(self, temp_storage: StorageManager) -> None:
        temp_storage.save_project(Project(name="zebra", user_id="u1"))
        temp_storage.save_project(Project(name="Apple", user_id="u1"))
        temp_storage.save_project(Project(name="Other", user_id="u2"))

        names = [p.name for p in temp_storage.load_projects(user_id="u1")]
        assert names == ["Apple", "zebra"]
        assert len(temp_storage.load_projects()) == 3

    def test_save_project_replaces_existing(self, temp_storage: StorageManager) -> None:
        project = Project(name="Old", user_id="u1")
        temp_storage.save_project(project)
        project.name = "New"
        temp_storage.save_project(project)

        assert [p.name for p in temp_storage.load_projects()] == ["New"]
        assert temp_storage.get_project(project.id) == temp_storage.load_projects()[0]

    def test_tasks_filtered_by_project(self, temp_storage: StorageManager) -> None:
        temp_storage.save_task(Task(name="b", project_id="P1"))
        temp_storage.save_task(Task(name="a", project_id="P1"))
        temp_storage.save_task(Task(name="c", project_id="P2"))

        assert [t.name for t in temp_storage.load_tasks(["P1"])] == ["a", "b"]
        assert temp_storage.load_tasks([]) == []

    def test_set_task_completed(self, temp_storage: StorageManager) -> None:
        task = Task(name="Header", project_id="P1")
        temp_storage.save_task(task)

        updated = temp_storage.set_task_completed(task.id, True)
        assert updated.completed is True
        assert temp_storage.get_task(task.id).completed is True  # type: ignore[union-attr]

    def test_set_task_completed_unknown(self, temp_storage: StorageManager) -> None:
        with pytest.raises(NotFound):
            temp_storage.set_task_completed("missing", True)


class TestIntervalStorage:
    """Test interval persistence and user scoping."""

    def test_insert_and_load_newest_first(self, temp_storage: StorageManager) -> None:
        first = make_interval(created_at=datetime(2024, 3, 1, 10))
        second = make_interval(created_at=datetime(2024, 3, 1, 11))
        temp_storage.insert_interval(first)
        temp_storage.insert_interval(second)

        loaded = temp_storage.load_intervals()
        assert [i.id for i in loaded] == [second.id, first.id]
        assert loaded[1] == first

    def test_insert_duplicate_id(self, temp_storage: StorageManager) -> None:
        interval = make_interval()
        temp_storage.insert_interval(interval)
        with pytest.raises(ValueError):
            temp_storage.insert_interval(interval)

    def test_closed_only_and_project_filter(self, temp_storage: StorageManager) -> None:
        temp_storage.insert_interval(make_interval(project_id="P1"))
        temp_storage.insert_interval(make_interval(project_id="P1", end_time=None))
        temp_storage.insert_interval(make_interval(project_id="P2"))

        assert len(temp_storage.load_intervals(["P1"])) == 2
        assert len(temp_storage.load_intervals(["P1"], closed_only=True)) == 1

    def test_update_interval(self, temp_storage: StorageManager) -> None:
        interval = make_interval(description="before")
        temp_storage.insert_interval(interval)

        updated = temp_storage.update_interval(
            interval.id, "u1", {"end_time": at(11), "description": "after"}
        )
        assert updated.end_time == at(11)

        stored = temp_storage.get_interval(interval.id)
        assert stored is not None
        assert stored.description == "after"
        assert stored.start_time == at(9)

    def test_update_scoped_to_owner(self, temp_storage: StorageManager) -> None:
        interval = make_interval()
        temp_storage.insert_interval(interval)

        with pytest.raises(AccessDenied):
            temp_storage.update_interval(interval.id, "u2", {"description": "hijack"})
        assert temp_storage.get_interval(interval.id).description is None  # type: ignore[union-attr]

    def test_update_unknown_field(self, temp_storage: StorageManager) -> None:
        interval = make_interval()
        temp_storage.insert_interval(interval)
        with pytest.raises(ValueError):
            temp_storage.update_interval(interval.id, "u1", {"user_id": "u2"})

    def test_update_missing(self, temp_storage: StorageManager) -> None:
        with pytest.raises(NotFound):
            temp_storage.update_interval("missing", "u1", {"description": "x"})

    def test_delete_interval(self, temp_storage: StorageManager) -> None:
        interval = make_interval()
        temp_storage.insert_interval(interval)

        with pytest.raises(AccessDenied):
            temp_storage.delete_interval(interval.id, "u2")
        temp_storage.delete_interval(interval.id, "u1")
        assert temp_storage.get_interval(interval.id) is None

    def test_backup(self, temp_storage: StorageManager) -> None:
        temp_storage.insert_interval(make_interval())
        backup_path = temp_storage.backup("manual")

        assert backup_path.name == "manual"
        assert (backup_path / "intervals.csv").exists()
        assert (backup_path / "projects.csv").exists()
