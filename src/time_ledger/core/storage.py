"""CSV storage manager with atomic operations and user scoping."""

import csv
import logging
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from time_ledger.core.errors import AccessDenied, NotFound
from time_ledger.core.models import Project, Task, TimeInterval

logger = logging.getLogger(__name__)

PROJECT_FIELDS = ["id", "name", "user_id", "created_at"]
TASK_FIELDS = ["id", "name", "project_id", "completed", "created_at"]
INTERVAL_FIELDS = [
    "id",
    "project_id",
    "task_id",
    "user_id",
    "start_time",
    "end_time",
    "duration_seconds",
    "description",
    "created_at",
]

# Fields an interval update may change
UPDATABLE_INTERVAL_FIELDS = {"start_time", "end_time", "description", "task_id"}


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class StorageManager:
    """Manages CSV storage for projects, tasks and time intervals."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize storage manager.

        Args:
            data_dir: Custom data directory. Defaults to ~/.time-ledger/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".time-ledger" / "data"

        self.data_dir = data_dir
        self.projects_file = self.data_dir / "projects.csv"
        self.tasks_file = self.data_dir / "tasks.csv"
        self.intervals_file = self.data_dir / "intervals.csv"
        self.state_dir = self.data_dir.parent / "state"
        self.backup_dir = self.data_dir.parent / "backups"

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

        self._initialize_files()

    def _initialize_files(self) -> None:
        """Create CSV files with headers if they don't exist."""
        for file_path, fieldnames in (
            (self.projects_file, PROJECT_FIELDS),
            (self.tasks_file, TASK_FIELDS),
            (self.intervals_file, INTERVAL_FIELDS),
        ):
            if not file_path.exists():
                self._write_csv_atomic(file_path, fieldnames, [])

    def _write_csv_atomic(
        self, file_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]
    ) -> None:
        """Write CSV file atomically using temporary file and rename.

        Args:
            file_path: Target file path
            fieldnames: CSV field names
            rows: List of row dictionaries
        """
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
                writer.writeheader()
                writer.writerows(rows)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        """Read CSV file with locking.

        Args:
            file_path: CSV file to read

        Returns:
            List of row dictionaries
        """
        if not file_path.exists():
            return []

        with open(file_path, encoding="utf-8") as f:
            _lock_file(f, exclusive=False)

            try:
                reader = csv.DictReader(f)
                rows = list(reader)
            finally:
                _unlock_file(f)

        return rows

    def backup(self, label: Optional[str] = None) -> Path:
        """Create backup of all data files.

        Args:
            label: Optional label for backup. Defaults to timestamp

        Returns:
            Path to backup directory
        """
        if label is None:
            label = datetime.now().strftime("%Y%m%d_%H%M%S")

        backup_path = self.backup_dir / label
        backup_path.mkdir(parents=True, exist_ok=True)

        for file in [self.projects_file, self.tasks_file, self.intervals_file]:
            if file.exists():
                shutil.copy2(file, backup_path / file.name)

        logger.info(f"Backup written to {backup_path}")
        return backup_path

    # Project operations

    def save_project(self, project: Project) -> None:
        """Insert or replace a project."""
        rows = self._read_csv(self.projects_file)
        row = project.to_dict()
        for i, existing in enumerate(rows):
            if existing["id"] == project.id:
                rows[i] = row
                break
        else:
            rows.append(row)
        self._write_csv_atomic(self.projects_file, PROJECT_FIELDS, rows)

    def load_projects(self, user_id: Optional[str] = None) -> list[Project]:
        """Load projects, optionally only those owned by one user, sorted by name."""
        projects = [Project.from_dict(row) for row in self._read_csv(self.projects_file)]
        if user_id is not None:
            projects = [p for p in projects if p.user_id == user_id]
        projects.sort(key=lambda p: p.name.lower())
        return projects

    def get_project(self, project_id: str) -> Optional[Project]:
        """Get a project by ID."""
        for row in self._read_csv(self.projects_file):
            if row["id"] == project_id:
                return Project.from_dict(row)
        return None

    # Task operations

    def save_task(self, task: Task) -> None:
        """Insert or replace a task."""
        rows = self._read_csv(self.tasks_file)
        row = task.to_dict()
        for i, existing in enumerate(rows):
            if existing["id"] == task.id:
                rows[i] = row
                break
        else:
            rows.append(row)
        self._write_csv_atomic(self.tasks_file, TASK_FIELDS, rows)

    def load_tasks(self, project_ids: Optional[Iterable[str]] = None) -> list[Task]:
        """Load tasks, optionally restricted to some projects, sorted by name."""
        tasks = [Task.from_dict(row) for row in self._read_csv(self.tasks_file)]
        if project_ids is not None:
            wanted = set(project_ids)
            tasks = [t for t in tasks if t.project_id in wanted]
        tasks.sort(key=lambda t: t.name.lower())
        return tasks

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID."""
        for row in self._read_csv(self.tasks_file):
            if row["id"] == task_id:
                return Task.from_dict(row)
        return None

    def set_task_completed(self, task_id: str, completed: bool) -> Task:
        """Set a task's completion flag.

        Raises:
            NotFound: If no task has this ID
        """
        task = self.get_task(task_id)
        if task is None:
            raise NotFound(f"Task not found: {task_id}", task_id)
        task.completed = completed
        self.save_task(task)
        return task

    # Interval operations

    def insert_interval(self, interval: TimeInterval) -> TimeInterval:
        """Append a new interval.

        Raises:
            ValueError: If an interval with the same ID already exists
        """
        rows = self._read_csv(self.intervals_file)
        if any(row["id"] == interval.id for row in rows):
            raise ValueError(f"Interval already exists: {interval.id}")
        rows.append(interval.to_dict())
        self._write_csv_atomic(self.intervals_file, INTERVAL_FIELDS, rows)
        return interval

    def load_intervals(
        self,
        project_ids: Optional[Iterable[str]] = None,
        closed_only: bool = False,
    ) -> list[TimeInterval]:
        """Load intervals, newest first.

        Args:
            project_ids: Restrict to these projects (all if None)
            closed_only: Skip intervals without an end time

        Returns:
            List of TimeInterval ordered by created_at descending
        """
        rows = self._read_csv(self.intervals_file)
        if project_ids is not None:
            wanted = set(project_ids)
            rows = [r for r in rows if r["project_id"] in wanted]
        if closed_only:
            rows = [r for r in rows if r["end_time"]]

        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [TimeInterval.from_dict(row) for row in rows]

    def get_interval(self, interval_id: str) -> Optional[TimeInterval]:
        """Get an interval by ID."""
        for row in self._read_csv(self.intervals_file):
            if row["id"] == interval_id:
                return TimeInterval.from_dict(row)
        return None

    def _find_owned_row(
        self, rows: list[dict[str, Any]], interval_id: str, user_id: str
    ) -> int:
        """Index of the row matching both ID and owner.

        Raises:
            NotFound: If no row has this ID
            AccessDenied: If the row belongs to another user
        """
        for i, row in enumerate(rows):
            if row["id"] != interval_id:
                continue
            if row["user_id"] != user_id:
                raise AccessDenied(
                    "Time entry not found or access denied", interval_id
                )
            return i
        raise NotFound(f"Time entry not found: {interval_id}", interval_id)

    def update_interval(
        self, interval_id: str, user_id: str, fields: dict[str, Any]
    ) -> TimeInterval:
        """Update an interval owned by user_id.

        Args:
            interval_id: ID of interval to update
            user_id: Owning user the update is scoped to
            fields: New values (start_time, end_time, description, task_id)

        Returns:
            Updated interval

        Raises:
            NotFound: If no interval has this ID
            AccessDenied: If the interval belongs to another user
            ValueError: If fields names something that cannot be updated
        """
        unknown = set(fields) - UPDATABLE_INTERVAL_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        rows = self._read_csv(self.intervals_file)
        index = self._find_owned_row(rows, interval_id, user_id)

        interval = TimeInterval.from_dict(rows[index])
        for key, value in fields.items():
            setattr(interval, key, value)
        rows[index] = interval.to_dict()

        self._write_csv_atomic(self.intervals_file, INTERVAL_FIELDS, rows)
        return interval

    def delete_interval(self, interval_id: str, user_id: str) -> None:
        """Delete an interval owned by user_id.

        Raises:
            NotFound: If no interval has this ID
            AccessDenied: If the interval belongs to another user
        """
        rows = self._read_csv(self.intervals_file)
        index = self._find_owned_row(rows, interval_id, user_id)
        del rows[index]
        self._write_csv_atomic(self.intervals_file, INTERVAL_FIELDS, rows)
