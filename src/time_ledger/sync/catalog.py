"""Project and task actions.

Unlike time entries these are not applied optimistically: the command is
committed first and the change feed (or an explicit refresh) brings the
session up to date.
"""

import logging
from typing import Optional

from time_ledger.core.errors import NotFound, ValidationError
from time_ledger.core.models import Project, Task
from time_ledger.core.validation import validate_name
from time_ledger.sync.remote import RemoteStore
from time_ledger.sync.session import SyncSession

logger = logging.getLogger(__name__)


class CatalogActions:
    """Create projects and tasks, and toggle task completion."""

    def __init__(self, remote: RemoteStore, user_id: str, session: Optional[SyncSession] = None):
        """Initialize catalog actions.

        Args:
            remote: Remote store
            user_id: Owner of created projects
            session: Session to refresh when no change feed is attached
        """
        self.remote = remote
        self.user_id = user_id
        self.session = session

    async def _refresh(self) -> None:
        if self.session is not None and self.session.listener is None:
            await self.session.resynchronize()

    async def create_project(self, name: str) -> Project:
        """Create a project owned by the current user.

        Raises:
            ValidationError: If the name is blank
            RemoteError: If the remote store rejects the insert
        """
        project = Project(name=validate_name(name, "project name"), user_id=self.user_id)
        await self.remote.insert_project(project)
        logger.info(f"Created project {project.name} ({project.id})")
        await self._refresh()
        return project

    async def create_task(self, project_id: str, name: str) -> Task:
        """Create an incomplete task in a project.

        Raises:
            ValidationError: If the name is blank or no project is given
            RemoteError: If the remote store rejects the insert
        """
        if not project_id:
            raise ValidationError("Please select a project")
        task = Task(name=validate_name(name, "task name"), project_id=project_id)
        await self.remote.insert_task(task)
        logger.info(f"Created task {task.name} ({task.id}) in {project_id}")
        await self._refresh()
        return task

    async def toggle_task(self, task_id: str, completed: Optional[bool] = None) -> Task:
        """Flip a task's completion flag.

        Args:
            task_id: Task to toggle
            completed: Current flag; looked up in the session when omitted

        Raises:
            NotFound: If the task is unknown
        """
        if completed is None:
            known = self.session.get_task(task_id) if self.session is not None else None
            if known is None:
                raise NotFound(f"Task not found: {task_id}", task_id)
            completed = known.completed
        task = await self.remote.set_task_completed(task_id, not completed)
        await self._refresh()
        return task
