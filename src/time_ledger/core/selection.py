"""Project/task selection search and recent selections."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from time_ledger.core.models import ProjectView

PROJECT = "project"
TASK = "task"


@dataclass(frozen=True)
class Selection:
    """Something a timer can be started against."""

    kind: str
    id: str
    name: str
    project_id: str
    project_name: Optional[str] = None

    @property
    def task_id(self) -> Optional[str]:
        return self.id if self.kind == TASK else None

    @property
    def label(self) -> str:
        if self.kind == TASK:
            return f"{self.project_name} - {self.name}"
        return self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "id": self.id,
            "name": self.name,
            "project_id": self.project_id,
            "project_name": self.project_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Selection":
        """Create Selection from dictionary."""
        return cls(
            kind=data["kind"],
            id=data["id"],
            name=data["name"],
            project_id=data["project_id"],
            project_name=data.get("project_name"),
        )


def project_selection(view: ProjectView) -> Selection:
    return Selection(kind=PROJECT, id=view.id, name=view.name, project_id=view.id)


def search_selections(projects: Iterable[ProjectView], query: str) -> list[Selection]:
    """Find projects and tasks whose name contains the query.

    Matching is case-insensitive. Each matching project is listed before its
    matching tasks. A blank query matches nothing.

    Args:
        projects: Aggregated project views
        query: Search text

    Returns:
        Matching selections
    """
    needle = query.strip().lower()
    if not needle:
        return []

    results = []
    for view in projects:
        if needle in view.name.lower():
            results.append(project_selection(view))
        for task_view in view.tasks:
            if needle in task_view.name.lower():
                results.append(
                    Selection(
                        kind=TASK,
                        id=task_view.id,
                        name=task_view.name,
                        project_id=view.id,
                        project_name=view.name,
                    )
                )
    return results


class RecentSelections:
    """Most-recently-used selections, newest first, without duplicates."""

    def __init__(self, limit: int = 5, items: Optional[Iterable[Selection]] = None):
        self.limit = limit
        self._items: list[Selection] = list(items or [])[:limit]

    def add(self, selection: Selection) -> None:
        """Move a selection to the front, dropping the oldest past the limit."""
        filtered = [s for s in self._items if s.id != selection.id]
        self._items = [selection, *filtered][: self.limit]

    def items(self) -> list[Selection]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
