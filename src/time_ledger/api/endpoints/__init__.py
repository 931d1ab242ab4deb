"""API endpoint routers.

- system: health check
- projects: aggregated projects, project and task creation
- entries: time entry history and mutations
"""

__all__ = ["system", "projects", "entries"]

from time_ledger.api.endpoints import entries, projects, system  # noqa: F401
