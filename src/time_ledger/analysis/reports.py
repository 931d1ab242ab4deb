"""Rich rendering of project totals and time history."""

from datetime import timedelta
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from time_ledger.core.intervals import format_duration
from time_ledger.core.models import ProjectView, TimeEntry
from time_ledger.core.selection import Selection


class ReportGenerator:
    """Render aggregated project views and entry history."""

    def __init__(self, console: Optional[Console] = None, datetime_format: str = "%Y-%m-%d %H:%M"):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            datetime_format: strftime format for entry timestamps
        """
        self.console = console or Console()
        self.datetime_format = datetime_format

    def projects_report(self, projects: list[ProjectView]) -> None:
        """Display each project with its total and its tasks' totals."""
        if not projects:
            self.console.print("[yellow]No projects yet[/yellow]")
            return

        grand_total = sum((p.total_time for p in projects), timedelta(0))

        table = Table(title="Projects")
        table.add_column("Project / Task", style="cyan")
        table.add_column("ID", style="dim")
        table.add_column("Total", style="magenta", justify="right")
        table.add_column("% Total", style="green", justify="right")
        table.add_column("Bar", style="blue")

        for view in projects:
            pct = self._percentage(view.total_time, grand_total)
            table.add_row(
                f"[bold]{view.name}[/bold]",
                view.id,
                format_duration(view.total_time),
                f"{pct:.1f}%",
                self._create_bar(pct),
            )
            for task_view in view.tasks:
                marker = "[green]✓[/green]" if task_view.task.completed else "[dim]○[/dim]"
                name = f"[strike]{task_view.name}[/strike]" if task_view.task.completed else task_view.name
                table.add_row(
                    f"  {marker} {name}",
                    task_view.id,
                    format_duration(task_view.total_time),
                    "",
                    "",
                )

        self.console.print(table)
        self.console.print(f"\n[dim]Total tracked:[/dim] [bold]{format_duration(grand_total)}[/bold]")

    def history_report(self, entries: list[TimeEntry], limit: Optional[int] = None) -> None:
        """Display time entries, newest first."""
        if not entries:
            self.console.print("[yellow]No time entries yet[/yellow]")
            return

        shown = entries[:limit] if limit else entries

        table = Table(title="Time History")
        table.add_column("ID", style="dim", width=8)
        table.add_column("Project", style="bold")
        table.add_column("Start", style="cyan")
        table.add_column("End", style="cyan")
        table.add_column("Duration", style="magenta", justify="right")
        table.add_column("Description")

        for entry in shown:
            table.add_row(
                entry.id[:8],
                entry.display_name,
                entry.start_time.strftime(self.datetime_format) if entry.start_time else "-",
                entry.end_time.strftime(self.datetime_format) if entry.end_time else "-",
                format_duration(entry.duration),
                entry.description or "",
            )

        self.console.print(table)
        if limit and len(entries) > limit:
            self.console.print(f"[dim]Showing {limit} of {len(entries)} entries[/dim]")

    def selections_report(self, selections: list[Selection], title: str = "Matches") -> None:
        """Display search results or recent selections."""
        if not selections:
            self.console.print("[yellow]No results found[/yellow]")
            return

        table = Table(title=title)
        table.add_column("Type", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Project", style="cyan")
        table.add_column("ID", style="dim")

        for selection in selections:
            table.add_row(
                selection.kind,
                selection.name,
                selection.project_name or "",
                selection.id,
            )

        self.console.print(table)

    def _percentage(self, part: timedelta, whole: timedelta) -> float:
        if whole.total_seconds() <= 0:
            return 0.0
        return (part.total_seconds() / whole.total_seconds()) * 100

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
