"""Main CLI application."""

import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.panel import Panel

from time_ledger import __version__
from time_ledger.analysis.reports import ReportGenerator
from time_ledger.cli.api_commands import api
from time_ledger.cli.config_commands import config
from time_ledger.core.config import ConfigManager
from time_ledger.core.errors import TimeLedgerError
from time_ledger.core.intervals import format_clock, format_duration
from time_ledger.core.models import ProjectView, TimeEntry
from time_ledger.core.selection import Selection, project_selection, search_selections
from time_ledger.core.storage import StorageManager
from time_ledger.core.tracker import TimerStateStore, TimeTracker
from time_ledger.core.validation import validate_entry_input, validate_entry_update
from time_ledger.logging_setup import setup_logging
from time_ledger.sync.catalog import CatalogActions
from time_ledger.sync.controller import MutationController, MutationResult
from time_ledger.sync.feed import InProcessChangeFeed
from time_ledger.sync.remote import LocalRemoteStore
from time_ledger.sync.session import SyncSession

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")


@dataclass
class Services:
    """Everything a command needs, wired for one invocation."""

    config: ConfigManager
    storage: StorageManager
    remote: LocalRemoteStore
    session: SyncSession
    controller: MutationController
    catalog: CatalogActions
    tracker: TimeTracker


def load_config(ctx: click.Context) -> ConfigManager:
    """Get the ConfigManager for this invocation, loading it once."""
    if "config" not in ctx.obj:
        config_path = ctx.obj.get("config_path")
        ctx.obj["config"] = ConfigManager(Path(config_path) if config_path else None)
    config_mgr: ConfigManager = ctx.obj["config"]
    return config_mgr


def build_services(ctx: click.Context) -> Services:
    """Construct the store, feed, session and controllers."""
    config_mgr = load_config(ctx)
    data_dir = ctx.obj.get("data_dir")
    user_id = ctx.obj.get("user_id") or config_mgr.user_id

    storage = StorageManager(Path(data_dir) if data_dir else config_mgr.data_dir)
    if config_mgr.get("advanced.backup_on_start", False):
        storage.backup()

    feed = InProcessChangeFeed()
    remote = LocalRemoteStore(storage, feed)
    session = SyncSession(remote, user_id, feed=feed)
    controller = MutationController(session)
    tracker = TimeTracker(
        controller,
        TimerStateStore(storage.state_dir / f"timer-{user_id}.json"),
        recent_limit=config_mgr.get("display.recent_limit", 5),
    )
    return Services(
        config=config_mgr,
        storage=storage,
        remote=remote,
        session=session,
        controller=controller,
        catalog=CatalogActions(remote, user_id, session),
        tracker=tracker,
    )


def run_with_services(ctx: click.Context, action: Callable[[Services], Awaitable[T]]) -> T:
    """Run an async action inside an open session; exit 1 on errors."""

    async def runner() -> T:
        services = build_services(ctx)
        try:
            async with services.session:
                return await action(services)
        finally:
            await services.remote.close()

    try:
        return asyncio.run(runner())
    except (TimeLedgerError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def report_failure(result: MutationResult) -> None:
    """Show a failed mutation and exit."""
    error_console.print(f"[red]Error:[/red] {result.message}")
    sys.exit(1)


def get_reports(ctx: click.Context) -> ReportGenerator:
    config_mgr = load_config(ctx)
    fmt = f"{config_mgr.get('general.date_format', '%Y-%m-%d')} {config_mgr.get('general.time_format', '%H:%M')}"
    return ReportGenerator(console, datetime_format=fmt)


def resolve_project(projects: list[ProjectView], ref: str) -> ProjectView:
    """Find a project by exact ID, then by case-insensitive name.

    Raises:
        ValueError: If nothing or more than one project matches
    """
    for view in projects:
        if view.id == ref:
            return view
    matches = [v for v in projects if v.name.lower() == ref.strip().lower()]
    if not matches:
        raise ValueError(f"Project not found: {ref}")
    if len(matches) > 1:
        raise ValueError(f"Project name is ambiguous, use its ID: {ref}")
    return matches[0]


def resolve_selection(projects: list[ProjectView], query: str) -> Selection:
    """Pick the single project or task a query refers to.

    An exact (case-insensitive) label or name match wins; otherwise the query
    must match exactly one project or task.

    Raises:
        ValueError: If the query matches nothing or is ambiguous
    """
    matches = search_selections(projects, query)
    if not matches:
        raise ValueError(f"No project or task matches '{query}'")

    needle = query.strip().lower()
    exact = [s for s in matches if s.label.lower() == needle or s.name.lower() == needle]
    if len(exact) == 1:
        return exact[0]
    if len(matches) == 1:
        return matches[0]

    choices = ", ".join(s.label for s in (exact or matches)[:5])
    raise ValueError(f"'{query}' is ambiguous: {choices}")


def resolve_entry(entries: list[TimeEntry], ref: str) -> TimeEntry:
    """Find an entry by ID or unique ID prefix.

    Raises:
        ValueError: If no entry or several entries match
    """
    matches = [e for e in entries if e.id == ref]
    if not matches:
        matches = [e for e in entries if e.id.startswith(ref)]
    if not matches:
        raise ValueError(f"Time entry not found: {ref}")
    if len(matches) > 1:
        raise ValueError(f"Entry ID prefix is ambiguous: {ref}")
    return matches[0]


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Path to config file", type=click.Path())
@click.option("--user", "user_id", help="User identity (default: general.user_id)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_path: Optional[str],
    user_id: Optional[str],
    log_level: Optional[str],
    no_color: bool,
) -> None:
    """Time Ledger - track time against projects and tasks.

    Start and stop timers, edit your history, and see totals per project
    and per task.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["config_path"] = config_path
    ctx.obj["user_id"] = user_id

    if no_color:
        console.no_color = True

    if ctx.invoked_subcommand not in (None, "config"):
        config_mgr = load_config(ctx)
        log_file = config_mgr.get("advanced.log_file")
        setup_logging(
            log_level or config_mgr.get("advanced.log_level", "WARNING"),
            Path(log_file).expanduser() if log_file else None,
        )


cli.add_command(config)
cli.add_command(api)


@cli.command()
@click.pass_context
def projects(ctx: click.Context) -> None:
    """Show projects and tasks with their total tracked time.

    Example:
        time-ledger projects
    """

    async def action(services: Services) -> list[ProjectView]:
        return services.session.projects

    views = run_with_services(ctx, action)
    get_reports(ctx).projects_report(views)


@cli.group()
def project() -> None:
    """Manage projects."""


@project.command("add")
@click.argument("name")
@click.pass_context
def project_add(ctx: click.Context, name: str) -> None:
    """Create a new project.

    Example:
        time-ledger project add "Website redesign"
    """

    async def action(services: Services) -> Any:
        return await services.catalog.create_project(name)

    created = run_with_services(ctx, action)
    console.print(f"[green]✓[/green] Created project: {created.name}")
    console.print(f"  ID: {created.id}")


@cli.group()
def task() -> None:
    """Manage tasks."""


@task.command("add")
@click.argument("project_ref")
@click.argument("name")
@click.pass_context
def task_add(ctx: click.Context, project_ref: str, name: str) -> None:
    """Add a task to a project (by ID or name).

    Example:
        time-ledger task add "Website redesign" "Landing page"
    """

    async def action(services: Services) -> Any:
        view = resolve_project(services.session.projects, project_ref)
        return await services.catalog.create_task(view.id, name)

    created = run_with_services(ctx, action)
    console.print(f"[green]✓[/green] Added task: {created.name}")
    console.print(f"  ID: {created.id}")


@task.command("toggle")
@click.argument("task_id")
@click.pass_context
def task_toggle(ctx: click.Context, task_id: str) -> None:
    """Mark a task complete, or incomplete again.

    Example:
        time-ledger task toggle 3f2a...
    """

    async def action(services: Services) -> Any:
        return await services.catalog.toggle_task(task_id)

    toggled = run_with_services(ctx, action)
    state = "complete" if toggled.completed else "incomplete"
    console.print(f"[green]✓[/green] {toggled.name} marked {state}")


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Search projects and tasks by name.

    Example:
        time-ledger search landing
    """

    async def action(services: Services) -> list[Selection]:
        return search_selections(services.session.projects, query)

    results = run_with_services(ctx, action)
    get_reports(ctx).selections_report(results)


@cli.command()
@click.pass_context
def recent(ctx: click.Context) -> None:
    """Show recently timed projects and tasks."""

    async def action(services: Services) -> list[Selection]:
        return services.tracker.recent()

    get_reports(ctx).selections_report(run_with_services(ctx, action), title="Recent")


@cli.command()
@click.argument("query")
@click.option("-d", "--description", help="What you are working on")
@click.pass_context
def start(ctx: click.Context, query: str, description: Optional[str]) -> None:
    """Start a timer for a project or task.

    QUERY is matched against project and task names, e.g. "Website" or
    "Website - Landing page".

    Example:
        time-ledger start "Landing page" -d "Hero section"
    """

    async def action(services: Services) -> Any:
        projects = services.session.projects
        matches = [v for v in projects if v.id == query]
        selection = (
            project_selection(matches[0]) if matches else resolve_selection(projects, query)
        )
        return services.tracker.start(selection, description)

    state = run_with_services(ctx, action)
    console.print(f"[green]▶[/green] Started timer: {state.selection.label}")
    console.print(f"  Started: {state.started_at.strftime('%Y-%m-%d %H:%M:%S')}")


@cli.command()
@click.option("-d", "--description", help="Description for the saved entry")
@click.pass_context
def stop(ctx: click.Context, description: Optional[str]) -> None:
    """Stop the timer and save the time entry.

    Example:
        time-ledger stop -d "Finished hero section"
    """

    async def action(services: Services) -> MutationResult:
        return await services.tracker.stop(description)

    result = run_with_services(ctx, action)
    if not result.ok:
        report_failure(result)

    entry = result.entry
    console.print(f"[green]✓[/green] Saved: {entry.display_name if entry else ''}")
    if entry is not None:
        console.print(f"  Duration: {format_duration(entry.duration)}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running timer.

    Example:
        time-ledger status
    """

    async def action(services: Services) -> Any:
        return services.tracker.status(), services.tracker.elapsed()

    state, elapsed = run_with_services(ctx, action)
    if state is None:
        console.print("[yellow]No timer running[/yellow]")
        console.print('\nStart one with: [cyan]time-ledger start "Project"[/cyan]')
        return

    content = f"""[bold]{state.selection.label}[/bold]

[dim]Started:[/dim] {state.started_at.strftime('%Y-%m-%d %H:%M:%S')}
[dim]Elapsed:[/dim] {format_clock(elapsed)}"""
    if state.description:
        content += f"\n[dim]Description:[/dim] {state.description}"

    console.print(Panel(content, title="Timer", border_style="green"))


@cli.command()
@click.pass_context
def cancel(ctx: click.Context) -> None:
    """Discard the running timer without saving."""

    async def action(services: Services) -> bool:
        return services.tracker.cancel()

    if run_with_services(ctx, action):
        console.print("[yellow]⏹[/yellow]  Timer discarded")
    else:
        console.print("[yellow]No timer running[/yellow]")


@cli.command()
@click.option("-n", "--limit", type=int, help="Number of entries to show")
@click.pass_context
def log(ctx: click.Context, limit: Optional[int]) -> None:
    """Show time history, newest first.

    Example:
        time-ledger log -n 10
    """

    async def action(services: Services) -> list[TimeEntry]:
        return services.session.entries.snapshot()

    entries = run_with_services(ctx, action)
    if limit is None:
        limit = load_config(ctx).get("display.history_limit", 20)
    get_reports(ctx).history_report(entries, limit=limit)


@cli.command()
@click.argument("query")
@click.option("--start", "start_time", required=True, help="Start, e.g. 2025-01-31T09:00")
@click.option("--end", "end_time", required=True, help="End, e.g. 2025-01-31T10:30")
@click.option("-d", "--description", help="Description")
@click.pass_context
def add(
    ctx: click.Context,
    query: str,
    start_time: str,
    end_time: str,
    description: Optional[str],
) -> None:
    """Add a finished time entry manually.

    Example:
        time-ledger add "Website" --start 2025-01-31T09:00 --end 2025-01-31T10:30
    """

    async def action(services: Services) -> MutationResult:
        selection = resolve_selection(services.session.projects, query)
        draft = validate_entry_input(
            selection.project_id, start_time, end_time, description, selection.task_id
        )
        return await services.controller.create_entry(draft)

    result = run_with_services(ctx, action)
    if not result.ok:
        report_failure(result)
    if result.entry is not None:
        console.print(f"[green]✓[/green] Added: {result.entry.display_name}")
        console.print(f"  Duration: {format_duration(result.entry.duration)}")


@cli.command()
@click.argument("entry_id")
@click.option("--start", "start_time", help="New start time")
@click.option("--end", "end_time", help="New end time")
@click.option("-d", "--description", help="New description (empty string clears it)")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: str,
    start_time: Optional[str],
    end_time: Optional[str],
    description: Optional[str],
) -> None:
    """Edit a time entry's start, end and description.

    Omitted options keep their current values.

    Example:
        time-ledger edit 1a2b3c4d --end 2025-01-31T11:00
    """

    async def action(services: Services) -> MutationResult:
        entry = resolve_entry(services.session.entries.snapshot(), entry_id)
        changes = validate_entry_update(
            start_time or entry.start_time,
            end_time or entry.end_time,
            description if description is not None else entry.description,
        )
        return await services.controller.update_entry(entry.id, changes)

    result = run_with_services(ctx, action)
    if not result.ok:
        report_failure(result)
    console.print("[green]✓[/green] Time entry updated")
    if result.entry is not None:
        console.print(f"  Duration: {format_duration(result.entry.duration)}")


@cli.command()
@click.argument("entry_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_id: str, yes: bool) -> None:
    """Delete a time entry.

    Example:
        time-ledger delete 1a2b3c4d --yes
    """
    if not yes and not click.confirm("Are you sure you want to delete this time entry?"):
        console.print("Cancelled")
        return

    async def action(services: Services) -> MutationResult:
        entry = resolve_entry(services.session.entries.snapshot(), entry_id)
        return await services.controller.delete_entry(entry.id)

    result = run_with_services(ctx, action)
    if not result.ok:
        report_failure(result)
    console.print("[green]✓[/green] Time entry deleted")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
