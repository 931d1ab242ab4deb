"""CLI commands for configuration management."""

import json
import shutil
import sys
from pathlib import Path
from typing import Any, Optional

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from time_ledger.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)

MASK = "********"


def _config_manager(ctx: click.Context) -> ConfigManager:
    config_path: Optional[str] = (ctx.obj or {}).get("config_path")
    try:
        return ConfigManager(Path(config_path) if config_path else None)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def convert_value(value: str) -> Any:
    """Turn a command-line string into a bool, None, int or str."""
    keywords = {"true": True, "yes": True, "false": False, "no": False, "null": None}
    if value.lower() in keywords:
        return keywords[value.lower()]
    try:
        return int(value)
    except ValueError:
        return value


def display_value(key: str, value: Any) -> str:
    if value and key.rsplit(".", 1)[-1].startswith("secret"):
        return MASK
    return str(value)


@click.group()  # type: ignore[misc]
def config() -> None:
    """Inspect and change settings.

    Settings are read from ~/.time-ledger/config.yml unless --config is given.
    """


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """List every setting (secrets masked in the table view)."""
    config_mgr = _config_manager(ctx)

    if as_json:
        click.echo(json.dumps(config_mgr.to_dict(), indent=2))
        return

    table = Table(title="Time Ledger Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key in config_mgr.get_all_keys():
        table.add_row(key, display_value(key, config_mgr.get(key)))

    console.print(table)
    console.print(f"\n[dim]{config_mgr.config_path}[/dim]")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Print one setting.

    Example:
        time-ledger config get general.user_id
    """
    value = _config_manager(ctx).get(key)
    if value is None:
        error_console.print(f"[red]Error:[/red] No setting named '{key}'")
        sys.exit(1)

    click.echo(json.dumps(value, indent=2) if isinstance(value, (dict, list)) else str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one setting.

    'true'/'false' become booleans, 'null' clears a value, and digits become
    integers.

    Example:
        time-ledger config set display.recent_limit 8
    """
    config_mgr = _config_manager(ctx)
    converted = convert_value(value)
    try:
        config_mgr.set(key, converted)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print(f"[green]✓[/green] {key} = {display_value(key, converted)}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Restore default settings, keeping a copy of the current file."""
    config_mgr = _config_manager(ctx)
    if not yes and not click.confirm("Reset all settings to defaults?"):
        console.print("Cancelled")
        return

    if config_mgr.config_path.exists():
        backup_path = config_mgr.config_path.with_suffix(".yml.backup")
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Previous settings saved to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Settings reset to defaults")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Print the settings file location."""
    click.echo(str(_config_manager(ctx).config_path))
