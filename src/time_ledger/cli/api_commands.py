"""CLI commands for the REST API: serving it and issuing tokens."""

import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from time_ledger.api.auth import create_token_for_user
from time_ledger.api.server import run_server
from time_ledger.core.config import ConfigManager
from time_ledger.core.storage import StorageManager
from time_ledger.sync.remote import LocalRemoteStore

console = Console()
error_console = Console(stderr=True)


def _config_manager(ctx: click.Context) -> ConfigManager:
    config_path: Optional[str] = (ctx.obj or {}).get("config_path")
    return ConfigManager(Path(config_path) if config_path else None)


@click.group()
def api() -> None:
    """API server management commands."""
    pass


@api.command()
@click.option("--host", default=None, help="Host address (default: from config)")
@click.option("--port", type=int, default=None, help="Port number (default: from config)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the API server.

    Examples:
        time-ledger api serve
        time-ledger api serve --host 0.0.0.0 --port 8080
    """
    config_mgr = _config_manager(ctx)

    if not config_mgr.get("api.enabled", False):
        error_console.print("[yellow]API is not enabled in configuration[/yellow]")
        console.print("\nTo enable the API, run:")
        console.print("  time-ledger config set api.enabled true")
        sys.exit(1)

    config_mgr.ensure_api_secret_key()

    final_host = host or config_mgr.get("api.host", "localhost")
    final_port = port or config_mgr.get("api.port", 8000)

    data_dir = (ctx.obj or {}).get("data_dir")
    remote = LocalRemoteStore(StorageManager(Path(data_dir))) if data_dir else None

    console.print("[bold]Starting Time Ledger API server[/bold]")
    console.print(f"   URL: http://{final_host}:{final_port}")
    console.print(f"   Docs: http://{final_host}:{final_port}/docs")
    if reload:
        console.print("   Mode: Development (auto-reload enabled)")

    try:
        run_server(
            host=final_host,
            port=final_port,
            reload=reload,
            config=config_mgr,
            remote=remote,
        )
    except KeyboardInterrupt:
        console.print("\nShutting down API server")


@api.group()
def token() -> None:
    """Manage API authentication tokens."""
    pass


@token.command("create")
@click.option("--user-id", default=None, help="Token subject (default: general.user_id)")
@click.option("--expires", type=int, help="Token expiry time in hours (default: from config)")
@click.pass_context
def create_token_cmd(ctx: click.Context, user_id: Optional[str], expires: Optional[int]) -> None:
    """Create a new authentication token.

    Examples:
        time-ledger api token create
        time-ledger api token create --user-id alice --expires 48
    """
    config_mgr = _config_manager(ctx)
    user_id = user_id or (ctx.obj or {}).get("user_id")

    token_data = create_token_for_user(
        config_mgr,
        user_id=user_id,
        expires_delta=timedelta(hours=expires) if expires is not None else None,
    )

    # Plain echo so long tokens are never wrapped
    click.echo("Token created successfully")
    click.echo(f"Token: {token_data['access_token']}")
    click.echo(f"Expires in: {token_data['expires_in'] // 3600} hours")
    click.echo("Use it as: Authorization: Bearer <token>")
