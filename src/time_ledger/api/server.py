"""FastAPI application server."""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from time_ledger import __version__
from time_ledger.api.middleware import setup_middleware
from time_ledger.core.config import ConfigManager
from time_ledger.sync.remote import RemoteStore


def create_app(
    config: Optional[ConfigManager] = None, remote: Optional[RemoteStore] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Optional configuration manager (creates default if None)
        remote: Remote store to use for every request (default: local CSV store)

    Returns:
        Configured FastAPI application instance
    """
    if config is None:
        config = ConfigManager()

    app = FastAPI(
        title="Time Ledger API",
        description="REST API for Time Ledger time tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.config = config
    app.state.remote = remote

    setup_middleware(app, config)

    from time_ledger.api.endpoints import entries, projects, system

    app.include_router(system.router, prefix="/api/v1", tags=["system"])
    app.include_router(projects.router, prefix="/api/v1/projects", tags=["projects"])
    app.include_router(entries.router, prefix="/api/v1/entries", tags=["entries"])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse(
            {
                "message": "Time Ledger API",
                "version": __version__,
                "docs": "/docs",
                "health": "/api/v1/health",
            }
        )

    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    config_path: Optional[Path] = None,
    config: Optional[ConfigManager] = None,
    remote: Optional[RemoteStore] = None,
) -> None:
    """Run the API server using Uvicorn. Blocks until stopped."""
    import uvicorn  # type: ignore[import-untyped]

    if config is None:
        config = ConfigManager(config_path)

    if reload:
        # Reload needs an import string, so the app is rebuilt from the default config
        uvicorn.run(
            "time_ledger.api.server:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level=config.get("api.advanced.log_level", "info"),
        )
        return

    uvicorn.run(
        create_app(config, remote),
        host=host,
        port=port,
        log_level=config.get("api.advanced.log_level", "info"),
        access_log=config.get("api.advanced.access_log", True),
    )
