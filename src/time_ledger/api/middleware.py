"""Middleware and error handlers for the FastAPI application."""

import logging

from fastapi import FastAPI, Request, status  # type: ignore[import-untyped]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from time_ledger.core.config import ConfigManager
from time_ledger.core.errors import (
    AccessDenied,
    NotFound,
    RemoteError,
    RemoteUnavailable,
    TimeLedgerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (RemoteUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RemoteError, status.HTTP_502_BAD_GATEWAY),
)


def status_for_error(error: TimeLedgerError) -> int:
    """HTTP status code for a domain error."""
    for error_type, code in ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_cors(app: FastAPI, config: ConfigManager) -> None:
    """Configure CORS middleware from the api.cors section."""
    if not config.get("api.cors.enabled", True):
        return

    origins = config.get("api.cors.origins", ["http://localhost:3000"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Translate domain errors into JSON responses."""

    @app.exception_handler(TimeLedgerError)
    async def handle_domain_error(request: Request, exc: TimeLedgerError) -> JSONResponse:
        code = status_for_error(exc)
        if code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=code, content={"detail": str(exc), "kind": exc.kind})


def setup_middleware(app: FastAPI, config: ConfigManager) -> None:
    """Set up CORS and error handlers."""
    setup_cors(app, config)
    setup_error_handlers(app)
