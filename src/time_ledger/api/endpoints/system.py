"""System endpoints."""

from datetime import datetime

from fastapi import APIRouter  # type: ignore[import-untyped]

from time_ledger import __version__
from time_ledger.api.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check; does not require authentication."""
    return HealthResponse(status="healthy", version=__version__, timestamp=datetime.now())
