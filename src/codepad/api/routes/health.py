"""Health check endpoint for the Codepad API."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from codepad import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    time: str
    version: str
    storage_backend: str | None = None


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """Health check endpoint (no auth).

    Reports the configured storage backend without touching it.
    """
    service = getattr(request.app.state, "files_service", None)
    return HealthResponse(
        status="ok",
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        storage_backend=service.store.backend_name if service is not None else None,
    )
