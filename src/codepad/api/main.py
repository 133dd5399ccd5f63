"""Codepad FastAPI application factory.

This module provides the create_app() factory for bootstrapping the Codepad API.
"""

from __future__ import annotations

from fastapi import FastAPI

from codepad import __version__
from codepad.api.errors import register_exception_handlers
from codepad.api.middleware.request_id import RequestIdMiddleware
from codepad.api.routes.assistant import router as assistant_router
from codepad.api.routes.files import router as files_router
from codepad.api.routes.health import router as health_router
from codepad.api.routes.storage import router as storage_router
from codepad.assistant.client import AssistantClient, CodeAssistant
from codepad.config import Settings, build_object_store, load_settings
from codepad.files.service import FileNamespaceService, ListingPolicy
from codepad.observability.tracing import configure_tracing, instrument_fastapi, instrument_httpx
from codepad.storage.object_store import ObjectStore


def create_app(
    settings: Settings | None = None,
    store: ObjectStore | None = None,
    files_service: FileNamespaceService | None = None,
    assistant: AssistantClient | None = None,
    listing_policy: ListingPolicy = ListingPolicy.PARTIAL,
) -> FastAPI:
    """Create and configure the Codepad FastAPI application.

    This factory:
    - Resolves settings and the object store (unless injected)
    - Registers RequestIdMiddleware and the exception handlers
    - Mounts the health router (no auth required)
    - Mounts the /v1 routers (auth required)

    Args:
        settings: Optional settings; loaded from the environment if None.
        store: Optional object store for testing. If None, built from settings.
        files_service: Optional FileNamespaceService; overrides store.
        assistant: Optional assistant backend. If None, a CodeAssistant with
            the configured latency.
        listing_policy: Listing policy for the default FileNamespaceService.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = load_settings()

    if files_service is None:
        if store is None:
            store = build_object_store(settings)
        files_service = FileNamespaceService(store, listing_policy=listing_policy)

    if assistant is None:
        assistant = CodeAssistant(latency_seconds=settings.ai_latency_seconds)

    app = FastAPI(
        title="Codepad API",
        description="Per-user code file storage with an editor assistant",
        version=__version__,
    )

    app.state.settings = settings
    app.state.files_service = files_service
    app.state.assistant = assistant

    configure_tracing()
    instrument_httpx()

    app.add_middleware(RequestIdMiddleware)

    instrument_fastapi(app)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(files_router)
    app.include_router(storage_router)
    app.include_router(assistant_router)

    return app
