"""Codepad object storage OpenTelemetry tracing integration.

Provides tracing decorators for storage operations.

Security:
    - Never export raw object keys (they embed user ids) in span attributes
    - Never export absolute filesystem paths or credentials
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from codepad.observability.tracing import is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace storage operations with OpenTelemetry.

    Emits spans with safe attributes only: a SHA256 of the key, the backend
    and container names, and result sizes.

    Args:
        operation: Operation name (e.g., "put", "get", "head", "list").

    Returns:
        Decorated function that emits OTel spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, key: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, key, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, key, *args, **kwargs)

            tracer = trace.get_tracer("codepad.object_store")
            with tracer.start_as_current_span(f"codepad.object_store.{operation}") as span:
                key_sha256 = hashlib.sha256(key.encode("utf-8")).hexdigest()
                span.set_attribute("codepad.object_key_sha256", key_sha256)
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                span.set_attribute("storage.container", getattr(self, "container", "unknown"))

                try:
                    result = func(self, key, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if result is not None:
                    _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add size attributes from an operation result to the span."""
    try:
        from codepad.storage.models import StoredObject, StoredObjectMetadata

        metadata: StoredObjectMetadata | None = None
        if isinstance(result, StoredObjectMetadata):
            metadata = result
        elif isinstance(result, StoredObject):
            metadata = result.metadata

        if metadata is not None:
            span.set_attribute("codepad.object_size_bytes", metadata.size_bytes)
            if metadata.content_type:
                span.set_attribute("codepad.object_content_type", metadata.content_type)

        if operation == "list" and isinstance(result, list):
            span.set_attribute("codepad.object_entry_count", len(result))

    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
