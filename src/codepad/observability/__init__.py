"""Codepad observability module.

Optional OpenTelemetry tracing for the API and the storage adapters.
"""

from codepad.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_tracing", "is_tracing_enabled"]
