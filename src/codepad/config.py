"""Runtime configuration for Codepad.

Settings are read from the environment only; there are no config files.

Environment Variables:
    CODEPAD_OBJECT_STORE_BACKEND: "filesystem" (default) or "supabase"
    CODEPAD_OBJECT_STORE_BASE_DIR: Base directory for the filesystem backend
    CODEPAD_STORAGE_CONTAINER: Container (bucket) name (default: code-editor)
    CODEPAD_SUPABASE_URL: Supabase project URL (supabase backend)
    CODEPAD_SUPABASE_SERVICE_ROLE_KEY: Service role key (supabase backend)
    CODEPAD_DATABASE_URL: Postgres URL used to apply access policies (optional)
    CODEPAD_STORAGE_TIMEOUT_SECONDS: Hosted storage request timeout (default: 10)
    CODEPAD_AI_LATENCY_SECONDS: Simulated assistant latency (default: 1.5)
    CODEPAD_SESSION_SECRET: HS256 secret for bearer session tokens
    CODEPAD_API_KEYS_JSON: API key registry (see codepad.api.auth)

The two auth variables are read by codepad.api.auth on every request, not
through Settings; Settings only carries the session secret for issuing
tokens from the CLI.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from codepad.storage.object_store import DEFAULT_CONTAINER, ObjectStore

logger = logging.getLogger(__name__)

CODEPAD_OBJECT_STORE_BACKEND_ENV = "CODEPAD_OBJECT_STORE_BACKEND"
CODEPAD_OBJECT_STORE_BASE_DIR_ENV = "CODEPAD_OBJECT_STORE_BASE_DIR"
CODEPAD_STORAGE_CONTAINER_ENV = "CODEPAD_STORAGE_CONTAINER"
CODEPAD_SUPABASE_URL_ENV = "CODEPAD_SUPABASE_URL"
CODEPAD_SUPABASE_SERVICE_ROLE_KEY_ENV = "CODEPAD_SUPABASE_SERVICE_ROLE_KEY"
CODEPAD_DATABASE_URL_ENV = "CODEPAD_DATABASE_URL"
CODEPAD_STORAGE_TIMEOUT_SECONDS_ENV = "CODEPAD_STORAGE_TIMEOUT_SECONDS"
CODEPAD_AI_LATENCY_SECONDS_ENV = "CODEPAD_AI_LATENCY_SECONDS"
CODEPAD_SESSION_SECRET_ENV = "CODEPAD_SESSION_SECRET"
CODEPAD_API_KEYS_JSON_ENV = "CODEPAD_API_KEYS_JSON"

BACKEND_FILESYSTEM = "filesystem"
BACKEND_SUPABASE = "supabase"
SUPPORTED_BACKENDS = frozenset({BACKEND_FILESYSTEM, BACKEND_SUPABASE})

DEFAULT_STORAGE_TIMEOUT_SECONDS = 10.0
DEFAULT_AI_LATENCY_SECONDS = 1.5


class ConfigError(Exception):
    """Raised when configuration is missing or invalid.

    Startup should not proceed with an unusable storage configuration.
    """

    pass


@dataclass(frozen=True)
class Settings:
    """Resolved Codepad settings."""

    object_store_backend: str = BACKEND_FILESYSTEM
    object_store_base_dir: str | None = None
    storage_container: str = DEFAULT_CONTAINER
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    database_url: str | None = None
    storage_timeout_seconds: float = DEFAULT_STORAGE_TIMEOUT_SECONDS
    ai_latency_seconds: float = DEFAULT_AI_LATENCY_SECONDS
    session_secret: str | None = None


def _optional(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _non_negative_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _optional(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s=%r; using default %s", name, raw, default)
        return default
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Load settings from the environment.

    Args:
        env: Mapping to read from (defaults to os.environ).

    Returns:
        Frozen Settings.

    Raises:
        ConfigError: If the backend is unknown, or the supabase backend is
            selected without a URL and service role key.
    """
    if env is None:
        env = os.environ

    backend = (_optional(env, CODEPAD_OBJECT_STORE_BACKEND_ENV) or BACKEND_FILESYSTEM).lower()
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported {CODEPAD_OBJECT_STORE_BACKEND_ENV}={backend!r}; "
            f"expected one of {sorted(SUPPORTED_BACKENDS)}"
        )

    settings = Settings(
        object_store_backend=backend,
        object_store_base_dir=_optional(env, CODEPAD_OBJECT_STORE_BASE_DIR_ENV),
        storage_container=_optional(env, CODEPAD_STORAGE_CONTAINER_ENV) or DEFAULT_CONTAINER,
        supabase_url=_optional(env, CODEPAD_SUPABASE_URL_ENV),
        supabase_service_role_key=_optional(env, CODEPAD_SUPABASE_SERVICE_ROLE_KEY_ENV),
        database_url=_optional(env, CODEPAD_DATABASE_URL_ENV),
        storage_timeout_seconds=_non_negative_float(
            env, CODEPAD_STORAGE_TIMEOUT_SECONDS_ENV, DEFAULT_STORAGE_TIMEOUT_SECONDS
        ),
        ai_latency_seconds=_non_negative_float(
            env, CODEPAD_AI_LATENCY_SECONDS_ENV, DEFAULT_AI_LATENCY_SECONDS
        ),
        session_secret=_optional(env, CODEPAD_SESSION_SECRET_ENV),
    )

    if backend == BACKEND_SUPABASE and not (
        settings.supabase_url and settings.supabase_service_role_key
    ):
        raise ConfigError(
            f"{CODEPAD_SUPABASE_URL_ENV} and {CODEPAD_SUPABASE_SERVICE_ROLE_KEY_ENV} "
            "are required for the supabase backend"
        )

    return settings


def build_object_store(settings: Settings) -> ObjectStore:
    """Create the object store selected by settings."""
    if settings.object_store_backend == BACKEND_SUPABASE:
        from codepad.storage.supabase_store import SupabaseObjectStore

        assert settings.supabase_url is not None
        assert settings.supabase_service_role_key is not None
        return SupabaseObjectStore(
            settings.supabase_url,
            settings.supabase_service_role_key,
            container=settings.storage_container,
            timeout_seconds=settings.storage_timeout_seconds,
            database_url=settings.database_url,
        )

    from codepad.storage.filesystem_store import FilesystemObjectStore

    return FilesystemObjectStore(
        base_dir=settings.object_store_base_dir,
        container=settings.storage_container,
    )
