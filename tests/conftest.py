"""Pytest configuration and fixtures for Codepad tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from codepad.api.main import create_app
from codepad.assistant.client import CodeAssistant
from codepad.config import (
    CODEPAD_AI_LATENCY_SECONDS_ENV,
    CODEPAD_API_KEYS_JSON_ENV,
    CODEPAD_DATABASE_URL_ENV,
    CODEPAD_OBJECT_STORE_BACKEND_ENV,
    CODEPAD_OBJECT_STORE_BASE_DIR_ENV,
    CODEPAD_SESSION_SECRET_ENV,
    CODEPAD_STORAGE_CONTAINER_ENV,
    CODEPAD_STORAGE_TIMEOUT_SECONDS_ENV,
    CODEPAD_SUPABASE_SERVICE_ROLE_KEY_ENV,
    CODEPAD_SUPABASE_URL_ENV,
    Settings,
)
from codepad.files.service import FileNamespaceService
from codepad.storage.filesystem_store import FilesystemObjectStore

_CODEPAD_ENV_VARS = (
    CODEPAD_AI_LATENCY_SECONDS_ENV,
    CODEPAD_API_KEYS_JSON_ENV,
    CODEPAD_DATABASE_URL_ENV,
    CODEPAD_OBJECT_STORE_BACKEND_ENV,
    CODEPAD_OBJECT_STORE_BASE_DIR_ENV,
    CODEPAD_SESSION_SECRET_ENV,
    CODEPAD_STORAGE_CONTAINER_ENV,
    CODEPAD_STORAGE_TIMEOUT_SECONDS_ENV,
    CODEPAD_SUPABASE_SERVICE_ROLE_KEY_ENV,
    CODEPAD_SUPABASE_URL_ENV,
    "CODEPAD_OTEL_ENABLED",
)


@pytest.fixture(autouse=True)
def isolate_codepad_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove CODEPAD_* settings inherited from the developer's shell."""
    for name in _CODEPAD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fs_store(tmp_path: Path) -> FilesystemObjectStore:
    """A filesystem store whose container has been created."""
    store = FilesystemObjectStore(base_dir=tmp_path)
    store.create_container()
    return store


@pytest.fixture
def files_service(fs_store: FilesystemObjectStore) -> FileNamespaceService:
    """A FileNamespaceService over the filesystem store."""
    return FileNamespaceService(fs_store)


API_KEY_U1 = "test-api-key-u1"
API_KEY_U2 = "test-api-key-u2"


@pytest.fixture
def api_keys(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Register API keys for users u1 and u2."""
    registry = {
        API_KEY_U1: {"user_id": "u1", "name": "User One", "email": "one@example.com"},
        API_KEY_U2: {"user_id": "u2", "name": "User Two"},
    }
    monkeypatch.setenv(CODEPAD_API_KEYS_JSON_ENV, json.dumps(registry))
    return {"u1": API_KEY_U1, "u2": API_KEY_U2}


@pytest.fixture
def client(fs_store: FilesystemObjectStore, api_keys: dict[str, str]) -> TestClient:
    """Test client over the filesystem store with an instant assistant."""
    app = create_app(
        settings=Settings(),
        store=fs_store,
        assistant=CodeAssistant(latency_seconds=0),
    )
    return TestClient(app)
