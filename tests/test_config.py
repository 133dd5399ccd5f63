"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from codepad.config import (
    BACKEND_FILESYSTEM,
    BACKEND_SUPABASE,
    ConfigError,
    Settings,
    build_object_store,
    load_settings,
)
from codepad.storage.filesystem_store import FilesystemObjectStore
from codepad.storage.supabase_store import SupabaseObjectStore


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings({})

        assert settings == Settings()
        assert settings.object_store_backend == BACKEND_FILESYSTEM
        assert settings.storage_container == "code-editor"
        assert settings.storage_timeout_seconds == 10.0
        assert settings.ai_latency_seconds == 1.5

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CODEPAD_STORAGE_CONTAINER", "my-bucket")

        assert load_settings().storage_container == "my-bucket"

    def test_backend_is_case_insensitive(self) -> None:
        settings = load_settings(
            {
                "CODEPAD_OBJECT_STORE_BACKEND": "Supabase",
                "CODEPAD_SUPABASE_URL": "https://proj.supabase.co",
                "CODEPAD_SUPABASE_SERVICE_ROLE_KEY": "key",
            }
        )

        assert settings.object_store_backend == BACKEND_SUPABASE

    def test_session_secret_for_token_issuing(self) -> None:
        settings = load_settings({"CODEPAD_SESSION_SECRET": " s3cret "})

        assert settings.session_secret == "s3cret"
        assert not hasattr(settings, "api_keys_json")

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigError, match="CODEPAD_OBJECT_STORE_BACKEND"):
            load_settings({"CODEPAD_OBJECT_STORE_BACKEND": "s3"})

    @pytest.mark.parametrize(
        "env",
        [
            {"CODEPAD_OBJECT_STORE_BACKEND": "supabase"},
            {"CODEPAD_OBJECT_STORE_BACKEND": "supabase", "CODEPAD_SUPABASE_URL": "https://x"},
            {
                "CODEPAD_OBJECT_STORE_BACKEND": "supabase",
                "CODEPAD_SUPABASE_SERVICE_ROLE_KEY": "  ",
                "CODEPAD_SUPABASE_URL": "https://x",
            },
        ],
    )
    def test_supabase_requires_credentials(self, env: dict[str, str]) -> None:
        with pytest.raises(ConfigError):
            load_settings(env)

    def test_timeouts_parsed(self) -> None:
        settings = load_settings(
            {"CODEPAD_STORAGE_TIMEOUT_SECONDS": "2.5", "CODEPAD_AI_LATENCY_SECONDS": "0"}
        )

        assert settings.storage_timeout_seconds == 2.5
        assert settings.ai_latency_seconds == 0.0

    @pytest.mark.parametrize("raw", ["soon", "-1"])
    def test_bad_numbers_fall_back_with_warning(
        self, raw: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="codepad.config"):
            settings = load_settings({"CODEPAD_AI_LATENCY_SECONDS": raw})

        assert settings.ai_latency_seconds == 1.5
        assert "CODEPAD_AI_LATENCY_SECONDS" in caplog.text


class TestBuildObjectStore:
    def test_filesystem(self, tmp_path: Path) -> None:
        store = build_object_store(
            Settings(object_store_base_dir=str(tmp_path), storage_container="files")
        )

        assert isinstance(store, FilesystemObjectStore)
        assert store.container == "files"
        assert store.base_dir == tmp_path.resolve()

    def test_supabase(self) -> None:
        store = build_object_store(
            Settings(
                object_store_backend=BACKEND_SUPABASE,
                supabase_url="https://proj.supabase.co",
                supabase_service_role_key="key",
            )
        )

        assert isinstance(store, SupabaseObjectStore)
        assert store.backend_name == "supabase"
        assert store.container == "code-editor"
