"""Tests for the /v1/files routes."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from codepad.api.main import create_app
from codepad.assistant.client import CodeAssistant
from codepad.config import Settings
from codepad.storage.errors import StorageBackendError
from codepad.storage.filesystem_store import FilesystemObjectStore


@pytest.fixture
def u1(api_keys: dict[str, str]) -> dict[str, str]:
    return {"X-Codepad-API-Key": api_keys["u1"]}


@pytest.fixture
def u2(api_keys: dict[str, str]) -> dict[str, str]:
    return {"X-Codepad-API-Key": api_keys["u2"]}


def _save(client: TestClient, headers: dict[str, str], **body: Any) -> dict[str, Any]:
    response = client.post("/v1/files", json=body, headers=headers)
    assert response.status_code == 200, response.text
    data: dict[str, Any] = response.json()
    return data


class TestSaveAndGet:
    def test_save_then_get(self, client: TestClient, u1: dict[str, str]) -> None:
        saved = _save(
            client, u1, id="f1", name="a.js", content="let x=1", language="javascript"
        )

        assert saved["success"] is True
        assert saved["file"]["id"] == "f1"
        datetime.fromisoformat(saved["file"]["last_modified"])

        response = client.get("/v1/files/f1", headers=u1)

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "a.js"
        assert body["content"] == "let x=1"
        assert body["language"] == "javascript"

    def test_save_without_id_creates_new_file(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        saved = _save(client, u1, name="new.py", content="print(1)", language="python")

        file_id = saved["file"]["id"]
        assert file_id
        assert client.get(f"/v1/files/{file_id}", headers=u1).json()["content"] == "print(1)"

    def test_language_defaults_to_javascript(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        saved = _save(client, u1, id="f1", name="a", content="x")

        assert saved["file"]["language"] == "javascript"

    def test_upload_route(self, client: TestClient, u1: dict[str, str]) -> None:
        response = client.post(
            "/v1/files/upload",
            json={"name": "index.html", "content": "<p></p>", "language": "html"},
            headers=u1,
        )

        assert response.status_code == 200
        file_id = response.json()["file"]["id"]
        assert client.get(f"/v1/files/{file_id}", headers=u1).json()["language"] == "html"

    def test_client_timestamp_accepted_and_ignored(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        saved = _save(
            client,
            u1,
            id="f1",
            name="a.js",
            content="let x=1;",
            language="javascript",
            lastModified="2024-01-01T00:00:00Z",
        )

        assert not saved["file"]["last_modified"].startswith("2024-01-01")

    def test_fetched_file_can_be_saved_back(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        _save(client, u1, id="f1", name="a.js", content="v1")
        fetched = client.get("/v1/files/f1", headers=u1).json()
        fetched["content"] = "v2"

        saved = _save(client, u1, **fetched)

        assert saved["file"]["content"] == "v2"
        assert client.get("/v1/files/f1", headers=u1).json()["name"] == "a.js"


class TestListAndDelete:
    def test_list_returns_summaries_without_content(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        _save(client, u1, id="f1", name="a.js", content="1")
        _save(client, u1, id="f2", name="b.py", content="2", language="python")

        response = client.get("/v1/files", headers=u1)

        assert response.status_code == 200
        body = response.json()
        assert {item["id"] for item in body["items"]} == {"f1", "f2"}
        assert all("content" not in item for item in body["items"])
        assert body["skipped"] == []

    def test_empty_listing(self, client: TestClient, u1: dict[str, str]) -> None:
        assert client.get("/v1/files", headers=u1).json() == {"items": [], "skipped": []}

    def test_delete(self, client: TestClient, u1: dict[str, str]) -> None:
        _save(client, u1, id="f1", name="a", content="x")

        response = client.delete("/v1/files/f1", headers=u1)

        assert response.status_code == 204
        assert client.get("/v1/files/f1", headers=u1).status_code == 404


class TestIsolation:
    def test_users_see_only_their_files(
        self, client: TestClient, u1: dict[str, str], u2: dict[str, str]
    ) -> None:
        _save(client, u1, id="shared-id", name="mine", content="secret")

        assert client.get("/v1/files", headers=u2).json()["items"] == []
        assert client.get("/v1/files/shared-id", headers=u2).status_code == 404
        assert client.delete("/v1/files/shared-id", headers=u2).status_code == 404
        assert client.get("/v1/files/shared-id", headers=u1).json()["content"] == "secret"

    def test_same_id_for_two_users_is_two_files(
        self, client: TestClient, u1: dict[str, str], u2: dict[str, str]
    ) -> None:
        _save(client, u1, id="f1", name="one", content="1")
        _save(client, u2, id="f1", name="two", content="2")

        assert client.get("/v1/files/f1", headers=u1).json()["content"] == "1"
        assert client.get("/v1/files/f1", headers=u2).json()["content"] == "2"


class TestErrors:
    def test_missing_file_envelope(self, client: TestClient, u1: dict[str, str]) -> None:
        response = client.get(
            "/v1/files/missing", headers={**u1, "X-Request-Id": "req-123"}
        )

        assert response.status_code == 404
        assert response.json() == {
            "code": "not_found",
            "message": "File not found or access denied",
            "details": None,
            "request_id": "req-123",
        }
        assert response.headers["X-Request-Id"] == "req-123"

    def test_unsafe_file_id_is_not_found(self, client: TestClient, u1: dict[str, str]) -> None:
        response = client.get("/v1/files/has%20space", headers=u1)

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_unsafe_id_on_save_is_validation_error(
        self, client: TestClient, u1: dict[str, str]
    ) -> None:
        response = client.post(
            "/v1/files", json={"id": "../u2/files/x", "name": "a", "content": "x"}, headers=u1
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "REQUEST_VALIDATION_FAILED"
        assert body["details"]["errors"][0]["field"] == "file_id"

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "", "content": "x"},
            {"name": "a"},
            {"name": "a", "content": "x", "owner": "u2"},
        ],
    )
    def test_invalid_body(
        self, client: TestClient, u1: dict[str, str], payload: dict[str, Any]
    ) -> None:
        response = client.post("/v1/files", json=payload, headers=u1)

        assert response.status_code == 422
        assert response.json()["code"] == "REQUEST_VALIDATION_FAILED"

    def test_too_large_file(self, tmp_path: Path, api_keys: dict[str, str]) -> None:
        store = FilesystemObjectStore(base_dir=tmp_path)
        store.create_container(file_size_limit=4)
        client = TestClient(
            create_app(settings=Settings(), store=store, assistant=CodeAssistant(0))
        )

        response = client.post(
            "/v1/files",
            json={"id": "f1", "name": "a", "content": "12345"},
            headers={"X-Codepad-API-Key": api_keys["u1"]},
        )

        assert response.status_code == 413
        assert response.json()["code"] == "file_too_large"
        assert response.json()["details"] == {"limit_bytes": 4}

    def test_backend_failure_is_internal_error(
        self,
        fs_store: FilesystemObjectStore,
        u1: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def failing_get(key: str) -> Any:
            raise StorageBackendError(message="disk on fire", key=key)

        monkeypatch.setattr(fs_store, "get", failing_get)
        client = TestClient(
            create_app(settings=Settings(), store=fs_store, assistant=CodeAssistant(0))
        )

        response = client.get("/v1/files/f1", headers=u1)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "internal_error"
        assert "disk on fire" not in body["message"]
