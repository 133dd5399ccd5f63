"""Tests for the Supabase Storage backend.

Uses httpx.MockTransport for deterministic testing with no live network calls.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx
import pytest

from codepad.storage.errors import (
    ContainerExistsError,
    ObjectNotFoundError,
    ObjectTooLargeError,
    PathTraversalError,
    StorageBackendError,
)
from codepad.storage.supabase_store import SupabaseObjectStore, build_policy_statement

PROJECT_URL = "https://proj.supabase.co"
SERVICE_KEY = "service-role-key"
BUCKET = "code-editor"


class FakeStorageApi:
    """Minimal in-memory stand-in for the Supabase Storage REST API."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.buckets: set[str] = set()
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/storage/v1")
        object_prefix = f"/object/{BUCKET}/"
        authenticated_prefix = f"/object/authenticated/{BUCKET}/"
        info_prefix = f"/object/info/authenticated/{BUCKET}/"

        if request.method == "POST" and path == "/bucket":
            body = json.loads(request.content)
            if body["id"] in self.buckets:
                return httpx.Response(400, json={"message": "The resource already exists"})
            self.buckets.add(body["id"])
            return httpx.Response(200, json={"name": body["id"]})

        if request.method == "POST" and path == f"/object/list/{BUCKET}":
            body = json.loads(request.content)
            page = self._list(body["prefix"], body["offset"], body["limit"])
            return httpx.Response(200, json=page)

        if request.method == "POST" and path.startswith(object_prefix):
            key = path.removeprefix(object_prefix)
            raw_metadata = request.headers.get("x-metadata")
            metadata = json.loads(base64.b64decode(raw_metadata)) if raw_metadata else {}
            self.objects[key] = {
                "body": request.content,
                "metadata": metadata,
                "content_type": request.headers.get("content-type"),
                "upsert": request.headers.get("x-upsert"),
            }
            return httpx.Response(200, json={"Key": f"{BUCKET}/{key}"})

        if request.method == "GET" and path.startswith(info_prefix):
            key = path.removeprefix(info_prefix)
            if key not in self.objects:
                return httpx.Response(400, json={"message": "Object not found"})
            stored = self.objects[key]
            return httpx.Response(
                200,
                json={
                    "name": key,
                    "size": len(stored["body"]),
                    "content_type": stored["content_type"],
                    "last_modified": "2024-05-01T12:00:00.000Z",
                    "metadata": stored["metadata"],
                },
            )

        if request.method == "GET" and path.startswith(authenticated_prefix):
            key = path.removeprefix(authenticated_prefix)
            if key not in self.objects:
                return httpx.Response(400, json={"message": "Object not found"})
            return httpx.Response(200, content=self.objects[key]["body"])

        if request.method == "DELETE" and path == f"/object/{BUCKET}":
            body = json.loads(request.content)
            removed = [{"name": k} for k in body["prefixes"] if self.objects.pop(k, None)]
            return httpx.Response(200, json=removed)

        return httpx.Response(404, json={"message": f"Unhandled {request.method} {path}"})

    def _list(self, prefix: str, offset: int, limit: int) -> list[dict[str, Any]]:
        children: dict[str, dict[str, Any]] = {}
        for key in sorted(self.objects):
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix) :]
            head, sep, _ = rest.partition("/")
            if sep:
                children.setdefault(head, {"name": head, "id": None})
            else:
                children[head] = {"name": head, "id": f"id-{head}"}
        return list(children.values())[offset : offset + limit]


@pytest.fixture
def fake_api() -> FakeStorageApi:
    return FakeStorageApi()


@pytest.fixture
def store(fake_api: FakeStorageApi) -> SupabaseObjectStore:
    client = httpx.Client(transport=httpx.MockTransport(fake_api))
    return SupabaseObjectStore(PROJECT_URL, SERVICE_KEY, http_client=client)


def _store_with_handler(handler: Any) -> SupabaseObjectStore:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SupabaseObjectStore(PROJECT_URL, SERVICE_KEY, http_client=client)


class TestObjects:
    def test_put_sends_upsert_and_metadata(
        self, store: SupabaseObjectStore, fake_api: FakeStorageApi
    ) -> None:
        store.put(
            "users/u1/files/f1",
            b"let x = 1;",
            metadata={"name": "a.js", "language": "javascript"},
            content_type="text/plain",
        )

        stored = fake_api.objects["users/u1/files/f1"]
        assert stored["body"] == b"let x = 1;"
        assert stored["metadata"] == {"name": "a.js", "language": "javascript"}
        assert stored["upsert"] == "true"

        request = fake_api.requests[-1]
        assert request.headers["authorization"] == f"Bearer {SERVICE_KEY}"
        assert request.headers["apikey"] == SERVICE_KEY
        assert request.headers["cache-control"] == "max-age=3600"

    def test_get_returns_body_and_metadata(self, store: SupabaseObjectStore) -> None:
        store.put("users/u1/files/f1", b"print(1)", metadata={"language": "python"})

        result = store.get("users/u1/files/f1")

        assert result.body == b"print(1)"
        assert result.metadata.user_metadata == {"language": "python"}
        assert result.metadata.size_bytes == len(b"print(1)")
        assert result.metadata.last_modified is not None
        assert result.metadata.last_modified.year == 2024

    def test_head_reads_info_endpoint(
        self, store: SupabaseObjectStore, fake_api: FakeStorageApi
    ) -> None:
        store.put("users/u1/files/f1", b"x", metadata={"name": "n"})

        meta = store.head("users/u1/files/f1")

        assert meta.user_metadata == {"name": "n"}
        assert "/object/info/authenticated/" in fake_api.requests[-1].url.path

    def test_missing_object_maps_to_not_found(self, store: SupabaseObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            store.get("users/u1/files/missing")

        with pytest.raises(ObjectNotFoundError):
            store.head("users/u1/files/missing")

    def test_forbidden_maps_to_not_found(self) -> None:
        store = _store_with_handler(
            lambda request: httpx.Response(403, json={"message": "new row violates policy"})
        )

        with pytest.raises(ObjectNotFoundError):
            store.get("users/u1/files/f1")

    def test_server_error_maps_to_backend_error(self) -> None:
        store = _store_with_handler(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(StorageBackendError) as exc_info:
            store.get("users/u1/files/f1")

        assert not isinstance(exc_info.value, ObjectNotFoundError)

    def test_payload_too_large(self) -> None:
        store = _store_with_handler(
            lambda request: httpx.Response(413, json={"message": "Payload too large"})
        )

        with pytest.raises(ObjectTooLargeError):
            store.put("users/u1/files/f1", b"x" * 10)

    def test_timeout_maps_to_backend_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        store = _store_with_handler(handler)

        with pytest.raises(StorageBackendError, match="timed out") as exc_info:
            store.head("users/u1/files/f1")

        assert isinstance(exc_info.value.cause, httpx.TimeoutException)

    def test_connection_error_maps_to_backend_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        store = _store_with_handler(handler)

        with pytest.raises(StorageBackendError):
            store.list("users/u1/files/")

    def test_unsafe_key_never_sent(
        self, store: SupabaseObjectStore, fake_api: FakeStorageApi
    ) -> None:
        with pytest.raises(PathTraversalError):
            store.put("users/../u2/files/f1", b"x")

        assert fake_api.requests == []


class TestListAndDelete:
    def test_list_marks_folders(self, store: SupabaseObjectStore) -> None:
        store.put("users/u1/files/a", b"1")
        store.put("users/u1/files/nested/b", b"2")

        entries = store.list("users/u1/files/")

        assert {(e.name, e.is_folder) for e in entries} == {("a", False), ("nested", True)}

    def test_list_follows_pagination(self, store: SupabaseObjectStore) -> None:
        for i in range(105):
            store.put(f"users/u1/files/f{i:03d}", b"x")

        entries = store.list("users/u1/files/")

        assert len(entries) == 105
        assert entries[0].name == "f000"
        assert entries[-1].name == "f104"

    def test_list_malformed_response(self) -> None:
        store = _store_with_handler(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(StorageBackendError, match="malformed"):
            store.list("users/u1/files/")

    def test_delete_existing_object(
        self, store: SupabaseObjectStore, fake_api: FakeStorageApi
    ) -> None:
        store.put("users/u1/files/f1", b"x")

        store.delete("users/u1/files/f1")

        assert "users/u1/files/f1" not in fake_api.objects

    def test_delete_missing_object(self, store: SupabaseObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            store.delete("users/u1/files/missing")


class TestBucketAndPolicies:
    def test_create_bucket_then_exists(self, store: SupabaseObjectStore) -> None:
        store.create_container(public=False)

        with pytest.raises(ContainerExistsError):
            store.create_container(public=False)

    def test_create_bucket_sends_private_limit(
        self, store: SupabaseObjectStore, fake_api: FakeStorageApi
    ) -> None:
        store.create_container(public=False, file_size_limit=10485760)

        body = json.loads(fake_api.requests[-1].content)
        assert body == {
            "id": BUCKET,
            "name": BUCKET,
            "public": False,
            "file_size_limit": 10485760,
        }

    def test_create_bucket_other_failure(self) -> None:
        store = _store_with_handler(lambda request: httpx.Response(500, json={"error": "boom"}))

        with pytest.raises(StorageBackendError, match="boom"):
            store.create_container()

    def test_create_policy_without_database_url(self, store: SupabaseObjectStore) -> None:
        with pytest.raises(StorageBackendError, match="database URL"):
            store.create_policy("p", definition="true", operation="SELECT")

    def test_policy_statement_for_select(self) -> None:
        statement = build_policy_statement(
            "User files access",
            container=BUCKET,
            definition="((storage.foldername(name))[1] = auth.uid()::text)",
            operation="SELECT",
        )

        assert statement == (
            'CREATE POLICY "User files access" ON storage.objects FOR SELECT '
            "TO authenticated USING (bucket_id = 'code-editor' AND "
            "((storage.foldername(name))[1] = auth.uid()::text))"
        )

    def test_policy_statement_for_insert_uses_with_check(self) -> None:
        statement = build_policy_statement(
            'Quote "test"', container=BUCKET, definition="true", operation="INSERT"
        )

        assert 'CREATE POLICY "Quote ""test"""' in statement
        assert "WITH CHECK (bucket_id = 'code-editor' AND true)" in statement


def test_backend_name(store: SupabaseObjectStore) -> None:
    assert store.backend_name == "supabase"
    assert store.container == BUCKET
