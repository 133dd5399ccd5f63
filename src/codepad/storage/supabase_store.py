"""Codepad Supabase Storage backend.

Talks to the Supabase Storage REST API with a service-role key. Access
policies live in Postgres (storage.objects row level security), so
create_policy issues CREATE POLICY statements through SQLAlchemy when a
database URL is configured.

Environment Variables (read by codepad.config):
    CODEPAD_SUPABASE_URL: Project URL, e.g. https://abc.supabase.co
    CODEPAD_SUPABASE_SERVICE_ROLE_KEY: Service role key (server only)
    CODEPAD_DATABASE_URL: Postgres URL used for policy management (optional)
"""

from __future__ import annotations

import base64
import json
import logging
import urllib.parse
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from codepad.storage.errors import (
    ContainerExistsError,
    ObjectNotFoundError,
    ObjectTooLargeError,
    StorageBackendError,
)
from codepad.storage.keys import (
    validate_container_name,
    validate_key,
    validate_policy_operation,
)
from codepad.storage.models import ObjectEntry, StoredObject, StoredObjectMetadata
from codepad.storage.object_store import (
    DEFAULT_CONTAINER,
    DEFAULT_FILE_SIZE_LIMIT,
    ObjectStore,
)
from codepad.storage.tracing import traced_storage_operation

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
LIST_PAGE_SIZE = 100
CACHE_CONTROL = "max-age=3600"
POLICY_ROLE = "authenticated"

_NOT_FOUND_STATUSES = frozenset({400, 403, 404})
_SYSTEM_METADATA_KEYS = frozenset(
    {"size", "mimetype", "eTag", "cacheControl", "lastModified", "contentLength", "httpStatusCode"}
)


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the storage API."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from a storage API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for field in ("message", "error", "msg"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


def _encode_metadata(metadata: dict[str, str]) -> str:
    """Encode user metadata for the x-metadata upload header."""
    raw = json.dumps(metadata, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _extract_user_metadata(info: dict[str, Any]) -> dict[str, str]:
    """Pick the user-supplied metadata out of an object info payload."""
    raw = info.get("user_metadata")
    if not isinstance(raw, dict):
        raw = info.get("metadata")
        if not isinstance(raw, dict):
            return {}
        raw = {k: v for k, v in raw.items() if k not in _SYSTEM_METADATA_KEYS}
    return {str(k): str(v) for k, v in raw.items() if isinstance(v, str | int | float)}


class SupabaseObjectStore(ObjectStore):
    """Supabase Storage implementation of ObjectStore.

    Uploads always send x-upsert so put() replaces existing objects, and the
    user metadata travels in the x-metadata header of the same request.
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        *,
        container: str = DEFAULT_CONTAINER,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        database_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Supabase storage backend.

        Args:
            url: Supabase project URL.
            service_role_key: Service role key used for every storage call.
            container: Bucket name this store is bound to.
            timeout_seconds: Timeout applied to every HTTP request.
            database_url: Postgres URL for policy management; policies cannot
                be created without it.
            http_client: Optional httpx.Client for dependency injection (testing).
        """
        validate_container_name(container)

        self._container = container
        self._storage_url = f"{url.rstrip('/')}/storage/v1"
        self._database_url = database_url
        self._engine: Engine | None = None

        headers = {
            "Authorization": f"Bearer {service_role_key}",
            "apikey": service_role_key,
        }
        if http_client is None:
            http_client = httpx.Client(
                base_url=self._storage_url,
                headers=headers,
                timeout=timeout_seconds,
            )
            self._owns_client = True
        else:
            http_client.headers.update(headers)
            self._owns_client = False
        self._client = http_client

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "supabase"

    @property
    def container(self) -> str:
        """Return the bucket name."""
        return self._container

    def close(self) -> None:
        """Close the HTTP client and database engine owned by this store."""
        if self._owns_client:
            self._client.close()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _object_url(self, key: str, *, kind: str = "") -> str:
        quoted = urllib.parse.quote(key, safe="/")
        middle = f"/{kind}" if kind else ""
        return f"{self._storage_url}/object{middle}/{self._container}/{quoted}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        key: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, converting transport failures to StorageBackendError."""
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise StorageBackendError(
                message="Storage request timed out",
                container=self._container,
                key=key,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise StorageBackendError(
                message=f"Storage request failed: {e}",
                container=self._container,
                key=key,
                cause=e,
            ) from e

    def _raise_for_object_status(self, response: httpx.Response, key: str) -> None:
        """Map an error response on a single-object call to a storage error."""
        if response.is_success:
            return
        message = _error_message(response)
        if response.status_code in _NOT_FOUND_STATUSES:
            raise ObjectNotFoundError(container=self._container, key=key)
        raise StorageBackendError(
            message=f"Storage API error {response.status_code}: {message}",
            container=self._container,
            key=key,
        )

    @traced_storage_operation("put")
    def put(
        self,
        key: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        """Upload an object with upsert semantics."""
        validate_key(key, self._container)

        headers = {
            "x-upsert": "true",
            "cache-control": CACHE_CONTROL,
            "content-type": content_type or "application/octet-stream",
        }
        if metadata:
            headers["x-metadata"] = _encode_metadata(metadata)

        response = self._request(
            "POST",
            self._object_url(key),
            key=key,
            content=data,
            headers=headers,
        )

        if not response.is_success:
            message = _error_message(response)
            if response.status_code == 413 or "too large" in message.lower():
                raise ObjectTooLargeError(
                    message=message,
                    container=self._container,
                    key=key,
                    size_bytes=len(data),
                )
            raise StorageBackendError(
                message=f"Upload failed with {response.status_code}: {message}",
                container=self._container,
                key=key,
            )

        logger.debug(
            "Uploaded object: container=%s key=%s size=%d",
            self._container,
            key,
            len(data),
        )
        return StoredObjectMetadata(
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            last_modified=datetime.now(UTC),
            user_metadata=dict(metadata or {}),
        )

    @traced_storage_operation("get")
    def get(self, key: str) -> StoredObject:
        """Download an object body, then fetch its metadata."""
        validate_key(key, self._container)

        response = self._request("GET", self._object_url(key, kind="authenticated"), key=key)
        self._raise_for_object_status(response, key)
        body = response.content

        metadata = self._fetch_info(key)
        return StoredObject(metadata=metadata, body=body)

    @traced_storage_operation("head")
    def head(self, key: str) -> StoredObjectMetadata:
        """Fetch object metadata via the info endpoint."""
        validate_key(key, self._container)
        return self._fetch_info(key)

    def _fetch_info(self, key: str) -> StoredObjectMetadata:
        response = self._request(
            "GET",
            self._object_url(key, kind="info/authenticated"),
            key=key,
        )
        self._raise_for_object_status(response, key)

        try:
            info = response.json()
        except ValueError as e:
            raise StorageBackendError(
                message="Object info response is not JSON",
                container=self._container,
                key=key,
                cause=e,
            ) from e
        if not isinstance(info, dict):
            raise StorageBackendError(
                message="Object info response is malformed",
                container=self._container,
                key=key,
            )

        system = info.get("metadata") if isinstance(info.get("metadata"), dict) else {}
        size_raw = info.get("size", system.get("size", 0))
        try:
            size_bytes = int(size_raw or 0)
        except (TypeError, ValueError):
            size_bytes = 0

        last_modified = (
            _parse_timestamp(info.get("last_modified"))
            or _parse_timestamp(info.get("updated_at"))
            or _parse_timestamp(system.get("lastModified"))
        )

        return StoredObjectMetadata(
            key=key,
            size_bytes=size_bytes,
            content_type=info.get("content_type") or system.get("mimetype"),
            last_modified=last_modified,
            user_metadata=_extract_user_metadata(info),
        )

    @traced_storage_operation("list")
    def list(self, prefix: str) -> list[ObjectEntry]:
        """List the direct children of a prefix, following pagination."""
        if prefix:
            validate_key(prefix, self._container, allow_trailing_slash=True)

        entries: list[ObjectEntry] = []
        offset = 0
        while True:
            response = self._request(
                "POST",
                f"{self._storage_url}/object/list/{self._container}",
                key=prefix,
                json={
                    "prefix": prefix,
                    "limit": LIST_PAGE_SIZE,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
            )
            if not response.is_success:
                message = _error_message(response)
                raise StorageBackendError(
                    message=f"List failed with {response.status_code}: {message}",
                    container=self._container,
                    key=prefix,
                )

            try:
                page = response.json()
            except ValueError:
                page = None
            if not isinstance(page, list):
                raise StorageBackendError(
                    message="List response is malformed",
                    container=self._container,
                    key=prefix,
                )

            for item in page:
                if not isinstance(item, dict) or not item.get("name"):
                    continue
                entries.append(
                    ObjectEntry(name=str(item["name"]), is_folder=item.get("id") is None)
                )

            if len(page) < LIST_PAGE_SIZE:
                break
            offset += LIST_PAGE_SIZE

        return entries

    @traced_storage_operation("delete")
    def delete(self, key: str) -> None:
        """Delete an object."""
        validate_key(key, self._container)

        response = self._request(
            "DELETE",
            f"{self._storage_url}/object/{self._container}",
            key=key,
            json={"prefixes": [key]},
        )
        self._raise_for_object_status(response, key)

        try:
            removed = response.json()
        except ValueError:
            removed = None
        if not isinstance(removed, list) or not removed:
            raise ObjectNotFoundError(container=self._container, key=key)

    def create_container(
        self,
        *,
        public: bool = False,
        file_size_limit: int = DEFAULT_FILE_SIZE_LIMIT,
    ) -> None:
        """Create the bucket."""
        response = self._request(
            "POST",
            f"{self._storage_url}/bucket",
            json={
                "id": self._container,
                "name": self._container,
                "public": public,
                "file_size_limit": file_size_limit,
            },
        )
        if response.is_success:
            logger.info("Created bucket %s (public=%s)", self._container, public)
            return

        message = _error_message(response)
        if response.status_code == 409 or "already exists" in message.lower():
            raise ContainerExistsError(container=self._container)
        raise StorageBackendError(
            message=f"Failed to create bucket: {message}",
            container=self._container,
        )

    def _get_engine(self) -> Engine:
        if self._database_url is None:
            raise StorageBackendError(
                message="Policy management requires a database URL",
                container=self._container,
            )
        if self._engine is None:
            from sqlalchemy import create_engine

            url = self._database_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            self._engine = create_engine(url, pool_pre_ping=True, echo=False)
        return self._engine

    def create_policy(self, name: str, *, definition: str, operation: str) -> None:
        """Create a row level security policy on storage.objects for this bucket."""
        validate_policy_operation(operation, self._container)

        statement = build_policy_statement(
            name,
            container=self._container,
            definition=definition,
            operation=operation,
        )

        from sqlalchemy import text
        from sqlalchemy.exc import SQLAlchemyError

        engine = self._get_engine()
        try:
            with engine.begin() as conn:
                conn.execute(text(statement))
        except SQLAlchemyError as e:
            raise StorageBackendError(
                message=f"Failed to create policy {name}: {e}",
                container=self._container,
                cause=e,
            ) from e


def build_policy_statement(name: str, *, container: str, definition: str, operation: str) -> str:
    """Render the CREATE POLICY statement for a bucket-scoped storage policy.

    INSERT policies constrain new rows (WITH CHECK); the other operations
    constrain visible rows (USING).
    """
    quoted_name = '"' + name.replace('"', '""') + '"'
    bucket_literal = "'" + container.replace("'", "''") + "'"
    clause = "WITH CHECK" if operation == "INSERT" else "USING"
    return (
        f"CREATE POLICY {quoted_name} ON storage.objects FOR {operation} "
        f"TO {POLICY_ROLE} {clause} (bucket_id = {bucket_literal} AND {definition})"
    )
