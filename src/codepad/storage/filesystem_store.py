"""Codepad filesystem object storage backend.

Local storage for development and testing with:
- One directory per container
- Path traversal protection
- Single-file objects so body and metadata are replaced atomically

Environment Variables:
    CODEPAD_OBJECT_STORE_BASE_DIR: Base directory for storage
        (default: tempfile.gettempdir() / codepad_objects)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from codepad.storage.errors import (
    ContainerExistsError,
    ObjectNotFoundError,
    ObjectTooLargeError,
    PathTraversalError,
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

logger = logging.getLogger(__name__)

CODEPAD_OBJECT_STORE_BASE_DIR_ENV = "CODEPAD_OBJECT_STORE_BASE_DIR"

_CONTAINER_MANIFEST = "_container.json"
_OBJECTS_DIR = "objects"
_OBJECT_SUFFIX = ".obj"
_TMP_SUFFIX = ".tmp"


class FilesystemObjectStore(ObjectStore):
    """Filesystem-based object storage implementation.

    Objects are stored in a directory structure:
        {base_dir}/{container}/
            _container.json              # public flag, size limit, policies
            objects/{key}.obj            # header line (JSON metadata) + body

    Each write goes to a temporary file that is renamed over the object file,
    so readers observe either the old body and metadata or the new ones.
    Access policies are recorded in the manifest but not evaluated; isolation
    comes from the key scheme of the caller.
    """

    def __init__(
        self,
        base_dir: str | Path | None = None,
        container: str = DEFAULT_CONTAINER,
    ) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. If None, uses
                CODEPAD_OBJECT_STORE_BASE_DIR env var or OS temp directory.
            container: Container name this store is bound to.
        """
        validate_container_name(container)

        if base_dir is None:
            base_dir = os.environ.get(CODEPAD_OBJECT_STORE_BASE_DIR_ENV)

        if base_dir is None:
            base_dir = Path(tempfile.gettempdir()) / "codepad_objects"
        else:
            base_dir = Path(base_dir)

        self._base_dir = base_dir.resolve()
        self._container = container
        logger.debug(
            "FilesystemObjectStore initialized with base_dir=%s container=%s",
            self._base_dir,
            container,
        )

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def container(self) -> str:
        """Return the container name."""
        return self._container

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    @property
    def _container_dir(self) -> Path:
        return self._base_dir / self._container

    @property
    def _manifest_path(self) -> Path:
        return self._container_dir / _CONTAINER_MANIFEST

    def _container_exists(self) -> bool:
        return self._manifest_path.exists()

    def _read_manifest(self) -> dict[str, Any]:
        """Read the container manifest."""
        try:
            data = json.loads(self._manifest_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise StorageBackendError(
                message="Container not found",
                container=self._container,
                cause=e,
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise StorageBackendError(
                message=f"Failed to read container manifest: {e}",
                container=self._container,
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise StorageBackendError(
                message="Container manifest is malformed",
                container=self._container,
            )
        return data

    def _write_atomic(self, target: Path, payload: bytes) -> None:
        """Write a file atomically via a temporary sibling and rename."""
        tmp_file = target.with_name(f"{target.name}.{uuid.uuid4().hex}{_TMP_SUFFIX}")
        try:
            tmp_file.write_bytes(payload)
            tmp_file.replace(target)
        except OSError as e:
            if tmp_file.exists():
                tmp_file.unlink(missing_ok=True)
            raise StorageBackendError(
                message=f"Failed to write {target.name}: {e}",
                container=self._container,
                cause=e,
            ) from e

    def _write_manifest(self, manifest: dict[str, Any]) -> None:
        self._write_atomic(
            self._manifest_path,
            json.dumps(manifest, indent=2, sort_keys=True).encode("utf-8"),
        )

    def _object_path(self, key: str) -> Path:
        """Get the file path for an object, validating the key."""
        validate_key(key, self._container)
        path = self._container_dir / _OBJECTS_DIR / f"{key}{_OBJECT_SUFFIX}"
        self._ensure_resolved_within_container(path, key)
        return path

    def _ensure_resolved_within_container(self, path: Path, key: str) -> None:
        """Ensure a path resolves within the container directory."""
        try:
            path.resolve().relative_to(self._container_dir.resolve())
        except ValueError as e:
            raise PathTraversalError(
                message="Path resolves outside container directory",
                container=self._container,
                key=key,
            ) from e

    def _read_object(self, path: Path, key: str, *, with_body: bool) -> StoredObject:
        """Read the metadata header line and, optionally, the body of an object file.

        Both are read through one open handle so a concurrent replace cannot
        pair the header of one version with the body of another.
        """
        try:
            with path.open("rb") as f:
                header_line = f.readline()
                body = f.read() if with_body else b""
        except FileNotFoundError as e:
            raise ObjectNotFoundError(container=self._container, key=key) from e
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to read object: {e}",
                container=self._container,
                key=key,
                cause=e,
            ) from e

        try:
            metadata = StoredObjectMetadata.from_dict(json.loads(header_line))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StorageBackendError(
                message="Object header is corrupt",
                container=self._container,
                key=key,
                cause=e,
            ) from e

        return StoredObject(metadata=metadata, body=body)

    @traced_storage_operation("put")
    def put(
        self,
        key: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        """Create or replace an object."""
        path = self._object_path(key)
        manifest = self._read_manifest()

        limit = int(manifest.get("file_size_limit") or DEFAULT_FILE_SIZE_LIMIT)
        if len(data) > limit:
            raise ObjectTooLargeError(
                message=f"Object is {len(data)} bytes, limit is {limit}",
                container=self._container,
                key=key,
                size_bytes=len(data),
                limit_bytes=limit,
            )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to create object directory: {e}",
                container=self._container,
                key=key,
                cause=e,
            ) from e

        stored = StoredObjectMetadata(
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            last_modified=datetime.now(UTC),
            user_metadata=dict(metadata or {}),
        )
        header = json.dumps(stored.to_dict(), separators=(",", ":")).encode("utf-8")
        self._write_atomic(path, header + b"\n" + data)

        logger.debug(
            "Stored object: container=%s key=%s size=%d",
            self._container,
            key,
            len(data),
        )
        return stored

    @traced_storage_operation("get")
    def get(self, key: str) -> StoredObject:
        """Retrieve an object."""
        path = self._object_path(key)
        return self._read_object(path, key, with_body=True)

    @traced_storage_operation("head")
    def head(self, key: str) -> StoredObjectMetadata:
        """Get object metadata without reading the body."""
        path = self._object_path(key)
        return self._read_object(path, key, with_body=False).metadata

    @traced_storage_operation("list")
    def list(self, prefix: str) -> list[ObjectEntry]:
        """List the direct children of a prefix."""
        if not self._container_exists():
            raise StorageBackendError(message="Container not found", container=self._container)

        objects_dir = self._container_dir / _OBJECTS_DIR
        if prefix:
            validate_key(prefix, self._container, allow_trailing_slash=True)
            directory = objects_dir / prefix.rstrip("/")
            self._ensure_resolved_within_container(directory, prefix)
        else:
            directory = objects_dir

        if not directory.is_dir():
            return []

        entries: list[ObjectEntry] = []
        try:
            for child in sorted(directory.iterdir()):
                if child.is_dir():
                    entries.append(ObjectEntry(name=child.name, is_folder=True))
                elif child.name.endswith(_OBJECT_SUFFIX):
                    entries.append(ObjectEntry(name=child.name[: -len(_OBJECT_SUFFIX)]))
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to list prefix: {e}",
                container=self._container,
                key=prefix,
                cause=e,
            ) from e

        return entries

    @traced_storage_operation("delete")
    def delete(self, key: str) -> None:
        """Delete an object."""
        path = self._object_path(key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(container=self._container, key=key) from e
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to delete object: {e}",
                container=self._container,
                key=key,
                cause=e,
            ) from e
        logger.debug("Deleted object: container=%s key=%s", self._container, key)

    def create_container(
        self,
        *,
        public: bool = False,
        file_size_limit: int = DEFAULT_FILE_SIZE_LIMIT,
    ) -> None:
        """Create the container directory and manifest."""
        if self._container_exists():
            raise ContainerExistsError(container=self._container)

        try:
            (self._container_dir / _OBJECTS_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to create container directory: {e}",
                container=self._container,
                cause=e,
            ) from e

        self._write_manifest(
            {
                "name": self._container,
                "public": public,
                "file_size_limit": file_size_limit,
                "created_at": datetime.now(UTC).isoformat(),
                "policies": {},
            }
        )
        logger.info("Created container %s (public=%s)", self._container, public)

    def create_policy(self, name: str, *, definition: str, operation: str) -> None:
        """Record an access policy in the container manifest."""
        validate_policy_operation(operation, self._container)

        manifest = self._read_manifest()
        policies = manifest.setdefault("policies", {})
        if name in policies:
            raise StorageBackendError(
                message=f"Policy already exists: {name}",
                container=self._container,
            )

        policies[name] = {"definition": definition, "operation": operation}
        self._write_manifest(manifest)

    def list_policies(self) -> dict[str, dict[str, str]]:
        """Return the recorded policies keyed by name."""
        return dict(self._read_manifest().get("policies", {}))
