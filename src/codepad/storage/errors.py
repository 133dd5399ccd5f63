"""Codepad object storage error types.

Typed exceptions for storage operations. Every backend failure surfaces as an
ObjectStorageError subclass carrying the message, the object key and, where
one exists, the underlying cause.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        container: Container (bucket) name associated with the operation.
        key: Object key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        container: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.container = container
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.container:
            parts.append(f"container={self.container}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object is not found in storage.

    The hosted backend answers identically for a missing object and for one
    the caller may not read, so this error covers both cases.
    """

    def __init__(
        self,
        message: str = "Object not found",
        *,
        container: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, container=container, key=key)


class PathTraversalError(ObjectStorageError):
    """Raised when an object key or key segment is unsafe.

    Covers "..", absolute paths, backslashes, NUL bytes and characters outside
    the allowed key alphabet.
    """

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        container: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, container=container, key=key)


class StorageBackendError(ObjectStorageError):
    """Raised when the storage backend cannot complete an operation.

    Indicates the backend itself failed (I/O error, HTTP 5xx, timeout,
    misconfiguration) rather than a logical error like object not found.
    """

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        container: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, container=container, key=key)
        self.cause = cause


class ObjectTooLargeError(StorageBackendError):
    """Raised when an object exceeds the container file size limit."""

    def __init__(
        self,
        message: str = "Object exceeds container size limit",
        *,
        container: str | None = None,
        key: str | None = None,
        size_bytes: int | None = None,
        limit_bytes: int | None = None,
    ) -> None:
        super().__init__(message, container=container, key=key)
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class ContainerExistsError(ObjectStorageError):
    """Raised by create_container when the container already exists."""

    def __init__(
        self,
        message: str = "Container already exists",
        *,
        container: str | None = None,
    ) -> None:
        super().__init__(message, container=container)
