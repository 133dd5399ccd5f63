"""Codepad object storage interface definition.

Provides the ObjectStore interface that all storage backends must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from codepad.storage.models import ObjectEntry, StoredObject, StoredObjectMetadata

DEFAULT_CONTAINER = "code-editor"
DEFAULT_FILE_SIZE_LIMIT = 10 * 1024 * 1024


class ObjectStore(ABC):
    """Abstract base class for container-scoped object storage backends.

    A store is bound to a single container (bucket). Keys are flat strings;
    "/" only has meaning for list(), which enumerates the direct children of a
    prefix.

    Implementations:
    - FilesystemObjectStore: Local filesystem (dev/test)
    - SupabaseObjectStore: Supabase Storage REST API (production)
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability (e.g., "filesystem")."""
        ...

    @property
    @abstractmethod
    def container(self) -> str:
        """Return the container name this store operates on."""
        ...

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        """Create or replace an object.

        Body and metadata are written together; existing metadata is replaced
        as a whole, never merged.

        Args:
            key: Object key within the container.
            data: Object body.
            metadata: Side-channel attributes to attach to the object.
            content_type: Optional MIME type of the body.

        Returns:
            Metadata of the stored object.

        Raises:
            PathTraversalError: If key is unsafe.
            ObjectTooLargeError: If data exceeds the container size limit.
            StorageBackendError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def get(self, key: str) -> StoredObject:
        """Retrieve an object body and its metadata.

        Raises:
            ObjectNotFoundError: If the object is absent or not accessible.
            PathTraversalError: If key is unsafe.
            StorageBackendError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    def head(self, key: str) -> StoredObjectMetadata:
        """Get object metadata without materializing the body.

        Raises:
            ObjectNotFoundError: If the object is absent or not accessible.
            PathTraversalError: If key is unsafe.
            StorageBackendError: If the backend cannot complete the operation.
        """
        ...

    @abstractmethod
    def list(self, prefix: str) -> list[ObjectEntry]:
        """List the direct children of a prefix.

        Does not recurse and does not return per-object user metadata.
        Returns an empty list when nothing exists under the prefix.

        Raises:
            PathTraversalError: If prefix is unsafe.
            StorageBackendError: If the backend cannot complete the listing.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete an object.

        Raises:
            ObjectNotFoundError: If the object is absent or not accessible.
            PathTraversalError: If key is unsafe.
            StorageBackendError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    def create_container(
        self,
        *,
        public: bool = False,
        file_size_limit: int = DEFAULT_FILE_SIZE_LIMIT,
    ) -> None:
        """Create the container this store is bound to.

        Raises:
            ContainerExistsError: If the container already exists.
            StorageBackendError: If the backend cannot create it.
        """
        ...

    @abstractmethod
    def create_policy(self, name: str, *, definition: str, operation: str) -> None:
        """Create an access policy on the container.

        Args:
            name: Policy name, unique per container.
            definition: Predicate an object must satisfy for the caller.
            operation: One of SELECT, INSERT, UPDATE, DELETE.

        Raises:
            StorageBackendError: If the policy cannot be created.
        """
        ...
