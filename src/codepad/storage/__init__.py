"""Codepad object storage abstraction.

Container-scoped object storage with atomic upserts, side-channel metadata
and prefix listing.

Backends:
- FilesystemObjectStore: Local filesystem (dev/test)
- SupabaseObjectStore: Supabase Storage REST API (production)
"""

from codepad.storage.errors import (
    ContainerExistsError,
    ObjectNotFoundError,
    ObjectStorageError,
    ObjectTooLargeError,
    PathTraversalError,
    StorageBackendError,
)
from codepad.storage.models import ObjectEntry, StoredObject, StoredObjectMetadata
from codepad.storage.object_store import DEFAULT_CONTAINER, DEFAULT_FILE_SIZE_LIMIT, ObjectStore

__all__ = [
    "DEFAULT_CONTAINER",
    "DEFAULT_FILE_SIZE_LIMIT",
    "ObjectStore",
    "ObjectEntry",
    "StoredObject",
    "StoredObjectMetadata",
    "ObjectStorageError",
    "ObjectNotFoundError",
    "ObjectTooLargeError",
    "PathTraversalError",
    "StorageBackendError",
    "ContainerExistsError",
]
