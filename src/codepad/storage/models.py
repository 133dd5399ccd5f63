"""Codepad object storage data models.

Typed dataclasses for object metadata, stored objects and listing entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class StoredObjectMetadata:
    """Metadata for a stored object.

    Attributes:
        key: Full object key within the container.
        size_bytes: Size of the object body in bytes.
        content_type: MIME type of the body (e.g., "text/plain").
        last_modified: Time the object was last written, if the backend knows it.
        user_metadata: Side-channel key/value attributes attached on upload.
    """

    key: str
    size_bytes: int
    content_type: str | None
    last_modified: datetime | None
    user_metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "size_bytes": self.size_bytes,
            "content_type": self.content_type,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "user_metadata": dict(self.user_metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredObjectMetadata:
        """Create metadata from dictionary."""
        last_modified_raw = data.get("last_modified")
        if isinstance(last_modified_raw, str):
            last_modified: datetime | None = datetime.fromisoformat(last_modified_raw)
            if last_modified.tzinfo is None:
                last_modified = last_modified.replace(tzinfo=UTC)
        elif isinstance(last_modified_raw, datetime):
            last_modified = last_modified_raw
        else:
            last_modified = None

        size_bytes_raw = data.get("size_bytes")
        size_bytes = int(size_bytes_raw) if size_bytes_raw is not None else 0

        content_type_raw = data.get("content_type")
        content_type = str(content_type_raw) if content_type_raw else None

        user_metadata_raw = data.get("user_metadata") or {}
        user_metadata = (
            {str(k): str(v) for k, v in user_metadata_raw.items() if v is not None}
            if isinstance(user_metadata_raw, dict)
            else {}
        )

        return cls(
            key=str(data["key"]),
            size_bytes=size_bytes,
            content_type=content_type,
            last_modified=last_modified,
            user_metadata=user_metadata,
        )


@dataclass(frozen=True)
class StoredObject:
    """A stored object with metadata and body content."""

    metadata: StoredObjectMetadata
    body: bytes


@dataclass(frozen=True)
class ObjectEntry:
    """A direct child of a listed prefix.

    Attributes:
        name: Leaf name relative to the listed prefix.
        is_folder: True when the entry is a deeper prefix rather than an object.
    """

    name: str
    is_folder: bool = False
