"""Mapping between logical file attributes and object metadata.

Only name and language are persisted alongside the body. Reads go through
reconcile(), which never fails: missing or malformed values fall back to
defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from codepad.files.models import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

NAME_KEY = "name"
LANGUAGE_KEY = "language"
LAST_MODIFIED_KEY = "lastModified"


@dataclass(frozen=True)
class FileAttributes:
    """Logical attributes recovered from object metadata."""

    name: str
    language: str
    last_modified: datetime


def to_object_metadata(name: str, language: str) -> dict[str, str]:
    """Build the metadata map stored with a file body."""
    return {NAME_KEY: name, LANGUAGE_KEY: language}


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _tag(value: Any) -> str | None:
    text = _text(value)
    return text if text and text.strip() else None


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse epoch milliseconds or an ISO-8601 string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        millis: float = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            millis = float(raw)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                logger.debug("Ignoring unparseable lastModified metadata: %r", raw)
                return None
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    else:
        return None

    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def reconcile(
    file_id: str,
    metadata: dict[str, Any] | None,
    *,
    last_modified: datetime | None,
    now: datetime,
) -> FileAttributes:
    """Recover file attributes from object metadata, applying defaults.

    Args:
        file_id: File id, used for the default display name.
        metadata: User metadata of the object (may be None or partial).
        last_modified: Modification time reported by the store, if any.
        now: Fallback time when neither metadata nor store has one.

    Returns:
        FileAttributes. Names are kept as stored unless absent or empty;
        blank languages fall back to the default. A lastModified metadata
        value takes precedence over the store time.
    """
    metadata = metadata or {}

    name = _text(metadata.get(NAME_KEY)) or f"File {file_id}"
    language = _tag(metadata.get(LANGUAGE_KEY)) or DEFAULT_LANGUAGE
    timestamp = _parse_timestamp(metadata.get(LAST_MODIFIED_KEY)) or last_modified or now

    return FileAttributes(name=name, language=language, last_modified=timestamp)
