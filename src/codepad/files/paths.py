"""Per-user key scheme for the file namespace.

Every key lives under users/{user_id}/files/. The user id is always the first
path segment, which is what the bucket access policies match on, so any
mistake here is a cross-user data leak. Segments are never escaped or
normalized: unsafe identifiers are rejected.
"""

from __future__ import annotations

import re

from codepad.storage.errors import PathTraversalError

USERS_ROOT = "users"
FILES_SEGMENT = "files"

_SAFE_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.@:+\-]+$")


def is_safe_segment(value: str) -> bool:
    """Return True if value can be used verbatim as a single key segment."""
    if not isinstance(value, str) or value in ("", ".", ".."):
        return False
    return bool(_SAFE_SEGMENT_PATTERN.match(value))


def _require_segment(value: str, field: str) -> str:
    if not is_safe_segment(value):
        raise PathTraversalError(message=f"Unsafe {field} for storage key", key=str(value))
    return value


def user_prefix(user_id: str) -> str:
    """Return the listing prefix for a user, e.g. "users/u1/files/"."""
    return f"{USERS_ROOT}/{_require_segment(user_id, 'user_id')}/{FILES_SEGMENT}/"


def file_key(user_id: str, file_id: str) -> str:
    """Return the storage key for one of a user's files."""
    return f"{user_prefix(user_id)}{_require_segment(file_id, 'file_id')}"
