"""Object key and container name validation shared by all backends."""

from __future__ import annotations

import re

from codepad.storage.errors import PathTraversalError, StorageBackendError

POLICY_OPERATIONS = frozenset({"SELECT", "INSERT", "UPDATE", "DELETE"})

_SAFE_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_\-.@:+/]+$")
_CONTAINER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_\-.]{1,62}$")


def is_path_traversal(key: str, *, allow_trailing_slash: bool = False) -> bool:
    """Check if a key contains path traversal sequences.

    Detects:
    - ".." and "." segments, empty segments ("a//b")
    - Absolute paths (starting with / or ~) and drive letters
    - Backslashes and null bytes
    - Characters outside the safe key alphabet
    """
    if not key:
        return True

    if "\x00" in key or "\\" in key:
        return True

    if key.startswith("/") or key.startswith("~"):
        return True

    # Windows drive letter (e.g., C:)
    if len(key) >= 2 and key[1] == ":":
        return True

    body = key[:-1] if allow_trailing_slash and key.endswith("/") else key
    if any(segment in ("", ".", "..") for segment in body.split("/")):
        return True

    return not bool(_SAFE_KEY_PATTERN.match(key))


def validate_key(key: str, container: str, *, allow_trailing_slash: bool = False) -> None:
    """Validate an object key (or a listing prefix) and raise if unsafe."""
    if is_path_traversal(key, allow_trailing_slash=allow_trailing_slash):
        raise PathTraversalError(
            message="Invalid key: path traversal or unsafe characters detected",
            container=container,
            key=key,
        )


def validate_container_name(container: str) -> None:
    """Validate a container name (lowercase, 2-63 characters)."""
    if not _CONTAINER_PATTERN.match(container):
        raise StorageBackendError(
            message=f"Invalid container name: {container}",
            container=container,
        )


def validate_policy_operation(operation: str, container: str) -> None:
    """Reject policy operations other than SELECT, INSERT, UPDATE, DELETE."""
    if operation not in POLICY_OPERATIONS:
        raise StorageBackendError(
            message=f"Unsupported policy operation: {operation}",
            container=container,
        )
