"""File namespace error types.

Storage adapter errors never escape the namespace layer; they are converted to
one of these so callers see a small, stable taxonomy.
"""

from __future__ import annotations

NOT_FOUND_OR_DENIED_MESSAGE = "File not found or access denied"


class FileNamespaceError(Exception):
    """Base exception for file namespace operations."""

    def __init__(self, message: str, *, file_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.file_id = file_id


class FileNotFoundOrDeniedError(FileNamespaceError):
    """Raised when a file does not exist or the caller may not read it.

    The two cases are not distinguished.
    """

    def __init__(
        self, message: str = NOT_FOUND_OR_DENIED_MESSAGE, *, file_id: str | None = None
    ) -> None:
        super().__init__(message, file_id=file_id)


class EmptyContentError(FileNamespaceError):
    """Raised when a file body exists but is not readable as UTF-8 text."""

    def __init__(
        self, message: str = "File content is empty", *, file_id: str | None = None
    ) -> None:
        super().__init__(message, file_id=file_id)


class FileInternalError(FileNamespaceError):
    """Raised when the storage backend fails for any other reason."""

    def __init__(
        self,
        message: str,
        *,
        file_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, file_id=file_id)
        self.cause = cause


class FileTooLargeError(FileNamespaceError):
    """Raised when file content exceeds the container size limit."""

    def __init__(
        self,
        message: str = "File exceeds the size limit",
        *,
        file_id: str | None = None,
        limit_bytes: int | None = None,
    ) -> None:
        super().__init__(message, file_id=file_id)
        self.limit_bytes = limit_bytes


class InvalidIdentifierError(FileNamespaceError):
    """Raised when a user or file id cannot be used as a storage key segment."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"Invalid {field}", file_id=value if field == "file_id" else None)
        self.field = field
