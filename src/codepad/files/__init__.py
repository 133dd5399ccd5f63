"""Per-user virtual file namespace for Codepad.

Provides FileNamespaceService for list/get/save/upload/delete with:
- Key scoping under users/{user_id}/files/
- Name and language carried as object metadata
- A small error taxonomy independent of the storage backend
"""

from codepad.files.bootstrap import BootstrapResult, BootstrapStatus, create_storage_area
from codepad.files.errors import (
    EmptyContentError,
    FileInternalError,
    FileNamespaceError,
    FileNotFoundOrDeniedError,
    FileTooLargeError,
    InvalidIdentifierError,
)
from codepad.files.models import FileContent, FileDraft, FileListing, FileSummary
from codepad.files.paths import file_key, user_prefix
from codepad.files.service import FileNamespaceService, ListingPolicy

__all__ = [
    "BootstrapResult",
    "BootstrapStatus",
    "create_storage_area",
    "EmptyContentError",
    "FileInternalError",
    "FileNamespaceError",
    "FileNotFoundOrDeniedError",
    "FileTooLargeError",
    "InvalidIdentifierError",
    "FileContent",
    "FileDraft",
    "FileListing",
    "FileSummary",
    "file_key",
    "user_prefix",
    "FileNamespaceService",
    "ListingPolicy",
]
