"""FileNamespaceService - per-user file operations on an object store.

Every operation is scoped by the user id it is given: keys are derived with
file_key()/user_prefix(), so a caller can never address another user's files.
The service performs no authentication.

Adapter errors are converted to the codepad.files.errors taxonomy:
- ObjectNotFoundError -> FileNotFoundOrDeniedError
- ObjectTooLargeError -> FileTooLargeError
- any other ObjectStorageError -> FileInternalError
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

from codepad.files.errors import (
    EmptyContentError,
    FileInternalError,
    FileNotFoundOrDeniedError,
    FileTooLargeError,
    InvalidIdentifierError,
)
from codepad.files.metadata import reconcile, to_object_metadata
from codepad.files.models import (
    DEFAULT_LANGUAGE,
    FileContent,
    FileDraft,
    FileListing,
    FileSummary,
)
from codepad.files.paths import file_key, is_safe_segment, user_prefix
from codepad.storage.errors import (
    ObjectNotFoundError,
    ObjectStorageError,
    ObjectTooLargeError,
)
from codepad.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

FILE_CONTENT_TYPE = "text/plain; charset=utf-8"


class ListingPolicy(str, Enum):
    """How list_files treats entries whose metadata cannot be read."""

    PARTIAL = "partial"
    STRICT = "strict"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_file_id() -> str:
    return str(uuid.uuid4())


class FileNamespaceService:
    """Service layer for a user's virtual file namespace.

    Usage:
        service = FileNamespaceService(store)
        saved = service.save_file("u1", FileDraft(name="a.js", content="x"))
        service.get_file("u1", saved.id)
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        listing_policy: ListingPolicy = ListingPolicy.PARTIAL,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_file_id,
    ) -> None:
        """Initialize the service.

        Args:
            store: Object store bound to the files container.
            listing_policy: PARTIAL skips unreadable entries, STRICT fails the listing.
            clock: Time source for defaults and save timestamps.
            id_factory: Generator for ids of new files.
        """
        self._store = store
        self._listing_policy = listing_policy
        self._clock = clock
        self._id_factory = id_factory

    @property
    def store(self) -> ObjectStore:
        """Return the underlying object store."""
        return self._store

    @property
    def listing_policy(self) -> ListingPolicy:
        """Return the configured listing policy."""
        return self._listing_policy

    def _read_key(self, user_id: str, file_id: str) -> str:
        """Key for read/delete paths; unsafe ids look like missing files."""
        if not is_safe_segment(user_id) or not is_safe_segment(file_id):
            raise FileNotFoundOrDeniedError(file_id=file_id)
        return file_key(user_id, file_id)

    def list_files(self, user_id: str) -> FileListing:
        """List the files in a user's namespace.

        Args:
            user_id: Owner of the namespace.

        Returns:
            FileListing with summaries in store order and the ids skipped
            under ListingPolicy.PARTIAL.

        Raises:
            InvalidIdentifierError: If user_id is not a safe key segment.
            FileInternalError: If the listing fails, or any entry fails under
                ListingPolicy.STRICT.
        """
        if not is_safe_segment(user_id):
            raise InvalidIdentifierError("user_id", user_id)

        prefix = user_prefix(user_id)
        try:
            entries = self._store.list(prefix)
        except ObjectStorageError as e:
            logger.error("Failed to list files for user: %s", e)
            raise FileInternalError("Failed to list files", cause=e) from e

        listing = FileListing()
        for entry in entries:
            if entry.is_folder:
                continue

            file_id = entry.name
            try:
                meta = self._store.head(file_key(user_id, file_id))
            except ObjectStorageError as e:
                if self._listing_policy is ListingPolicy.STRICT:
                    raise FileInternalError(
                        "Failed to read file metadata", file_id=file_id, cause=e
                    ) from e
                logger.warning("Skipping file %s in listing: %s", file_id, e)
                listing.skipped.append(file_id)
                continue

            attrs = reconcile(
                file_id,
                meta.user_metadata,
                last_modified=meta.last_modified,
                now=self._clock(),
            )
            listing.items.append(
                FileSummary(
                    id=file_id,
                    name=attrs.name,
                    language=attrs.language,
                    last_modified=attrs.last_modified,
                )
            )

        logger.debug(
            "Listed %d files (%d skipped) under %s",
            len(listing.items),
            len(listing.skipped),
            prefix,
        )
        return listing

    def get_file(self, user_id: str, file_id: str) -> FileContent:
        """Fetch a file with its content.

        Raises:
            FileNotFoundOrDeniedError: If the file is absent or not readable.
            EmptyContentError: If the body is not valid UTF-8 text.
            FileInternalError: On other storage failures.
        """
        key = self._read_key(user_id, file_id)
        try:
            stored = self._store.get(key)
        except ObjectNotFoundError as e:
            raise FileNotFoundOrDeniedError(file_id=file_id) from e
        except ObjectStorageError as e:
            logger.error("Failed to fetch file %s: %s", file_id, e)
            raise FileInternalError("Failed to fetch file", file_id=file_id, cause=e) from e

        try:
            content = stored.body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EmptyContentError(file_id=file_id) from e

        attrs = reconcile(
            file_id,
            stored.metadata.user_metadata,
            last_modified=stored.metadata.last_modified,
            now=self._clock(),
        )
        return FileContent(
            id=file_id,
            name=attrs.name,
            language=attrs.language,
            last_modified=attrs.last_modified,
            content=content,
        )

    def save_file(self, user_id: str, draft: FileDraft, *, source: str = "editor") -> FileContent:
        """Create or overwrite a file (last write wins).

        Args:
            user_id: Owner of the namespace.
            draft: File to write; a missing id creates a new file.
            source: Origin of the write, recorded in logs only.

        Returns:
            The saved file, with last_modified set to the save time.

        Raises:
            InvalidIdentifierError: If user_id or draft.id is not a safe key segment.
            FileTooLargeError: If the content exceeds the container size limit.
            FileInternalError: On other storage failures.
        """
        if not is_safe_segment(user_id):
            raise InvalidIdentifierError("user_id", user_id)

        file_id = draft.id or self._id_factory()
        if not is_safe_segment(file_id):
            raise InvalidIdentifierError("file_id", file_id)

        language = draft.language if draft.language.strip() else DEFAULT_LANGUAGE
        key = file_key(user_id, file_id)
        body = draft.content.encode("utf-8")
        try:
            self._store.put(
                key,
                body,
                metadata=to_object_metadata(draft.name, language),
                content_type=FILE_CONTENT_TYPE,
            )
        except ObjectTooLargeError as e:
            raise FileTooLargeError(file_id=file_id, limit_bytes=e.limit_bytes) from e
        except ObjectStorageError as e:
            logger.error("Failed to save file %s (source=%s): %s", file_id, source, e)
            raise FileInternalError("Failed to save file", file_id=file_id, cause=e) from e

        logger.info(
            "Saved file %s (source=%s, bytes=%d)",
            file_id,
            source,
            len(body),
        )
        return FileContent(
            id=file_id,
            name=draft.name,
            language=language,
            last_modified=self._clock(),
            content=draft.content,
        )

    def upload_file(self, user_id: str, draft: FileDraft) -> FileContent:
        """Save a file that came from an upload."""
        return self.save_file(user_id, draft, source="upload")

    def delete_file(self, user_id: str, file_id: str) -> None:
        """Delete a file from the user's namespace.

        Raises:
            FileNotFoundOrDeniedError: If the file is absent or not deletable.
            FileInternalError: On other storage failures.
        """
        key = self._read_key(user_id, file_id)
        try:
            self._store.delete(key)
        except ObjectNotFoundError as e:
            raise FileNotFoundOrDeniedError(file_id=file_id) from e
        except ObjectStorageError as e:
            logger.error("Failed to delete file %s: %s", file_id, e)
            raise FileInternalError("Failed to delete file", file_id=file_id, cause=e) from e

        logger.info("Deleted file %s", file_id)
