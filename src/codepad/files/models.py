"""Pydantic models for files in a user's namespace."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LANGUAGE = "javascript"


class FileDraft(BaseModel):
    """A file as submitted for saving or uploading.

    A missing id means "create a new file"; the service assigns one.
    Clients may echo back lastModified (or last_modified, as returned by
    reads); it is accepted but never stored, the save time wins.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str | None = None
    name: Annotated[str, Field(min_length=1, max_length=255)]
    content: str
    language: str = DEFAULT_LANGUAGE
    last_modified: datetime | None = Field(default=None, alias="lastModified", exclude=True)


class FileSummary(BaseModel):
    """Listing entry: attributes without the body."""

    id: str
    name: str
    language: str
    last_modified: datetime


class FileContent(FileSummary):
    """A file with its content."""

    content: str


class FileListing(BaseModel):
    """Result of listing a user's files.

    skipped holds ids whose attributes could not be read; they are absent
    from items.
    """

    items: list[FileSummary] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
