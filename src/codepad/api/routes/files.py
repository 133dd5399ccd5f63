"""File namespace routes for the Codepad API.

- GET /v1/files (listFiles)
- GET /v1/files/{file_id} (getFile)
- POST /v1/files (saveFile)
- POST /v1/files/upload (uploadFile)
- DELETE /v1/files/{file_id} (deleteFile)

Every route is scoped to the authenticated caller's user id; there is no way
to name another user's file.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from codepad.api.auth import RequireCaller
from codepad.files.models import FileContent, FileDraft, FileListing
from codepad.files.service import FileNamespaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/files", tags=["Files"])


class SaveFileResponse(BaseModel):
    """Response body for save and upload."""

    success: bool
    file: FileContent


def get_files_service(request: Request) -> FileNamespaceService:
    """Return the FileNamespaceService configured on the app."""
    service: FileNamespaceService = request.app.state.files_service
    return service


@router.get("", response_model=FileListing)
def list_files(request: Request, caller: RequireCaller) -> FileListing:
    """List the caller's files (attributes only, no content)."""
    return get_files_service(request).list_files(caller.user_id)


@router.get("/{file_id}", response_model=FileContent)
def get_file(file_id: str, request: Request, caller: RequireCaller) -> FileContent:
    """Fetch one of the caller's files with its content."""
    return get_files_service(request).get_file(caller.user_id, file_id)


@router.post("", response_model=SaveFileResponse)
def save_file(draft: FileDraft, request: Request, caller: RequireCaller) -> SaveFileResponse:
    """Create or overwrite a file. A body without id creates a new file."""
    saved = get_files_service(request).save_file(caller.user_id, draft)
    return SaveFileResponse(success=True, file=saved)


@router.post("/upload", response_model=SaveFileResponse)
def upload_file(draft: FileDraft, request: Request, caller: RequireCaller) -> SaveFileResponse:
    """Save a file read from the caller's machine."""
    saved = get_files_service(request).upload_file(caller.user_id, draft)
    return SaveFileResponse(success=True, file=saved)


@router.delete("/{file_id}", status_code=204, response_class=Response)
def delete_file(file_id: str, request: Request, caller: RequireCaller) -> Response:
    """Delete one of the caller's files."""
    get_files_service(request).delete_file(caller.user_id, file_id)
    return Response(status_code=204)
