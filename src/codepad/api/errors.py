"""Exception handling for the Codepad API.

register_exception_handlers() installs one handler per error family; each
answers with the envelope from codepad.api.error_model:

- CodepadHttpError: raised by the API layer itself (e.g. 401 from auth)
- FileNamespaceError: 404 not_found / 404 empty_content / 413 file_too_large /
  422 for unusable ids / 500 internal_error
- ObjectStorageError: storage failures outside the namespace layer (500)
- HTTPException and RequestValidationError: routing and body validation
- Exception: catch-all, logged, no stack trace in the response
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from codepad.api.error_model import code_for_status, error_response
from codepad.files.errors import (
    EmptyContentError,
    FileInternalError,
    FileNamespaceError,
    FileNotFoundOrDeniedError,
    FileTooLargeError,
    InvalidIdentifierError,
)
from codepad.storage.errors import ObjectStorageError

logger = logging.getLogger(__name__)

VALIDATION_FAILED_CODE = "REQUEST_VALIDATION_FAILED"
_LOCATION_PREFIXES = ("body", "query", "path")

_FILE_ERROR_STATUS: tuple[tuple[type[FileNamespaceError], int, str], ...] = (
    (FileNotFoundOrDeniedError, 404, "not_found"),
    (EmptyContentError, 404, "empty_content"),
    (FileTooLargeError, 413, "file_too_large"),
)


class CodepadHttpError(Exception):
    """An HTTP error raised directly by the API layer.

    Attributes:
        status_code: HTTP status to answer with.
        code: Envelope code, e.g. "unauthorized".
        message: Client-facing message.
        details: Optional extra context for the envelope.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def _validation_failed(request: Request, errors: list[dict[str, str]]) -> JSONResponse:
    return error_response(
        request,
        status_code=422,
        code=VALIDATION_FAILED_CODE,
        message="Request validation failed",
        details={"errors": errors} if errors else None,
    )


def _field_errors(errors: Iterable[Any]) -> list[dict[str, str]]:
    """Field paths and messages from pydantic errors; input values are dropped."""
    fields: list[dict[str, str]] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES]
        fields.append(
            {
                "field": ".".join(loc) or "request",
                "message": error.get("msg", "Validation error"),
            }
        )
    return fields


async def handle_codepad_http_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, CodepadHttpError)
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def handle_file_namespace_error(request: Request, exc: Exception) -> JSONResponse:
    """Translate the file namespace taxonomy.

    Internal failures are logged with their cause; the client only sees the
    generic message of the error.
    """
    assert isinstance(exc, FileNamespaceError)

    if isinstance(exc, InvalidIdentifierError):
        return _validation_failed(request, [{"field": exc.field, "message": exc.message}])

    for error_type, status_code, code in _FILE_ERROR_STATUS:
        if isinstance(exc, error_type):
            details = None
            if isinstance(exc, FileTooLargeError) and exc.limit_bytes:
                details = {"limit_bytes": exc.limit_bytes}
            return error_response(
                request,
                status_code=status_code,
                code=code,
                message=exc.message,
                details=details,
            )

    logger.error(
        "File operation failed: %s (cause: %s)",
        exc.message,
        exc.cause if isinstance(exc, FileInternalError) else None,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return error_response(request, status_code=500, code="internal_error", message=exc.message)


async def handle_storage_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ObjectStorageError)
    logger.error(
        "Storage operation failed: %s",
        exc,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return error_response(
        request,
        status_code=500,
        code="internal_error",
        message="Storage operation failed",
    )


async def handle_http_exception(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    return error_response(
        request,
        status_code=exc.status_code,
        code=code_for_status(exc.status_code),
        message=str(exc.detail) if exc.detail else f"HTTP {exc.status_code}",
    )


async def handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    return _validation_failed(request, _field_errors(exc.errors()))


async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return error_response(
        request,
        status_code=500,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the Codepad exception handlers on an application."""
    app.add_exception_handler(CodepadHttpError, handle_codepad_http_error)
    app.add_exception_handler(FileNamespaceError, handle_file_namespace_error)
    app.add_exception_handler(ObjectStorageError, handle_storage_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unhandled_exception)
