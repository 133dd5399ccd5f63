"""Error envelope for the Codepad API.

Every error response carries the same JSON body and echoes the request id:

    {"code": "not_found", "message": "...", "details": null, "request_id": "..."}

details never holds request bodies, file content or credentials.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

REQUEST_ID_HEADER = "X-Request-Id"


class ErrorEnvelope(BaseModel):
    """Body of every error response."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    request_id: str


def request_id_for(request: Request) -> str:
    """Return the id to report for a request.

    Uses the id assigned by RequestIdMiddleware, then a non-blank incoming
    X-Request-Id header, then a fresh uuid4 (for errors raised before the
    middleware ran).
    """
    assigned = getattr(request.state, "request_id", None)
    if assigned:
        return str(assigned)

    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return incoming or str(uuid.uuid4())


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error response with the envelope and X-Request-Id header."""
    envelope = ErrorEnvelope(
        code=code,
        message=message,
        details=details,
        request_id=request_id_for(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(),
        headers={REQUEST_ID_HEADER: envelope.request_id},
    )


STATUS_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def code_for_status(status_code: int) -> str:
    """Envelope code for a bare HTTP status (routing errors and the like)."""
    return STATUS_CODES.get(status_code, "ERROR")
