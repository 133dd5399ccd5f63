"""Storage provisioning route for the Codepad API.

POST /v1/storage/bucket creates the files container and its access policies.
Repeated calls are harmless: the second and later calls answer 200 with
status "already_existed".
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from codepad.api.auth import RequireCaller
from codepad.api.routes.files import get_files_service
from codepad.files.bootstrap import BootstrapStatus, create_storage_area

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/storage", tags=["Storage"])


class BootstrapResponse(BaseModel):
    """Response body for POST /v1/storage/bucket."""

    status: str
    container: str
    message: str
    policies_created: list[str]
    policies_failed: list[str]


@router.post(
    "/bucket",
    response_model=BootstrapResponse,
    status_code=201,
    responses={200: {"model": BootstrapResponse, "description": "Container already existed"}},
)
def create_bucket(request: Request, caller: RequireCaller) -> JSONResponse:
    """Create the files container if it does not exist yet."""
    store = get_files_service(request).store
    result = create_storage_area(store)

    if result.status is BootstrapStatus.ALREADY_EXISTED:
        message = "Storage bucket already exists"
        http_status = 200
    else:
        message = "Storage bucket created successfully"
        http_status = 201

    logger.info(
        "Storage bootstrap requested by %s: %s",
        caller.user_id,
        result.status.value,
    )

    body = BootstrapResponse(
        status=result.status.value,
        container=result.container,
        message=message,
        policies_created=result.policies_created,
        policies_failed=result.policies_failed,
    )
    return JSONResponse(status_code=http_status, content=body.model_dump())
