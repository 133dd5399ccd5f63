"""Codepad API authentication.

Resolves the caller identity whose user id scopes every file operation.

Dual auth paths:
- Bearer session tokens (HS256 JWT signed with CODEPAD_SESSION_SECRET)
- API keys for scripts and service callers (X-Codepad-API-Key header)

Fails closed on missing or invalid credentials, with the same 401 envelope
for every failure.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Annotated, Any

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError

from codepad.api.errors import CodepadHttpError
from codepad.config import CODEPAD_API_KEYS_JSON_ENV, CODEPAD_SESSION_SECRET_ENV

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Codepad-API-Key"
BEARER_PREFIX = "Bearer "
SESSION_TOKEN_ALGORITHM = "HS256"
CLOCK_SKEW_SECONDS = 60


class CallerIdentity(BaseModel):
    """The authenticated caller.

    actor_type distinguishes HUMAN (session token) from SERVICE (API key).
    """

    user_id: str
    name: str | None = None
    email: str | None = None
    actor_type: str = "SERVICE"


class ApiKeyRecord(BaseModel):
    """API key registry entry."""

    user_id: str
    name: str | None = None
    email: str | None = None


def _unauthorized(message: str = "Invalid credentials") -> CodepadHttpError:
    return CodepadHttpError(status_code=401, code="unauthorized", message=message)


def _load_api_key_registry() -> dict[str, ApiKeyRecord]:
    """Load the API key registry from the environment.

    Returns an empty dict if the env var is missing or not valid JSON.
    Entries that do not validate are dropped.
    """
    raw = os.environ.get(CODEPAD_API_KEYS_JSON_ENV)
    if not raw:
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Failed to parse %s; treating as empty registry", CODEPAD_API_KEYS_JSON_ENV)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("%s is not a dict; treating as empty registry", CODEPAD_API_KEYS_JSON_ENV)
        return {}

    registry: dict[str, ApiKeyRecord] = {}
    for key, value in parsed.items():
        if not isinstance(key, str) or not isinstance(value, dict):
            continue
        try:
            registry[key] = ApiKeyRecord.model_validate(value)
        except ValidationError:
            continue

    return registry


def _constant_time_lookup(
    provided_key: str, registry: dict[str, ApiKeyRecord]
) -> ApiKeyRecord | None:
    """Look up an API key comparing against every entry in constant time."""
    matched_record: ApiKeyRecord | None = None
    provided_bytes = provided_key.encode("utf-8")

    for registered_key, record in registry.items():
        if hmac.compare_digest(provided_bytes, registered_key.encode("utf-8")):
            matched_record = record

    return matched_record


def _identity_from_api_key(request: Request) -> CallerIdentity:
    """Resolve the caller from the X-Codepad-API-Key header.

    Raises:
        CodepadHttpError: 401 if the key is missing or unknown.
    """
    api_key = request.headers.get(API_KEY_HEADER)
    if not api_key:
        raise _unauthorized("Missing credentials")

    record = _constant_time_lookup(api_key, _load_api_key_registry())
    if record is None:
        raise _unauthorized()

    return CallerIdentity(
        user_id=record.user_id,
        name=record.name,
        email=record.email,
        actor_type="SERVICE",
    )


def _b64url_decode(part: str) -> bytes:
    padding = 4 - len(part) % 4
    if padding != 4:
        part += "=" * padding
    return base64.urlsafe_b64decode(part)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()


def issue_session_token(
    user_id: str,
    secret: str,
    *,
    name: str | None = None,
    email: str | None = None,
    ttl_seconds: int = 3600,
    now: float | None = None,
) -> str:
    """Create an HS256 session token for a user.

    Used by the CLI and tests; the hosted sign-in flow issues its own tokens
    with the same secret.
    """
    issued_at = int(time.time() if now is None else now)
    header = {"alg": SESSION_TOKEN_ALGORITHM, "typ": "JWT"}
    payload: dict[str, Any] = {"sub": user_id, "iat": issued_at, "exp": issued_at + ttl_seconds}
    if name:
        payload["name"] = name
    if email:
        payload["email"] = email

    signing_input = ".".join(
        _b64url_encode(json.dumps(part, separators=(",", ":")).encode("utf-8"))
        for part in (header, payload)
    )
    signature = _sign(signing_input.encode("ascii"), secret)
    return f"{signing_input}.{_b64url_encode(signature)}"


def validate_session_token(token: str, secret: str, *, now: float | None = None) -> CallerIdentity:
    """Validate an HS256 session token and return the caller.

    Validation (fail-closed):
    1. Three dot-separated base64url parts with JSON header and payload
    2. alg is HS256 and the signature matches
    3. exp present and not passed, nbf (if present) reached, both with skew
    4. sub is a non-empty string

    Raises:
        CodepadHttpError: 401 on any failure.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise _unauthorized()

    try:
        header = json.loads(_b64url_decode(parts[0]).decode("utf-8"))
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
        signature = _b64url_decode(parts[2])
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug("Session token decode error: %s", e)
        raise _unauthorized() from e

    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise _unauthorized()

    if header.get("alg") != SESSION_TOKEN_ALGORITHM:
        logger.warning("Session token with unsupported alg: %s", header.get("alg"))
        raise _unauthorized()

    expected = _sign(f"{parts[0]}.{parts[1]}".encode("ascii"), secret)
    if not hmac.compare_digest(expected, signature):
        raise _unauthorized()

    current = time.time() if now is None else now

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise _unauthorized()
    if current > exp + CLOCK_SKEW_SECONDS:
        logger.info("Session token expired: exp=%s, now=%s", exp, current)
        raise _unauthorized()

    nbf = payload.get("nbf")
    if nbf is not None and (
        isinstance(nbf, bool)
        or not isinstance(nbf, (int, float))
        or current < nbf - CLOCK_SKEW_SECONDS
    ):
        raise _unauthorized()

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise _unauthorized()

    name = payload.get("name")
    email = payload.get("email")
    return CallerIdentity(
        user_id=sub,
        name=name if isinstance(name, str) else None,
        email=email if isinstance(email, str) else None,
        actor_type="HUMAN",
    )


def _extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith(BEARER_PREFIX):
        return auth_header[len(BEARER_PREFIX) :].strip()
    return None


async def require_caller(request: Request) -> CallerIdentity:
    """FastAPI dependency that enforces authentication.

    Auth flow (fail closed, dual path):
    1. If Authorization: Bearer is present => validate the session token.
    2. Else resolve X-Codepad-API-Key => 401 on missing/invalid.
    3. Store the identity in request.state.caller.

    Raises:
        CodepadHttpError: 401 on any auth failure.
    """
    bearer_token = _extract_bearer_token(request)

    if bearer_token:
        secret = os.environ.get(CODEPAD_SESSION_SECRET_ENV)
        if not secret:
            logger.warning("Bearer token presented but %s is not set", CODEPAD_SESSION_SECRET_ENV)
            raise _unauthorized()
        caller = validate_session_token(bearer_token, secret)
    else:
        caller = _identity_from_api_key(request)

    request.state.caller = caller

    return caller


RequireCaller = Annotated[CallerIdentity, Depends(require_caller)]
