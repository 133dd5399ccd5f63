"""Tests for the API error envelope."""

from __future__ import annotations

import json

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from codepad.api.error_model import code_for_status, error_response, request_id_for
from codepad.api.errors import CodepadHttpError, register_exception_handlers


def _request(headers: dict[str, str] | None = None, request_id: str | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "state": {},
    }
    request = Request(scope)
    if request_id is not None:
        request.state.request_id = request_id
    return request


class TestRequestIdFor:
    def test_prefers_middleware_id(self) -> None:
        request = _request({"X-Request-Id": "from-header"}, request_id="from-state")

        assert request_id_for(request) == "from-state"

    def test_falls_back_to_header(self) -> None:
        assert request_id_for(_request({"X-Request-Id": " from-header "})) == "from-header"

    def test_generates_uuid(self) -> None:
        generated = request_id_for(_request({"X-Request-Id": "  "}))

        assert len(generated) == 36


class TestErrorResponse:
    def test_envelope_and_header(self) -> None:
        response = error_response(
            _request(request_id="rid-1"),
            status_code=404,
            code="not_found",
            message="File not found or access denied",
        )

        assert response.status_code == 404
        assert response.headers["X-Request-Id"] == "rid-1"
        assert json.loads(bytes(response.body)) == {
            "code": "not_found",
            "message": "File not found or access denied",
            "details": None,
            "request_id": "rid-1",
        }

    def test_code_for_status(self) -> None:
        assert code_for_status(404) == "NOT_FOUND"
        assert code_for_status(413) == "PAYLOAD_TOO_LARGE"
        assert code_for_status(418) == "ERROR"


def test_unknown_route_uses_envelope(client: TestClient) -> None:
    response = client.get("/v1/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_FOUND"
    assert body["request_id"] == response.headers["X-Request-Id"]


def test_method_not_allowed_uses_envelope(client: TestClient) -> None:
    response = client.put("/health")

    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_ALLOWED"


def test_handlers_installable_on_bare_app() -> None:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/teapot")
    def teapot() -> None:
        raise CodepadHttpError(status_code=418, code="teapot", message="short and stout")

    response = TestClient(app).get("/teapot")

    assert response.status_code == 418
    assert response.json()["code"] == "teapot"
    assert response.headers["X-Request-Id"]
