"""Unit tests for custodia.infra.fastapi.middleware.request_id."""

from __future__ import annotations

import uuid
from typing import Any

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from custodia.infra.fastapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    _is_valid_uuid,
    contribution,
    extract_header,
    get_request_id,
    request_id_ctx,
)


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/test")
    def test_endpoint() -> dict[str, Any]:
        return {
            "request_id": get_request_id(),
            "bound": structlog.contextvars.get_contextvars().get("request_id"),
        }

    return app


class TestIsValidUUID:
    @pytest.mark.unit
    def test_valid_uuid4(self) -> None:
        assert _is_valid_uuid(str(uuid.uuid4())) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "not-a-uuid", "12345678-1234"])
    def test_invalid(self, value: str | None) -> None:
        assert _is_valid_uuid(value) is False


class TestExtractHeader:
    @pytest.mark.unit
    def test_case_insensitive(self) -> None:
        headers = [(b"X-Request-ID", b"abc")]
        assert extract_header(headers, b"x-request-id") == "abc"

    @pytest.mark.unit
    def test_missing(self) -> None:
        assert extract_header([], b"x-request-id") == ""


class TestRequestIdMiddleware:
    @pytest.mark.unit
    def test_generates_uuid_when_no_header(self) -> None:
        resp = TestClient(_make_app()).get("/test")
        response_id = resp.headers[REQUEST_ID_HEADER]
        assert _is_valid_uuid(response_id)
        assert resp.json()["request_id"] == response_id

    @pytest.mark.unit
    def test_extracts_valid_uuid_from_header(self) -> None:
        expected_id = str(uuid.uuid4())
        resp = TestClient(_make_app()).get("/test", headers={REQUEST_ID_HEADER: expected_id})
        assert resp.headers[REQUEST_ID_HEADER] == expected_id
        assert resp.json()["request_id"] == expected_id

    @pytest.mark.unit
    def test_replaces_invalid_uuid_with_generated(self) -> None:
        resp = TestClient(_make_app()).get("/test", headers={REQUEST_ID_HEADER: "not-a-uuid"})
        response_id = resp.headers[REQUEST_ID_HEADER]
        assert _is_valid_uuid(response_id)
        assert response_id != "not-a-uuid"

    @pytest.mark.unit
    def test_binds_structlog_context(self) -> None:
        resp = TestClient(_make_app()).get("/test")
        assert resp.json()["bound"] == resp.headers[REQUEST_ID_HEADER]

    @pytest.mark.unit
    def test_context_reset_after_request(self) -> None:
        TestClient(_make_app()).get("/test")
        assert request_id_ctx.get() == ""
        assert "request_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.unit
    def test_contribution_is_outermost_band(self) -> None:
        assert contribution.middleware_class is RequestIdMiddleware
        assert contribution.priority < 100
