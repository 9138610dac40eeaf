"""Tests for principal FastAPI dependencies."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from custodia.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from custodia.foundation.domain.principal import Principal
from custodia.infra.auth.dependencies import OptionalPrincipal, get_principal_or_none
from custodia.infra.auth.middleware.gateway_auth import GatewayAuthMiddleware
from custodia.infra.fastapi.error_handlers import register_exception_handlers


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(GatewayAuthMiddleware, dev_bypass=False)
    register_exception_handlers(app)

    @app.get("/maybe")
    def maybe(principal: OptionalPrincipal) -> dict[str, str | None]:
        return {"subject": principal.subject if principal else None}

    return app


@pytest.mark.unit
class TestGetPrincipalOrNone:
    def test_returns_principal_in_context(self) -> None:
        token = set_principal_context(Principal(subject="uid-1"))
        try:
            assert get_principal_or_none() == Principal(subject="uid-1")
        finally:
            clear_principal_context(token)

    def test_none_without_principal(self) -> None:
        assert get_principal_or_none() is None


@pytest.mark.unit
class TestOptionalPrincipalOverHttp:
    def test_anonymous_request_is_not_rejected(self) -> None:
        response = TestClient(_make_app()).get("/maybe")
        assert response.status_code == 200
        assert response.json() == {"subject": None}

    def test_principal_from_header(self) -> None:
        response = TestClient(_make_app()).get("/maybe", headers={"X-Authenticated-User": "uid-1"})
        assert response.json() == {"subject": "uid-1"}
