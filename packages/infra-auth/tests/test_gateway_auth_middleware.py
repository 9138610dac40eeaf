"""Tests for GatewayAuthMiddleware: header mapping, anonymous flow, dev bypass."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient

from custodia.foundation.application.context import get_optional_principal
from custodia.infra.auth.middleware.gateway_auth import GatewayAuthMiddleware, contribution
from custodia.infra.auth.settings import get_gateway_auth_settings

if TYPE_CHECKING:
    from starlette.requests import Request


async def whoami(request: Request) -> Response:
    principal = get_optional_principal()
    if principal is None:
        return JSONResponse({"principal": None})
    return JSONResponse(
        {
            "principal": {
                "subject": principal.subject,
                "roles": list(principal.roles),
                "email": principal.email,
            }
        }
    )


def _make_app(*, dev_bypass: bool = False, dev_user: str | None = None) -> Starlette:
    app = Starlette(routes=[Route("/whoami", whoami)])
    app.add_middleware(GatewayAuthMiddleware, dev_bypass=dev_bypass, dev_user=dev_user)
    return app


@pytest.mark.unit
class TestIdentityHeaders:
    def test_identity_header_sets_principal(self) -> None:
        client = TestClient(_make_app())
        response = client.get(
            "/whoami",
            headers={
                "X-Authenticated-User": "uid-1",
                "X-Authenticated-Roles": "admin, officer,",
                "X-Authenticated-Email": "a@example.org",
            },
        )
        assert response.json()["principal"] == {
            "subject": "uid-1",
            "roles": ["admin", "officer"],
            "email": "a@example.org",
        }

    def test_missing_header_passes_through_anonymously(self) -> None:
        response = TestClient(_make_app()).get("/whoami")
        assert response.status_code == 200
        assert response.json() == {"principal": None}

    def test_blank_header_is_anonymous(self) -> None:
        response = TestClient(_make_app()).get("/whoami", headers={"X-Authenticated-User": "  "})
        assert response.json() == {"principal": None}

    def test_principal_cleared_after_request(self) -> None:
        TestClient(_make_app()).get("/whoami", headers={"X-Authenticated-User": "uid-1"})
        assert get_optional_principal() is None

    def test_custom_header_name(self) -> None:
        app = Starlette(routes=[Route("/whoami", whoami)])
        app.add_middleware(GatewayAuthMiddleware, identity_header="X-Uid", dev_bypass=False)
        response = TestClient(app).get("/whoami", headers={"X-Uid": "uid-9"})
        assert response.json()["principal"]["subject"] == "uid-9"


@pytest.mark.unit
class TestDevBypass:
    @pytest.fixture(autouse=True)
    def _development(self, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
        monkeypatch.setenv("ENVIRONMENT", "development")
        get_gateway_auth_settings.cache_clear()
        yield
        get_gateway_auth_settings.cache_clear()

    def test_bypass_injects_dev_user(self) -> None:
        response = TestClient(_make_app(dev_bypass=True, dev_user="dev-admin")).get("/whoami")
        assert response.json()["principal"]["subject"] == "dev-admin"

    def test_header_wins_over_bypass(self) -> None:
        client = TestClient(_make_app(dev_bypass=True, dev_user="dev-admin"))
        response = client.get("/whoami", headers={"X-Authenticated-User": "uid-1"})
        assert response.json()["principal"]["subject"] == "uid-1"

    def test_bypass_not_requested_stays_anonymous(self) -> None:
        response = TestClient(_make_app(dev_bypass=False, dev_user="dev-admin")).get("/whoami")
        assert response.json() == {"principal": None}

    def test_active_bypass_is_logged_with_header_name(
        self,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING):
            TestClient(_make_app(dev_bypass=True, dev_user="dev-admin")).get("/whoami")

        records = [r for r in caplog.records if r.getMessage() == "gateway_auth_dev_bypass_active"]
        assert len(records) == 1
        assert records[0].identity_header == "x-authenticated-user"
        assert records[0].dev_user == "dev-admin"

    @pytest.mark.parametrize("environment", ["production", " Production "])
    def test_production_blocks_bypass(
        self,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
        environment: str,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", environment)
        get_gateway_auth_settings.cache_clear()

        with caplog.at_level(logging.ERROR):
            response = TestClient(_make_app(dev_bypass=True, dev_user="dev-admin")).get("/whoami")

        assert response.json() == {"principal": None}
        assert "gateway_auth_dev_bypass_blocked" in caplog.messages

    def test_production_still_accepts_gateway_header(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        get_gateway_auth_settings.cache_clear()

        client = TestClient(_make_app(dev_bypass=True, dev_user="dev-admin"))
        response = client.get("/whoami", headers={"X-Authenticated-User": "uid-1"})

        assert response.json()["principal"]["subject"] == "uid-1"


@pytest.mark.unit
def test_contribution_in_security_band() -> None:
    assert contribution.middleware_class is GatewayAuthMiddleware
    assert 100 <= contribution.priority < 200
