"""Unit tests for HttpIdentityStore using httpx.MockTransport."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest
from pydantic import SecretStr

from custodia.domain.identity.infrastructure.http_identity_store import (
    HttpIdentityStore,
    IdentityStoreSettings,
)
from custodia.foundation.domain.exceptions import BackendError, BackendTimeoutError
from custodia.foundation.domain.ports import IdentityStorePort

BASE_URL = "https://auth.example.com/admin"


def _store(
    handler: Callable[[httpx.Request], httpx.Response],
    requests: list[httpx.Request] | None = None,
) -> HttpIdentityStore:
    def _record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(_record))
    return HttpIdentityStore(BASE_URL, api_token="svc-token", timeout=2.0, client=client)


@pytest.mark.unit
class TestExists:
    def test_satisfies_port(self) -> None:
        assert isinstance(HttpIdentityStore(BASE_URL), IdentityStorePort)

    def test_found(self) -> None:
        requests: list[httpx.Request] = []
        store = _store(lambda r: httpx.Response(200, json={"id": "u-1"}), requests)

        assert store.exists("u-1") is True
        assert requests[0].method == "GET"
        assert str(requests[0].url) == f"{BASE_URL}/users/u-1"
        assert requests[0].headers["Authorization"] == "Bearer svc-token"

    def test_not_found(self) -> None:
        store = _store(lambda r: httpx.Response(404))

        assert store.exists("u-1") is False

    def test_server_error(self) -> None:
        store = _store(lambda r: httpx.Response(503))

        with pytest.raises(BackendError) as exc_info:
            store.exists("u-1")

        assert exc_info.value.context["status"] == 503


@pytest.mark.unit
class TestDelete:
    def test_deleted(self) -> None:
        requests: list[httpx.Request] = []
        store = _store(lambda r: httpx.Response(204), requests)

        assert store.delete("u-1") is True
        assert requests[0].method == "DELETE"

    def test_already_absent_is_success(self) -> None:
        store = _store(lambda r: httpx.Response(404))

        assert store.delete("u-1") is False

    def test_uid_is_path_escaped(self) -> None:
        requests: list[httpx.Request] = []
        store = _store(lambda r: httpx.Response(204), requests)

        store.delete("a/b")

        assert requests[0].url.raw_path == b"/admin/users/a%2Fb"

    def test_timeout_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        store = _store(handler)

        with pytest.raises(BackendTimeoutError) as exc_info:
            store.delete("u-1")

        assert exc_info.value.operation == "delete"
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    def test_connection_error_is_not_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        store = _store(handler)

        with pytest.raises(BackendError) as exc_info:
            store.delete("u-1")

        assert exc_info.value.transient is False

    def test_forbidden_is_backend_error(self) -> None:
        store = _store(lambda r: httpx.Response(403, text="token secret=abc rejected"))

        with pytest.raises(BackendError) as exc_info:
            store.delete("u-1")

        assert "secret" not in exc_info.value.message


@pytest.mark.unit
class TestLifecycle:
    def test_no_auth_header_without_token(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        store = HttpIdentityStore(BASE_URL, client=client)

        store.exists("u-1")

        assert "Authorization" not in requests[0].headers

    def test_close_leaves_external_client_open(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        store = HttpIdentityStore(BASE_URL, client=client)

        store.close()

        assert client.is_closed is False
        client.close()

    def test_close_owned_client(self) -> None:
        store = HttpIdentityStore(BASE_URL)
        owned = store._get_client()

        store.close()

        assert owned.is_closed is True

    def test_from_settings(self) -> None:
        settings = IdentityStoreSettings(
            base_url=f"{BASE_URL}/",
            api_token=SecretStr("tok"),
            timeout=3.0,
        )

        store = HttpIdentityStore.from_settings(settings)

        assert store._base_url == BASE_URL
        assert store._api_token == "tok"
        assert store._timeout == 3.0


@pytest.mark.unit
class TestIdentityStoreSettings:
    def test_token_hidden_in_repr(self) -> None:
        env = {"IDENTITY_STORE_API_TOKEN": "very-secret"}
        with patch.dict("os.environ", env, clear=True):
            settings = IdentityStoreSettings()

        assert "very-secret" not in repr(settings)
        assert settings.api_token.get_secret_value() == "very-secret"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            IdentityStoreSettings(timeout=0)
