"""HTTP client for the identity provider's user admin API.

The identity store is reached through two endpoints:

- ``GET {base_url}/users/{uid}``: 200 when the identity exists, 404 when not.
- ``DELETE {base_url}/users/{uid}``: 2xx on deletion, 404 when already gone.

Requests carry a bearer service token and an explicit timeout. Transport
and 5xx failures surface as ``BackendError`` so that callers never see
httpx exception types.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from urllib.parse import quote

import httpx
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from custodia.foundation.domain.exceptions import BackendError, BackendTimeoutError

logger = logging.getLogger(__name__)

_BACKEND = "identity_store"


class IdentityStoreSettings(BaseSettings):
    """Identity provider admin API configuration.

    Environment variables use the ``IDENTITY_STORE_`` prefix.

    Attributes:
        base_url: Admin API base URL (e.g., "https://auth.example.com/admin").
        api_token: Bearer token for the admin API. Never logged.
        timeout: Per-request timeout in seconds.
    """

    model_config = SettingsConfigDict(env_prefix="IDENTITY_STORE_", extra="ignore")

    base_url: str = Field(default="http://localhost:8081")
    api_token: SecretStr = Field(default=SecretStr(""))
    timeout: float = Field(default=10.0, gt=0, le=120)


@lru_cache(maxsize=1)
def get_identity_store_settings() -> IdentityStoreSettings:
    """Get cached IdentityStoreSettings instance.

    Clear cache with ``get_identity_store_settings.cache_clear()`` for testing.
    """
    return IdentityStoreSettings()


class HttpIdentityStore:
    """Identity store adapter over the provider's admin API.

    If ``client`` is provided it is reused across calls and the caller
    manages its lifecycle; otherwise an internal client is created lazily
    and released by :meth:`close`.

    Args:
        base_url: Admin API base URL.
        api_token: Bearer token sent on every request.
        timeout: Request timeout in seconds.
        client: Optional shared httpx.Client instance.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.Client | None = client

    @classmethod
    def from_settings(cls, settings: IdentityStoreSettings) -> HttpIdentityStore:
        return cls(
            base_url=settings.base_url,
            api_token=settings.api_token.get_secret_value(),
            timeout=settings.timeout,
        )

    def exists(self, uid: str) -> bool:
        response = self._request("GET", uid, operation="exists")
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        self._raise_for_status(response, "exists")
        return True

    def delete(self, uid: str) -> bool:
        """Delete the identity.

        Returns:
            True if deleted, False if the provider reported it absent.
        """
        response = self._request("DELETE", uid, operation="delete")
        if response.status_code == httpx.codes.NOT_FOUND:
            logger.info("identity_store_delete_absent", extra={"uid": uid})
            return False
        self._raise_for_status(response, "delete")
        return True

    def close(self) -> None:
        """Close the internal client if we own it."""
        if self._client is not None and not self._external_client:
            self._client.close()
            self._client = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    def _request(self, method: str, uid: str, *, operation: str) -> httpx.Response:
        url = f"{self._base_url}/users/{quote(uid, safe='')}"
        try:
            return self._get_client().request(
                method,
                url,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(_BACKEND, operation, uid=uid) from exc
        except httpx.HTTPError as exc:
            raise BackendError(_BACKEND, operation, uid=uid) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "identity_store_request_failed",
                extra={"operation": operation, "status": response.status_code},
            )
            raise BackendError(_BACKEND, operation, status=response.status_code) from exc
