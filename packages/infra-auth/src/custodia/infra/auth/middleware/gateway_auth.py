"""Gateway identity middleware.

Credentials are verified upstream by the API gateway, which forwards the
caller identity in trusted headers. This middleware turns those headers
into a ``Principal`` in the principal ContextVar for the request duration.

A request without the identity header passes through with no principal.
Endpoints decide what that means; the deletion endpoint reports it as
``UNAUTHENTICATED``.

Development bypass: with ``AUTH_DEV_BYPASS=true`` a request lacking the
identity header runs as ``AUTH_DEV_USER``. ``ENVIRONMENT=production``
always locks the bypass out, and a header sent by the gateway always wins.

Middleware position in stack (LIFO registration order):
  Request -> RequestId -> GatewayAuth -> CORS -> Route
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from custodia.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from custodia.foundation.application.contributions import MiddlewareContribution
from custodia.foundation.domain.principal import Principal
from custodia.infra.auth.settings import get_gateway_auth_settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from custodia.infra.auth.settings import GatewayAuthSettings

logger = logging.getLogger(__name__)


def _header(headers: list[tuple[bytes, bytes]], name: bytes) -> str:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1").strip()
    return ""


def _split_roles(value: str) -> tuple[str, ...]:
    return tuple(role.strip() for role in value.split(",") if role.strip())


class GatewayAuthMiddleware:
    """Pure ASGI middleware building the request principal from gateway headers.

    Request flow:
    1. Read the identity header -> build Principal (roles, email optional)
    2. Header absent and dev bypass active -> Principal(dev_user)
    3. Header absent otherwise -> continue without a principal

    Arguments left as ``None`` are read from :class:`GatewayAuthSettings`.
    """

    def __init__(
        self,
        app: Any,
        identity_header: str | None = None,
        roles_header: str | None = None,
        email_header: str | None = None,
        dev_bypass: bool | None = None,
        dev_user: str | None = None,
    ) -> None:
        settings = get_gateway_auth_settings()
        self.app = app
        self._identity_header = (identity_header or settings.identity_header).lower().encode()
        self._roles_header = (roles_header or settings.roles_header).lower().encode()
        self._email_header = (email_header or settings.email_header).lower().encode()
        self._dev_user = self._resolve_dev_user(
            settings,
            requested=settings.dev_bypass if dev_bypass is None else dev_bypass,
            dev_user=dev_user or settings.dev_user,
        )

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        principal = self._principal_from(scope.get("headers", []))
        if principal is None:
            logger.debug("gateway_auth_no_identity", extra={"path": scope.get("path", "")})
            await self.app(scope, receive, send)
            return

        token = set_principal_context(principal)
        try:
            await self.app(scope, receive, send)
        finally:
            clear_principal_context(token)

    def _principal_from(self, headers: list[tuple[bytes, bytes]]) -> Principal | None:
        subject = _header(headers, self._identity_header)
        if not subject:
            if self._dev_user is not None:
                return Principal(subject=self._dev_user)
            return None
        return Principal(
            subject=subject,
            roles=_split_roles(_header(headers, self._roles_header)),
            email=_header(headers, self._email_header) or None,
        )

    def _resolve_dev_user(
        self,
        settings: GatewayAuthSettings,
        *,
        requested: bool,
        dev_user: str,
    ) -> str | None:
        """Identity injected when the identity header is absent, or None."""
        if not requested:
            return None

        context = {
            "environment": settings.environment,
            "identity_header": self._identity_header.decode(),
        }
        if not settings.dev_bypass_allowed:
            logger.error(
                "gateway_auth_dev_bypass_blocked",
                extra={**context, "detail": "Development bypass requested in production."},
            )
            return None

        logger.warning(
            "gateway_auth_dev_bypass_active",
            extra={**context, "dev_user": dev_user},
        )
        return dev_user


contribution = MiddlewareContribution(
    middleware_class=GatewayAuthMiddleware,
    priority=150,  # Security band (100-199)
)
