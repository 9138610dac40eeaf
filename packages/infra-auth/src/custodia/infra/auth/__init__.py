"""Custodia Infra Auth -- gateway identity middleware and principal dependencies.

Credential verification happens in the upstream API gateway. This package
turns the gateway's identity headers into a request ``Principal`` and
exposes it to endpoints through FastAPI dependencies.
"""

from custodia.infra.auth.dependencies import (
    OptionalPrincipal,
    get_principal_or_none,
)
from custodia.infra.auth.middleware.gateway_auth import GatewayAuthMiddleware, contribution
from custodia.infra.auth.settings import GatewayAuthSettings, get_gateway_auth_settings

__all__ = [
    "GatewayAuthMiddleware",
    "GatewayAuthSettings",
    "OptionalPrincipal",
    "contribution",
    "get_gateway_auth_settings",
    "get_principal_or_none",
]
