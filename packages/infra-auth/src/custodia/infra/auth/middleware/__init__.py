"""Authentication middleware."""

from custodia.infra.auth.middleware.gateway_auth import GatewayAuthMiddleware

__all__ = ["GatewayAuthMiddleware"]
