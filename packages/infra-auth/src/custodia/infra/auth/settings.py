"""Gateway authentication settings.

Loaded from environment variables with AUTH_ prefix. The upstream API
gateway verifies credentials and forwards the caller identity in headers;
these settings name those headers.

Environment Variables:
    AUTH_IDENTITY_HEADER: Header carrying the verified identity id
    AUTH_ROLES_HEADER: Header carrying comma-separated role claims
    AUTH_EMAIL_HEADER: Header carrying the caller email
    AUTH_DEV_BYPASS: Inject a fixed identity when the header is absent
    AUTH_DEV_USER: Identity id injected by the dev bypass
    ENVIRONMENT: Deployment environment; "production" locks the dev bypass out
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayAuthSettings(BaseSettings):
    """Gateway authentication configuration loaded from environment variables.

    Example:
        >>> settings = GatewayAuthSettings()
        >>> settings.identity_header
        'X-Authenticated-User'
        >>> settings.dev_bypass
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    identity_header: str = Field(
        default="X-Authenticated-User",
        description="Header carrying the gateway-verified identity id",
    )
    roles_header: str = Field(
        default="X-Authenticated-Roles",
        description="Header carrying comma-separated role claims",
    )
    email_header: str = Field(
        default="X-Authenticated-Email",
        description="Header carrying the caller email",
    )
    dev_bypass: bool = Field(
        default=False,
        description="Inject dev_user when the identity header is absent",
    )
    dev_user: str = Field(
        default="dev-bypass-user",
        description="Identity id injected by the development bypass",
    )
    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment name, shared with logging",
    )

    @field_validator("identity_header", "roles_header", "email_header")
    @classmethod
    def _validate_header_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "header name must not be empty"
            raise ValueError(msg)
        return v

    @property
    def dev_bypass_allowed(self) -> bool:
        """The development bypass never runs in production."""
        return self.environment.strip().lower() != "production"


@lru_cache(maxsize=1)
def get_gateway_auth_settings() -> GatewayAuthSettings:
    """Get singleton GatewayAuthSettings instance.

    Clear cache with ``get_gateway_auth_settings.cache_clear()`` for testing.
    """
    return GatewayAuthSettings()
