"""Tests for GatewayAuthSettings."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from custodia.infra.auth.settings import GatewayAuthSettings, get_gateway_auth_settings


@pytest.mark.unit
class TestGatewayAuthSettings:
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = GatewayAuthSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.identity_header == "X-Authenticated-User"
        assert settings.roles_header == "X-Authenticated-Roles"
        assert settings.dev_bypass is False
        assert settings.dev_user == "dev-bypass-user"

    def test_env_prefix(self) -> None:
        env = {"AUTH_IDENTITY_HEADER": "X-Uid", "AUTH_DEV_BYPASS": "true"}
        with patch.dict("os.environ", env, clear=True):
            settings = GatewayAuthSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.identity_header == "X-Uid"
        assert settings.dev_bypass is True

    def test_blank_header_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            GatewayAuthSettings(identity_header="  ")

    def test_accessor_is_cached(self) -> None:
        get_gateway_auth_settings.cache_clear()
        try:
            assert get_gateway_auth_settings() is get_gateway_auth_settings()
        finally:
            get_gateway_auth_settings.cache_clear()

    def test_environment_read_without_prefix(self) -> None:
        env = {"ENVIRONMENT": "staging", "AUTH_ENVIRONMENT": "production"}
        with patch.dict("os.environ", env, clear=True):
            settings = GatewayAuthSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.environment == "staging"
        assert settings.dev_bypass_allowed is True

    @pytest.mark.parametrize("environment", ["production", "PRODUCTION", " production "])
    def test_production_disallows_dev_bypass(self, environment: str) -> None:
        settings = GatewayAuthSettings(environment=environment, dev_bypass=True)
        assert settings.dev_bypass_allowed is False

    @pytest.mark.parametrize("environment", ["development", "test", ""])
    def test_other_environments_allow_dev_bypass(self, environment: str) -> None:
        assert GatewayAuthSettings(environment=environment).dev_bypass_allowed is True
