"""Configuration for the cascading identity deletion workflow.

Environment variables use the ``CASCADE_`` prefix (e.g.,
``CASCADE_MAX_BATCH_SIZE``). The child collection registration is NOT
configurable here; it lives in ``child_collections``.
"""

from __future__ import annotations

import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from custodia.foundation.domain.roles import DEFAULT_ROLE

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class CascadeDeletionSettings(BaseSettings):
    """Cascade deletion settings.

    Attributes:
        max_batch_size: Upper bound on ids per atomic child-record batch.
            The effective size is the smaller of this and the store's limit.
        profile_collection: Collection holding one profile per identity.
        role_field: Profile field holding the role name.
        default_role: Role assumed when a profile has no role.
        receipt_collection: Collection holding deletion receipts.
    """

    model_config = SettingsConfigDict(env_prefix="CASCADE_", extra="ignore")

    max_batch_size: int = Field(default=500, ge=1, le=10_000)
    profile_collection: str = Field(default="users")
    role_field: str = Field(default="user_role")
    default_role: str = Field(default=DEFAULT_ROLE)
    receipt_collection: str = Field(default="deletion_receipts")

    @field_validator("profile_collection", "role_field", "receipt_collection")
    @classmethod
    def _validate_identifier(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            msg = f"must be a plain identifier, got {v!r}"
            raise ValueError(msg)
        return v


@lru_cache(maxsize=1)
def get_cascade_settings() -> CascadeDeletionSettings:
    """Get cached CascadeDeletionSettings instance.

    Clear cache with ``get_cascade_settings.cache_clear()`` for testing.
    """
    return CascadeDeletionSettings()
