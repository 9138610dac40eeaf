"""Custodia Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks shared by every
custodia package: the exception hierarchy, the principal value object,
the static role hierarchy and the collaborator port interfaces.
"""

from custodia.foundation.domain.exceptions import (
    BackendError,
    BackendTimeoutError,
    CascadeDeletionError,
    DomainError,
)
from custodia.foundation.domain.ports import DocumentStorePort, IdentityStorePort
from custodia.foundation.domain.principal import Principal
from custodia.foundation.domain.roles import (
    DEFAULT_ROLE,
    ROLE_RANKS,
    UNKNOWN_ROLE_RANK,
    outranks,
    rank_of,
)

__all__ = [
    "DEFAULT_ROLE",
    "ROLE_RANKS",
    "UNKNOWN_ROLE_RANK",
    "BackendError",
    "BackendTimeoutError",
    "CascadeDeletionError",
    "DocumentStorePort",
    "DomainError",
    "IdentityStorePort",
    "Principal",
    "outranks",
    "rank_of",
]
