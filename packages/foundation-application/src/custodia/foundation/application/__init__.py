"""Custodia Foundation Application -- application layer patterns."""

from custodia.foundation.application.context import (
    clear_principal_context,
    get_optional_principal,
    set_principal_context,
)
from custodia.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LIFESPAN_PRIORITY_PERSISTENCE,
    LIFESPAN_PRIORITY_SERVICES,
    LifespanContribution,
    MiddlewareContribution,
)

__all__ = [
    "LIFESPAN_PRIORITY_OBSERVABILITY",
    "LIFESPAN_PRIORITY_PERSISTENCE",
    "LIFESPAN_PRIORITY_SERVICES",
    "LifespanContribution",
    "MiddlewareContribution",
    "clear_principal_context",
    "get_optional_principal",
    "set_principal_context",
]
