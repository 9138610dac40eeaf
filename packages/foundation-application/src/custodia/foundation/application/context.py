"""Principal context propagation for the current request.

Provides a ContextVar-based mechanism for making the authenticated caller
available across the call stack without explicit parameter passing. The
gateway authentication middleware sets it; endpoint dependencies read it.

Usage:
    # In middleware
    token = set_principal_context(Principal(subject="uid-123"))
    try:
        ...
    finally:
        clear_principal_context(token)

    # In endpoint dependencies
    principal = get_optional_principal()  # None for anonymous callers
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from custodia.foundation.domain.principal import Principal


_principal_context: ContextVar[Principal | None] = ContextVar("principal_context", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    """Set the authenticated principal for the current request.

    Args:
        principal: Principal built from the gateway identity headers.

    Returns:
        Token for resetting the context.
    """
    return _principal_context.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    """Reset the principal context using the provided token.

    Args:
        token: Token from set_principal_context.
    """
    _principal_context.reset(token)


def get_optional_principal() -> Principal | None:
    """Get the authenticated principal if available, or None."""
    return _principal_context.get()
