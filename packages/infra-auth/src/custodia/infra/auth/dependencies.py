"""FastAPI dependency functions for the request principal.

Anonymous callers are not rejected here. The cascade service reports them
as ``UNAUTHENTICATED`` so that authentication is judged in the same place
as every other deletion precondition.

Usage:
    from custodia.infra.auth.dependencies import OptionalPrincipal

    @router.post("/delete")
    def delete_user(principal: OptionalPrincipal, ...):
        requester_id = principal.subject if principal else ""
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from custodia.foundation.application.context import get_optional_principal
from custodia.foundation.domain.principal import Principal


def get_principal_or_none() -> Principal | None:
    """FastAPI dependency returning the principal, or None when anonymous."""
    return get_optional_principal()


OptionalPrincipal = Annotated[Principal | None, Depends(get_principal_or_none)]
