"""User deletion REST API router.

Plugs into ``create_app()`` via ``routers``. The cascade service is
read from ``app.state.cascade_deletion_service`` (set by the lifespan hook
or by the application factory) and the caller identity from the principal
context populated by the gateway authentication middleware.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request
from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from custodia.domain.identity.cascade_deletion import CascadeDeletionService
from custodia.domain.identity.outcomes import DeletionErrorKind, DeletionFailed
from custodia.foundation.domain.exceptions import CascadeDeletionError
from custodia.infra.auth.dependencies import OptionalPrincipal

router = APIRouter(prefix="/users", tags=["users"])

SUCCESS_MESSAGE = "User and all associated data deleted successfully"

# Kinds whose context may carry deletion progress. Denials stay opaque.
_PROGRESS_KINDS = frozenset(
    {
        DeletionErrorKind.PARTIAL_DELETION,
        DeletionErrorKind.DELETION_INCOMPLETE,
        DeletionErrorKind.INTERNAL,
    }
)


# -- Request / Response models ------------------------------------------------


# Accepted spellings of the target field, in lookup order.
TARGET_ID_FIELDS = ("targetId", "target_id")

DeleteUserBody = Annotated[
    Any,
    Body(
        description="JSON object naming the user to delete.",
        examples=[{"targetId": "u-123"}],
    ),
]


class DeleteUserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=AliasGenerator(serialization_alias=to_camel))

    success: bool = True
    message: str = SUCCESS_MESSAGE
    target_id: str
    deleted_child_count: int
    deleted_by_collection: dict[str, int]


# -- Dependencies --------------------------------------------------------------


def get_cascade_service(request: Request) -> CascadeDeletionService:
    """Return the cascade service attached to the running app."""
    service: CascadeDeletionService | None = getattr(
        request.app.state, "cascade_deletion_service", None
    )
    if service is None:
        msg = "cascade_deletion_service is not configured on app.state"
        raise RuntimeError(msg)
    return service


CascadeService = Annotated[CascadeDeletionService, Depends(get_cascade_service)]


# -- Endpoints ----------------------------------------------------------------


@router.post("/delete")
def delete_user(
    service: CascadeService,
    principal: OptionalPrincipal,
    body: DeleteUserBody = None,
) -> DeleteUserResponse:
    """Delete a user, their owned records and their identity account.

    The body is taken as raw JSON so that authentication is judged before
    the target id. The cascade service classifies a missing or malformed
    target id as ``INVALID_ARGUMENT``.
    """
    requester_id = principal.subject if principal is not None else ""

    outcome = service.delete_identity_cascade(requester_id, extract_target_id(body))
    if isinstance(outcome, DeletionFailed):
        raise to_http_error(outcome)

    return DeleteUserResponse(
        target_id=outcome.target_id,
        deleted_child_count=outcome.deleted_child_count,
        deleted_by_collection=dict(outcome.deleted_by_collection),
    )


# -- Helpers ------------------------------------------------------------------


def extract_target_id(body: Any) -> Any:
    """Return the raw target id from a request body, or None when absent."""
    if not isinstance(body, dict):
        return None
    for field in TARGET_ID_FIELDS:
        if field in body:
            return body[field]
    return None


def to_http_error(failure: DeletionFailed) -> CascadeDeletionError:
    """Wrap a failed outcome for the RFC 7807 exception handler."""
    context: dict[str, Any] = {}
    if failure.target_id:
        context["target_id"] = failure.target_id
    if failure.kind in _PROGRESS_KINDS:
        context["completed_steps"] = [step.value for step in failure.completed_steps]
        context["completed_collections"] = list(failure.completed_collections)
        context["deleted_child_count"] = failure.deleted_child_count
        if failure.failed_collection is not None:
            context["failed_collection"] = failure.failed_collection
        if failure.failed_step is not None:
            context["failed_step"] = failure.failed_step.value
    return CascadeDeletionError(
        failure.message,
        failure.error_code,
        retryable=failure.retryable,
        context=context or None,
    )
