"""Role-hierarchy authorization for identity deletion.

The evaluator is a pure read-and-decide component: it loads the requester
and target profiles, resolves both ranks from the static role table and
grants deletion only when the requester strictly outranks the target.
It has no side effects and is safe to retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from custodia.foundation.domain.roles import DEFAULT_ROLE, outranks

if TYPE_CHECKING:
    from custodia.foundation.domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)


class DecisionKind(StrEnum):
    """Possible authorization results."""

    ALLOWED = "allowed"
    DENIED = "denied"
    REQUESTER_NOT_FOUND = "requester_not_found"
    TARGET_NOT_FOUND = "target_not_found"


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    """Outcome of an authorization check.

    ``requester_role`` and ``target_role`` are for internal logging only and
    must not be echoed to the caller on denial.

    Attributes:
        kind: The decision.
        reason: Short client-safe reason ("insufficient privilege" on denial).
        requester_role: Resolved requester role, if the profile was found.
        target_role: Resolved target role, if the profile was found.
    """

    kind: DecisionKind
    reason: str = ""
    requester_role: str | None = None
    target_role: str | None = None

    @property
    def allowed(self) -> bool:
        return self.kind is DecisionKind.ALLOWED


class AuthorizationEvaluator:
    """Decides whether one identity may delete another.

    Args:
        store: Document store holding the profiles.
        profile_collection: Collection holding one profile per identity id.
        role_field: Profile field holding the role name.
        default_role: Role assumed when the field is absent or empty.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        *,
        profile_collection: str = "users",
        role_field: str = "user_role",
        default_role: str = DEFAULT_ROLE,
    ) -> None:
        self._store = store
        self._profile_collection = profile_collection
        self._role_field = role_field
        self._default_role = default_role

    def evaluate(self, requester_id: str, target_id: str) -> AuthorizationDecision:
        """Decide whether ``requester_id`` may delete ``target_id``.

        Raises:
            BackendError: If a profile lookup fails. Not classified here.
        """
        requester = self._store.get(self._profile_collection, requester_id)
        if requester is None:
            return AuthorizationDecision(
                DecisionKind.REQUESTER_NOT_FOUND,
                "requester profile not found",
            )

        target = self._store.get(self._profile_collection, target_id)
        if target is None:
            return AuthorizationDecision(
                DecisionKind.TARGET_NOT_FOUND,
                "target profile not found",
                requester_role=self.role_of(requester),
            )

        return self.evaluate_roles(self.role_of(requester), self.role_of(target))

    def evaluate_roles(self, requester_role: str, target_role: str) -> AuthorizationDecision:
        """Apply the strict-inequality rank rule to two already-resolved roles."""
        if outranks(requester_role, target_role):
            return AuthorizationDecision(
                DecisionKind.ALLOWED,
                requester_role=requester_role,
                target_role=target_role,
            )
        logger.info(
            "authorization_denied",
            extra={"requester_role": requester_role, "target_role": target_role},
        )
        return AuthorizationDecision(
            DecisionKind.DENIED,
            "insufficient privilege",
            requester_role=requester_role,
            target_role=target_role,
        )

    def role_of(self, profile: dict[str, Any]) -> str:
        """Resolve a profile's role, falling back to the default role.

        Non-string role values are kept as their string form, which maps to
        the unknown rank.
        """
        value = profile.get(self._role_field)
        if value is None or value == "":
            return self._default_role
        if isinstance(value, str):
            return value
        return str(value)

