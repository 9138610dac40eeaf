"""Static role hierarchy used for privilege comparison.

The rank table is process-wide and read-only. Roles are never registered at
run time; an unknown role resolves to rank 0, below every known role.

Example:
    >>> from custodia.foundation.domain.roles import rank_of
    >>> rank_of("admin") > rank_of("officer")
    True
    >>> rank_of("unknownRole")
    0
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_ROLE = "user"
UNKNOWN_ROLE_RANK = 0

ROLE_RANKS: Mapping[str, int] = MappingProxyType(
    {
        "superAdmin": 100,
        "admin": 90,
        "missionAdmin": 80,
        "ministerialSecretary": 70,
        "officer": 60,
        "director": 50,
        "editor": 40,
        "churchTreasurer": 30,
        "districtPastor": 20,
        DEFAULT_ROLE: 10,
    }
)


def rank_of(role: str | None) -> int:
    """Return the privilege rank of ``role``.

    Args:
        role: Role name as stored on a profile. Lookup is case-sensitive.

    Returns:
        The rank from ``ROLE_RANKS``, or ``UNKNOWN_ROLE_RANK`` for unmapped
        or missing roles.
    """
    if role is None:
        return UNKNOWN_ROLE_RANK
    return ROLE_RANKS.get(role, UNKNOWN_ROLE_RANK)


def outranks(requester_role: str | None, target_role: str | None) -> bool:
    """Whether ``requester_role`` strictly outranks ``target_role``.

    Equal ranks never outrank each other, so a role cannot act on its peers
    or on itself.
    """
    return rank_of(requester_role) > rank_of(target_role)
