"""Static registration of collections holding records owned by an identity.

Cascading deletion only touches collections listed here. Adding a new
owned-record type means adding one ``ChildCollection`` entry; nothing is
auto-discovered.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class ChildCollection:
    """A dependent collection and the field that references the owner.

    Attributes:
        name: Collection name in the document store.
        owner_field: Field holding the owning identity id.

    Raises:
        ValueError: If either name is not a plain identifier.

    Example:
        >>> ChildCollection("borang_b_reports", "user_id")
        ChildCollection(name='borang_b_reports', owner_field='user_id')
    """

    name: str
    owner_field: str

    _PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

    def __post_init__(self) -> None:
        for label, value in (("name", self.name), ("owner_field", self.owner_field)):
            if not self._PATTERN.match(value):
                msg = f"Invalid child collection {label}: {value!r}"
                raise ValueError(msg)


def validate_registry(collections: tuple[ChildCollection, ...]) -> tuple[ChildCollection, ...]:
    """Reject registrations that list a collection more than once.

    Returns:
        The same tuple, for use in assignments.

    Raises:
        ValueError: On a duplicate collection name.
    """
    seen: set[str] = set()
    for collection in collections:
        if collection.name in seen:
            msg = f"Child collection registered twice: {collection.name!r}"
            raise ValueError(msg)
        seen.add(collection.name)
    return collections


CHILD_COLLECTIONS: tuple[ChildCollection, ...] = validate_registry(
    (ChildCollection(name="borang_b_reports", owner_field="user_id"),)
)
