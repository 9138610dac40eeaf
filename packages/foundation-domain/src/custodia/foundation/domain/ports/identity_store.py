"""Port interface for the external identity store.

The identity store issues identity ids and owns authentication accounts.
Core services only check for existence and delete; they never create
accounts.

Example:
    >>> from custodia.foundation.domain.ports import IdentityStorePort
    >>> def remove_account(store: IdentityStorePort, uid: str) -> bool:
    ...     return store.delete(uid)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentityStorePort(Protocol):
    """Port for identity store lookups and deletions.

    Implementations MUST raise ``BackendError`` (or ``BackendTimeoutError``)
    for I/O failures, never return False for them.
    """

    def exists(self, uid: str) -> bool:
        """Return whether an identity with ``uid`` exists.

        Raises:
            BackendError: If the identity store cannot be reached.
        """
        ...

    def delete(self, uid: str) -> bool:
        """Delete the identity ``uid``.

        Returns:
            True if an identity was deleted, False if it was already absent.
            Absence is not an error.

        Raises:
            BackendError: If the identity store cannot be reached.
        """
        ...
