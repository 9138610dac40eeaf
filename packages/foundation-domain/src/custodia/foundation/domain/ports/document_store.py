"""Port interface for the document store.

The document store holds profiles, owned child records and deletion
receipts, grouped in named collections. Records are plain dictionaries
keyed by a string id.

Example:
    >>> from custodia.foundation.domain.ports import DocumentStorePort
    >>> def owned_ids(store: DocumentStorePort, uid: str) -> list[str]:
    ...     return store.find_ids("borang_b_reports", "user_id", uid)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@runtime_checkable
class DocumentStorePort(Protocol):
    """Port for per-collection document reads, writes and deletes.

    ``batch_delete`` MUST be atomic: either every id is removed or none is.
    It accepts at most ``max_batch_size`` ids; callers chunk larger sets.
    All deletes are idempotent. I/O failures MUST surface as
    ``BackendError`` (or ``BackendTimeoutError``).

    Attributes:
        max_batch_size: Largest id count accepted by one ``batch_delete``.
    """

    max_batch_size: int

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Return the record's fields, or None if it does not exist."""
        ...

    def find_ids(self, collection: str, field: str, value: str) -> list[str]:
        """Return ids of records in ``collection`` whose ``field`` equals ``value``."""
        ...

    def batch_delete(self, collection: str, record_ids: Sequence[str]) -> int:
        """Atomically delete ``record_ids``. Missing ids are ignored.

        Returns:
            Number of records actually removed. Ids already deleted, for
            instance by a concurrent cascade, are not counted.

        Raises:
            ValueError: If more than ``max_batch_size`` ids are given.
            BackendError: If the batch could not be committed.
        """
        ...

    def delete(self, collection: str, record_id: str) -> bool:
        """Delete one record.

        Returns:
            True if a record was deleted, False if it was already absent.
        """
        ...

    def put(self, collection: str, record_id: str, data: dict[str, Any]) -> None:
        """Create or replace the record ``record_id`` with ``data``."""
        ...
