"""Deletion receipts: the audit and resume record of an authorized cascade.

A receipt is written once authorization succeeds and before any record is
deleted. It keeps the target's role so that a re-invoked cascade can be
re-authorized after the target's profile is already gone, and tells an
already-finished cascade apart from a target that never existed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from custodia.foundation.domain.ports import DocumentStorePort


class ReceiptStatus(StrEnum):
    """Lifecycle of a deletion receipt."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class DeletionReceipt:
    """Record of an authorized cascade for one target identity."""

    target_id: str
    target_role: str
    requester_id: str
    status: ReceiptStatus
    updated_at: datetime

    def to_record(self) -> dict[str, Any]:
        return {
            "target_role": self.target_role,
            "requester_id": self.requester_id,
            "status": self.status.value,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, target_id: str, record: dict[str, Any]) -> DeletionReceipt:
        updated_at = record.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        elif not isinstance(updated_at, datetime):
            updated_at = datetime.fromtimestamp(0, tz=UTC)
        return cls(
            target_id=target_id,
            target_role=str(record.get("target_role", "")),
            requester_id=str(record.get("requester_id", "")),
            status=ReceiptStatus(record.get("status", ReceiptStatus.IN_PROGRESS)),
            updated_at=updated_at,
        )


class ReceiptLedger:
    """Reads and writes deletion receipts in a document store collection.

    Args:
        store: Document store holding the receipts.
        collection: Receipt collection name.
    """

    def __init__(self, store: DocumentStorePort, collection: str = "deletion_receipts") -> None:
        self._store = store
        self._collection = collection

    def get(self, target_id: str) -> DeletionReceipt | None:
        record = self._store.get(self._collection, target_id)
        if record is None:
            return None
        return DeletionReceipt.from_record(target_id, record)

    def open(self, target_id: str, target_role: str, requester_id: str) -> DeletionReceipt:
        """Write an in-progress receipt, replacing any earlier one."""
        return self._write(target_id, target_role, requester_id, ReceiptStatus.IN_PROGRESS)

    def complete(self, receipt: DeletionReceipt) -> DeletionReceipt:
        """Mark ``receipt`` as completed."""
        return self._write(
            receipt.target_id,
            receipt.target_role,
            receipt.requester_id,
            ReceiptStatus.COMPLETED,
        )

    def _write(
        self,
        target_id: str,
        target_role: str,
        requester_id: str,
        status: ReceiptStatus,
    ) -> DeletionReceipt:
        receipt = DeletionReceipt(
            target_id=target_id,
            target_role=target_role,
            requester_id=requester_id,
            status=status,
            updated_at=datetime.now(UTC),
        )
        self._store.put(self._collection, target_id, receipt.to_record())
        return receipt
