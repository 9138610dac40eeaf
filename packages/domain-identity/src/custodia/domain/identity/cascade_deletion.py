"""Cascade deletion service for removing an identity and everything it owns.

Deletion order is fixed: owned child records, then the profile, then the
identity-store account. A crash between steps therefore leaves, at worst,
a profile without children or an account without a profile, and every
step is idempotent so the caller can simply re-invoke the cascade.

All collaborator failures are caught here and returned as a typed
``DeletionFailed`` outcome; nothing backend-specific escapes to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from custodia.domain.identity.authorization import (
    AuthorizationDecision,
    AuthorizationEvaluator,
    DecisionKind,
)
from custodia.domain.identity.child_collections import CHILD_COLLECTIONS, validate_registry
from custodia.domain.identity.outcomes import (
    ChunkReport,
    DeletionErrorKind,
    DeletionFailed,
    DeletionOutcome,
    DeletionStep,
    DeletionSucceeded,
)
from custodia.domain.identity.receipts import DeletionReceipt, ReceiptLedger, ReceiptStatus
from custodia.domain.identity.settings import get_cascade_settings
from custodia.foundation.domain.exceptions import BackendError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from custodia.domain.identity.child_collections import ChildCollection
    from custodia.domain.identity.settings import CascadeDeletionSettings
    from custodia.foundation.domain.ports import DocumentStorePort, IdentityStorePort

logger = logging.getLogger(__name__)

_DENIAL_KINDS: dict[DecisionKind, DeletionErrorKind] = {
    DecisionKind.REQUESTER_NOT_FOUND: DeletionErrorKind.REQUESTER_PROFILE_NOT_FOUND,
    DecisionKind.TARGET_NOT_FOUND: DeletionErrorKind.TARGET_PROFILE_NOT_FOUND,
    DecisionKind.DENIED: DeletionErrorKind.INSUFFICIENT_PRIVILEGE,
}


@dataclass
class _ChildProgress:
    """Mutable accumulator for the child-record phase of one cascade."""

    chunks: list[ChunkReport] = field(default_factory=list)
    completed_collections: list[str] = field(default_factory=list)
    deleted_by_collection: dict[str, int] = field(default_factory=dict)

    @property
    def deleted(self) -> int:
        return sum(self.deleted_by_collection.values())


def chunked(ids: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    """Yield consecutive slices of ``ids`` holding at most ``size`` items."""
    if size < 1:
        msg = f"chunk size must be positive, got {size}"
        raise ValueError(msg)
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class CascadeDeletionService:
    """Authorized cascading deletion of an identity and its owned records.

    Args:
        documents: Document store holding profiles, child records and receipts.
        identities: External identity store.
        settings: Cascade settings. Loaded from environment when omitted.
        child_collections: Registered dependent collections, deleted in order.
        evaluator: Authorization evaluator. Built from ``settings`` when omitted.
    """

    def __init__(
        self,
        documents: DocumentStorePort,
        identities: IdentityStorePort,
        *,
        settings: CascadeDeletionSettings | None = None,
        child_collections: Sequence[ChildCollection] = CHILD_COLLECTIONS,
        evaluator: AuthorizationEvaluator | None = None,
    ) -> None:
        settings = settings or get_cascade_settings()
        self._documents = documents
        self._identities = identities
        self._collections = validate_registry(tuple(child_collections))
        self._profile_collection = settings.profile_collection
        self._batch_size = max(1, min(settings.max_batch_size, documents.max_batch_size))
        self._evaluator = evaluator or AuthorizationEvaluator(
            documents,
            profile_collection=settings.profile_collection,
            role_field=settings.role_field,
            default_role=settings.default_role,
        )
        self._receipts = ReceiptLedger(documents, settings.receipt_collection)

    @property
    def batch_size(self) -> int:
        """Effective number of ids per atomic child-record batch."""
        return self._batch_size

    @property
    def child_collections(self) -> tuple[ChildCollection, ...]:
        return self._collections

    def delete_identity_cascade(self, requester_id: str, target_id: str) -> DeletionOutcome:
        """Delete ``target_id`` and everything it owns, if ``requester_id`` may.

        Args:
            requester_id: Verified identity id of the caller. Empty when the
                caller is not authenticated.
            target_id: Identity id to delete.

        Returns:
            DeletionSucceeded on success (including an already-finished
            cascade), otherwise DeletionFailed with the classified kind.
        """
        if not isinstance(requester_id, str) or not requester_id.strip():
            return DeletionFailed.of(DeletionErrorKind.UNAUTHENTICATED)
        if not isinstance(target_id, str) or not target_id.strip():
            return DeletionFailed.of(DeletionErrorKind.INVALID_ARGUMENT)

        logger.info(
            "cascade_deletion_started",
            extra={"requester_id": requester_id, "target_id": target_id},
        )
        try:
            return self._run(requester_id, target_id)
        except Exception:
            logger.exception(
                "cascade_deletion_unexpected_error",
                extra={"requester_id": requester_id, "target_id": target_id},
            )
            return DeletionFailed.of(DeletionErrorKind.INTERNAL, target_id)

    # -- Steps -------------------------------------------------------------

    def _run(self, requester_id: str, target_id: str) -> DeletionOutcome:
        try:
            decision, receipt = self._authorize(requester_id, target_id)
        except BackendError as exc:
            return self._backend_failure(
                DeletionErrorKind.INTERNAL,
                DeletionStep.AUTHORIZATION,
                target_id,
                exc,
            )

        if not decision.allowed:
            return self._denied(decision, requester_id, target_id)

        resumed = receipt is not None
        if receipt is not None and receipt.status is ReceiptStatus.COMPLETED:
            logger.info(
                "cascade_deletion_already_completed",
                extra={"requester_id": requester_id, "target_id": target_id},
            )
            return DeletionSucceeded(target_id=target_id, resumed=True)
        if resumed:
            self._log_resume(requester_id, target_id)

        completed: list[DeletionStep] = [DeletionStep.AUTHORIZATION]
        try:
            receipt = self._receipts.open(target_id, decision.target_role or "", requester_id)
        except BackendError as exc:
            return self._backend_failure(
                DeletionErrorKind.INTERNAL,
                DeletionStep.RECEIPT,
                target_id,
                exc,
                completed=completed,
            )
        completed.append(DeletionStep.RECEIPT)

        progress = _ChildProgress()
        for collection in self._collections:
            try:
                self._delete_children(collection, target_id, progress)
            except BackendError as exc:
                return self._backend_failure(
                    DeletionErrorKind.PARTIAL_DELETION,
                    DeletionStep.CHILD_RECORDS,
                    target_id,
                    exc,
                    completed=completed,
                    progress=progress,
                    failed_collection=collection.name,
                )
        completed.append(DeletionStep.CHILD_RECORDS)

        try:
            profile_deleted = self._documents.delete(self._profile_collection, target_id)
        except BackendError as exc:
            return self._backend_failure(
                DeletionErrorKind.DELETION_INCOMPLETE,
                DeletionStep.PROFILE,
                target_id,
                exc,
                completed=completed,
                progress=progress,
            )
        completed.append(DeletionStep.PROFILE)
        logger.info(
            "cascade_deletion_profile_deleted",
            extra={"target_id": target_id, "already_absent": not profile_deleted},
        )

        try:
            identity_deleted = self._identities.delete(target_id)
        except BackendError as exc:
            return self._backend_failure(
                DeletionErrorKind.DELETION_INCOMPLETE,
                DeletionStep.IDENTITY,
                target_id,
                exc,
                completed=completed,
                progress=progress,
            )
        completed.append(DeletionStep.IDENTITY)
        logger.info(
            "cascade_deletion_identity_deleted",
            extra={"target_id": target_id, "already_absent": not identity_deleted},
        )

        self._close_receipt(receipt)

        logger.info(
            "cascade_deletion_completed",
            extra={
                "requester_id": requester_id,
                "target_id": target_id,
                "deleted_child_count": progress.deleted,
                "deleted_by_collection": progress.deleted_by_collection,
                "resumed": resumed,
            },
        )
        return DeletionSucceeded(
            target_id=target_id,
            deleted_child_count=progress.deleted,
            deleted_by_collection=dict(progress.deleted_by_collection),
            chunks=tuple(progress.chunks),
            resumed=resumed,
        )

    def _authorize(
        self,
        requester_id: str,
        target_id: str,
    ) -> tuple[AuthorizationDecision, DeletionReceipt | None]:
        """Evaluate privilege, falling back to a receipt when the profile is gone.

        A missing target profile is only acceptable when an earlier authorized
        cascade left a receipt; the rank check is then re-run against the role
        recorded on that receipt.
        """
        decision = self._evaluator.evaluate(requester_id, target_id)
        if decision.kind is not DecisionKind.TARGET_NOT_FOUND:
            return decision, None

        receipt = self._receipts.get(target_id)
        if receipt is None:
            return decision, None

        requester_role = decision.requester_role or ""
        return self._evaluator.evaluate_roles(requester_role, receipt.target_role), receipt

    def _delete_children(
        self,
        collection: ChildCollection,
        target_id: str,
        progress: _ChildProgress,
    ) -> None:
        ids = _unique(self._documents.find_ids(collection.name, collection.owner_field, target_id))
        progress.deleted_by_collection[collection.name] = 0

        for index, chunk in enumerate(chunked(ids, self._batch_size)):
            try:
                deleted = self._documents.batch_delete(collection.name, chunk)
            except BackendError:
                progress.chunks.append(
                    ChunkReport(collection.name, index, len(chunk), committed=False)
                )
                raise
            progress.chunks.append(ChunkReport(collection.name, index, len(chunk), committed=True))
            progress.deleted_by_collection[collection.name] += deleted

        progress.completed_collections.append(collection.name)
        logger.info(
            "cascade_deletion_collection_cleared",
            extra={
                "target_id": target_id,
                "collection": collection.name,
                "matched": len(ids),
                "deleted": progress.deleted_by_collection[collection.name],
            },
        )

    def _log_resume(self, requester_id: str, target_id: str) -> None:
        try:
            identity_present: bool | None = self._identities.exists(target_id)
        except BackendError:
            identity_present = None
        logger.info(
            "cascade_deletion_resuming",
            extra={
                "requester_id": requester_id,
                "target_id": target_id,
                "identity_present": identity_present,
            },
        )

    def _close_receipt(self, receipt: DeletionReceipt) -> None:
        # Every record is already gone; a stale in-progress receipt only
        # means the next re-invocation repeats idempotent no-op deletes.
        try:
            self._receipts.complete(receipt)
        except BackendError:
            logger.warning(
                "cascade_deletion_receipt_not_closed",
                extra={"target_id": receipt.target_id},
                exc_info=True,
            )

    # -- Failures ----------------------------------------------------------

    def _denied(
        self,
        decision: AuthorizationDecision,
        requester_id: str,
        target_id: str,
    ) -> DeletionFailed:
        kind = _DENIAL_KINDS[decision.kind]
        logger.info(
            "cascade_deletion_denied",
            extra={
                "requester_id": requester_id,
                "target_id": target_id,
                "error_code": kind.value,
                "requester_role": decision.requester_role,
                "target_role": decision.target_role,
            },
        )
        return DeletionFailed.of(kind, target_id)

    def _backend_failure(
        self,
        kind: DeletionErrorKind,
        step: DeletionStep,
        target_id: str,
        exc: BackendError,
        *,
        completed: Sequence[DeletionStep] = (),
        progress: _ChildProgress | None = None,
        failed_collection: str | None = None,
    ) -> DeletionFailed:
        progress = progress or _ChildProgress()
        logger.error(
            "cascade_deletion_step_failed",
            extra={
                "target_id": target_id,
                "step": step.value,
                "error_code": kind.value,
                "backend_error": exc.error_code,
                "collection": failed_collection,
                "completed_collections": progress.completed_collections,
                "transient": exc.transient,
            },
            exc_info=exc,
        )
        return DeletionFailed(
            kind=kind,
            message=kind.default_message,
            target_id=target_id,
            completed_steps=tuple(completed),
            completed_collections=tuple(progress.completed_collections),
            failed_collection=failed_collection,
            failed_step=step,
            cause=exc.message,
            chunks=tuple(progress.chunks),
            deleted_child_count=progress.deleted,
            retryable=exc.transient,
        )
