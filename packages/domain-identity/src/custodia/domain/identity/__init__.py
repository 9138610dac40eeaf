"""Custodia Domain Identity: authorized cascading identity deletion."""

from custodia.domain.identity.authorization import (
    AuthorizationDecision,
    AuthorizationEvaluator,
    DecisionKind,
)
from custodia.domain.identity.cascade_deletion import CascadeDeletionService
from custodia.domain.identity.child_collections import (
    CHILD_COLLECTIONS,
    ChildCollection,
    validate_registry,
)
from custodia.domain.identity.outcomes import (
    ChunkReport,
    DeletionErrorKind,
    DeletionFailed,
    DeletionOutcome,
    DeletionStep,
    DeletionSucceeded,
)
from custodia.domain.identity.receipts import DeletionReceipt, ReceiptLedger, ReceiptStatus
from custodia.domain.identity.settings import CascadeDeletionSettings, get_cascade_settings

__all__ = [
    "CHILD_COLLECTIONS",
    "AuthorizationDecision",
    "AuthorizationEvaluator",
    "CascadeDeletionService",
    "CascadeDeletionSettings",
    "ChildCollection",
    "ChunkReport",
    "DecisionKind",
    "DeletionErrorKind",
    "DeletionFailed",
    "DeletionOutcome",
    "DeletionReceipt",
    "DeletionStep",
    "DeletionSucceeded",
    "ReceiptLedger",
    "ReceiptStatus",
    "get_cascade_settings",
    "validate_registry",
]
