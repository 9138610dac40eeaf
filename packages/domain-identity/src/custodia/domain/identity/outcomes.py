"""Result types for the cascading identity deletion workflow.

A deletion request produces exactly one ``DeletionOutcome``: either a
``DeletionSucceeded`` summary or a ``DeletionFailed`` carrying one of the
``DeletionErrorKind`` values. Callers branch on the outcome type and kind;
the workflow itself never raises for expected failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeAlias


class DeletionErrorKind(StrEnum):
    """Failure kinds, valued by their stable machine-readable error code."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    REQUESTER_PROFILE_NOT_FOUND = "REQUESTER_PROFILE_NOT_FOUND"
    TARGET_PROFILE_NOT_FOUND = "TARGET_PROFILE_NOT_FOUND"
    INSUFFICIENT_PRIVILEGE = "INSUFFICIENT_PRIVILEGE"
    PARTIAL_DELETION = "PARTIAL_DELETION"
    DELETION_INCOMPLETE = "DELETION_INCOMPLETE"
    INTERNAL = "INTERNAL_ERROR"

    @property
    def default_message(self) -> str:
        """Client-safe summary for this kind."""
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES: dict[DeletionErrorKind, str] = {
    DeletionErrorKind.UNAUTHENTICATED: "User must be authenticated to delete users",
    DeletionErrorKind.INVALID_ARGUMENT: "Target user ID is required",
    DeletionErrorKind.REQUESTER_PROFILE_NOT_FOUND: "Caller user profile not found",
    DeletionErrorKind.TARGET_PROFILE_NOT_FOUND: "Target user not found",
    DeletionErrorKind.INSUFFICIENT_PRIVILEGE: (
        "You do not have permission to delete this user"
    ),
    DeletionErrorKind.PARTIAL_DELETION: (
        "Some owned records could not be deleted; the user was not removed"
    ),
    DeletionErrorKind.DELETION_INCOMPLETE: (
        "Owned records were deleted but the user could not be fully removed"
    ),
    DeletionErrorKind.INTERNAL: "Failed to delete user",
}


class DeletionStep(StrEnum):
    """Ordered steps of a cascade, used for progress and failure reporting."""

    AUTHORIZATION = "authorization"
    RECEIPT = "receipt"
    CHILD_RECORDS = "child_records"
    PROFILE = "profile"
    IDENTITY = "identity"


@dataclass(frozen=True, slots=True)
class ChunkReport:
    """Result of one atomic sub-batch of child record deletions.

    Attributes:
        collection: Collection the chunk belongs to.
        index: Zero-based chunk position within the collection.
        size: Number of record ids in the chunk.
        committed: Whether the chunk's batch was committed.
    """

    collection: str
    index: int
    size: int
    committed: bool


@dataclass(frozen=True)
class DeletionSucceeded:
    """Summary of a completed cascade.

    Attributes:
        target_id: Identity id that was removed.
        deleted_child_count: Child records deleted across all collections.
        deleted_by_collection: Per-collection deleted counts.
        chunks: Every committed chunk, in commit order.
        resumed: Whether this run continued an earlier authorized cascade.
    """

    target_id: str
    deleted_child_count: int = 0
    deleted_by_collection: dict[str, int] = field(default_factory=dict)
    chunks: tuple[ChunkReport, ...] = ()
    resumed: bool = False

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class DeletionFailed:
    """Typed failure of a cascade.

    Attributes:
        kind: Failure classification.
        message: Client-safe message. Never contains backend error text.
        target_id: Requested target id (may be empty for invalid input).
        completed_steps: Steps that finished before the failure.
        completed_collections: Child collections fully deleted before the failure.
        failed_collection: Collection whose batch failed, for partial deletions.
        failed_step: Step that failed, for backend failures.
        cause: Generic summary of the backend failure, e.g.
            ``"document_store batch_delete failed"``.
        chunks: Every attempted chunk, committed or not.
        deleted_child_count: Child records deleted before the failure.
        retryable: Whether the failure was transient (e.g. a timeout).
    """

    kind: DeletionErrorKind
    message: str
    target_id: str = ""
    completed_steps: tuple[DeletionStep, ...] = ()
    completed_collections: tuple[str, ...] = ()
    failed_collection: str | None = None
    failed_step: DeletionStep | None = None
    cause: str | None = None
    chunks: tuple[ChunkReport, ...] = ()
    deleted_child_count: int = 0
    retryable: bool = False

    @property
    def success(self) -> bool:
        return False

    @property
    def error_code(self) -> str:
        return self.kind.value

    @classmethod
    def of(cls, kind: DeletionErrorKind, target_id: str = "", **details: object) -> DeletionFailed:
        """Build a failure using the kind's default client-safe message."""
        return cls(kind=kind, message=kind.default_message, target_id=target_id, **details)  # type: ignore[arg-type]


DeletionOutcome: TypeAlias = DeletionSucceeded | DeletionFailed
