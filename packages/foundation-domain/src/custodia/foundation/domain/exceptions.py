"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions include structured error codes and context for consistent
API error handling and logging.

Backend errors (``BackendError`` and ``BackendTimeoutError``) are raised by
port adapters when a storage or identity-provider call fails. Core services
catch them at their boundary and classify them; they never reach a client
with the original backend message.

Example:
    >>> from custodia.foundation.domain.exceptions import BackendError
    >>> raise BackendError("document_store", "batch_delete", collection="users")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "BackendError",
    "BackendTimeoutError",
    "CascadeDeletionError",
    "DomainError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class to enable consistent API error
    handling and logging.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (record IDs, field names).

    Example:
        >>> raise DomainError("Operation failed", context={"target_id": "123"})
        DomainError: Operation failed (target_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class BackendError(DomainError):
    """Raised by port adapters when a backend call fails.

    Wraps the underlying library exception (kept as ``__cause__``) so that
    core services can classify failures without depending on SQLAlchemy or
    httpx exception types.

    Attributes:
        error_code: "BACKEND_ERROR" (class constant).
        backend: Name of the failing backend (e.g., "document_store").
        operation: Operation that failed (e.g., "batch_delete").
        transient: Whether a caller-driven retry may succeed.
    """

    error_code: str = "BACKEND_ERROR"
    transient: bool = False

    def __init__(self, backend: str, operation: str, **extra_context: Any) -> None:
        """Initialize backend error.

        Args:
            backend: Backend name.
            operation: Failed operation name.
            **extra_context: Additional debugging context (collection, record id).
        """
        self.backend = backend
        self.operation = operation
        message = f"{backend} {operation} failed"
        context = {"backend": backend, "operation": operation, **extra_context}
        super().__init__(message, context)


class BackendTimeoutError(BackendError):
    """Raised when a backend call exceeds its caller-supplied timeout.

    Always transient.
    """

    error_code: str = "BACKEND_TIMEOUT"
    transient: bool = True


class CascadeDeletionError(DomainError):
    """Raised at the HTTP boundary for a failed cascading deletion.

    Carries the failure's stable error code (e.g., "INSUFFICIENT_PRIVILEGE")
    and a client-safe message. The exception handler chooses the HTTP
    status from the error code; retryable server-side failures map to 503.

    Attributes:
        error_code: Failure kind code, set per instance.
        retryable: Whether the caller may retry the same request.
    """

    error_code: str = "CASCADE_DELETION_FAILED"

    def __init__(
        self,
        message: str,
        error_code: str = "CASCADE_DELETION_FAILED",
        *,
        retryable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize cascade deletion error.

        Args:
            message: Client-safe error description.
            error_code: Machine-readable failure kind code.
            retryable: Whether the failure was transient.
            context: Structured, client-safe debugging information.
        """
        self.error_code = error_code
        self.retryable = retryable
        super().__init__(message, context)
