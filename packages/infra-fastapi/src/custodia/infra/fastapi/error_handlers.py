"""RFC 7807 Problem Details exception handlers for FastAPI.

Translates domain exceptions into standardized HTTP responses following
RFC 7807 Problem Details for HTTP APIs. All handlers return responses with
Content-Type: application/problem+json.

Usage:
    from custodia.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from custodia.foundation.domain.exceptions import (
    BackendError,
    CascadeDeletionError,
    DomainError,
)
from custodia.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
RETRY_AFTER_SECONDS = 5

# HTTP status per cascade failure code. Server-side kinds become 503 when retryable.
CASCADE_STATUS: dict[str, int] = {
    "UNAUTHENTICATED": 401,
    "INVALID_ARGUMENT": 400,
    "REQUESTER_PROFILE_NOT_FOUND": 403,
    "TARGET_PROFILE_NOT_FOUND": 404,
    "INSUFFICIENT_PRIVILEGE": 403,
    "PARTIAL_DELETION": 500,
    "DELETION_INCOMPLETE": 500,
    "INTERNAL_ERROR": 500,
}

_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Resource Not Found",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response model.

    Standard fields:
    - type: URI reference identifying the problem type
    - title: Short human-readable summary
    - status: HTTP status code
    - detail: Human-readable explanation
    - instance: URI reference to specific occurrence

    Extension fields:
    - error_code: Machine-readable error code for client handling
    - context: Structured debugging information
    - correlation_id: Request correlation ID (5xx errors only)
    """

    type: str = Field(
        ...,
        description="URI reference identifying problem type",
        examples=["/errors/insufficient-privilege", "/errors/partial-deletion"],
    )
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., ge=400, le=599, description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str | None = Field(
        default=None,
        description="URI reference to specific occurrence (request path)",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code",
        examples=["TARGET_PROFILE_NOT_FOUND", "PARTIAL_DELETION"],
    )
    context: dict[str, Any] | None = Field(
        default=None,
        description="Structured debugging information",
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for support requests",
    )


_SENSITIVE_PATTERNS = [
    (
        re.compile(r"postgres(?:ql)?(?:\+\w+)?://[^@\s]*@[^/\s]*"),
        "postgresql://[REDACTED]@[REDACTED]",
    ),
    (
        re.compile(r"bearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
        "Bearer [REDACTED]",
    ),
    (
        re.compile(r"password\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "password=[REDACTED]",
    ),
    (
        re.compile(r"secret\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "secret=[REDACTED]",
    ),
    (
        re.compile(r"token\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "token=[REDACTED]",
    ),
]

_SENSITIVE_KEYS = frozenset(
    {"password", "secret", "token", "api_key", "apikey", "api_token", "credential"}
)


def _problem_type(error_code: str) -> str:
    return f"/errors/{error_code.lower().replace('_', '-')}"


def _create_problem_response(problem: ProblemDetail) -> JSONResponse:
    """Create JSONResponse with RFC 7807 content type."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _get_correlation_id() -> str:
    """Request ID set by RequestIdMiddleware, or "unknown" outside a request."""
    return get_request_id() or "unknown"


def sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Sanitize a context dictionary for safe inclusion in responses.

    - Converts UUIDs and datetimes to strings
    - Drops keys naming secrets and redacts secret-looking substrings
    - Stringifies values that are not JSON-serializable

    Returns:
        Sanitized context dictionary, or None if nothing remains.
    """
    if context is None:
        return None

    sanitized = {
        key: _sanitize_value(value)
        for key, value in context.items()
        if key.lower() not in _SENSITIVE_KEYS
    }
    return sanitized or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return redact_sensitive_strings(value)
    if isinstance(value, dict):
        return sanitize_context(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def redact_sensitive_strings(text: str) -> str:
    """Redact connection strings, bearer tokens and key=value secrets."""
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


async def cascade_deletion_handler(
    request: Request,
    exc: CascadeDeletionError,
) -> JSONResponse:
    """Translate a failed cascade into its mapped status.

    - 401 responses carry ``WWW-Authenticate`` (RFC 6750).
    - Retryable server-side failures become 503 with ``Retry-After``.
    - 5xx responses carry the correlation ID and are logged.
    """
    status = CASCADE_STATUS.get(exc.error_code, 500)
    if status >= 500 and exc.retryable:
        status = 503

    correlation_id = _get_correlation_id() if status >= 500 else None
    if correlation_id is not None:
        logger.warning(
            "cascade_deletion_failed",
            extra={
                "error_code": exc.error_code,
                "status": status,
                "correlation_id": correlation_id,
                "path": str(request.url.path),
            },
        )

    problem = ProblemDetail(
        type=_problem_type(exc.error_code),
        title=_TITLES.get(status, "Error"),
        status=status,
        detail=exc.message,
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=sanitize_context(exc.context),
        correlation_id=correlation_id,
    )
    response = _create_problem_response(problem)
    if status == 401:
        response.headers["WWW-Authenticate"] = 'Bearer realm="API"'
    if status == 503:
        response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return response


async def backend_error_handler(
    request: Request,
    exc: BackendError,
) -> JSONResponse:
    """Translate a BackendError that escaped a service to 500 or 503.

    The backend name and operation are logged, never returned.
    """
    correlation_id = _get_correlation_id()
    logger.error(
        "backend_error_escaped",
        extra={
            "correlation_id": correlation_id,
            "backend": exc.backend,
            "operation": exc.operation,
            "path": str(request.url.path),
        },
        exc_info=exc,
    )
    status = 503 if exc.transient else 500
    problem = ProblemDetail(
        type=_problem_type(exc.error_code),
        title=_TITLES[status],
        status=status,
        detail="A backend service is unavailable. Please retry later.",
        instance=str(request.url.path),
        error_code=exc.error_code,
        correlation_id=correlation_id,
    )
    response = _create_problem_response(problem)
    if status == 503:
        response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return response


async def domain_error_handler(
    request: Request,
    exc: DomainError,
) -> JSONResponse:
    """Translate generic DomainError to 400 Bad Request.

    Fallback for domain errors without a more specific handler.
    """
    problem = ProblemDetail(
        type="/errors/domain-error",
        title="Bad Request",
        status=400,
        detail=exc.message,
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=sanitize_context(exc.context),
    )
    return _create_problem_response(problem)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Translate Pydantic RequestValidationError to 422.

    Handles FastAPI's built-in validation of request bodies, query
    parameters and path parameters. Input values are not echoed back.
    """
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]

    problem = ProblemDetail(
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        error_code="REQUEST_VALIDATION_ERROR",
        context={"errors": errors},
    )
    return _create_problem_response(problem)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Logs full exception details but returns a sanitized response with the
    correlation ID. In debug mode the exception type and (redacted) message
    are included.
    """
    correlation_id = _get_correlation_id()

    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    if getattr(request.app, "debug", False):
        detail = redact_sensitive_strings(f"{type(exc).__name__}: {exc}")
        context: dict[str, Any] | None = {"exception_type": type(exc).__name__}
    else:
        detail = "An internal error occurred. Please contact support with the correlation ID."
        context = None

    problem = ProblemDetail(
        type="/errors/internal-error",
        title="Internal Server Error",
        status=500,
        detail=detail,
        instance=str(request.url.path),
        error_code="INTERNAL_ERROR",
        context=context,
        correlation_id=correlation_id,
    )
    return _create_problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on a FastAPI application.

    Handlers are registered from most specific to least specific:
    1. CascadeDeletionError -> mapped status (400/401/403/404/500/503)
    2. BackendError -> 500 or 503
    3. DomainError -> 400 (base class fallback)
    4. RequestValidationError -> 422 (Pydantic)
    5. Exception -> 500 (catch-all)
    """
    # Starlette's handler typing is stricter than the per-exception handlers.
    app.add_exception_handler(CascadeDeletionError, cascade_deletion_handler)  # type: ignore[arg-type]
    app.add_exception_handler(BackendError, backend_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
