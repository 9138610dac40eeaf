"""Middleware components for the custodia FastAPI integration."""

from custodia.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    extract_header,
    get_request_id,
)

__all__ = [
    "RequestIdMiddleware",
    "extract_header",
    "get_request_id",
]
