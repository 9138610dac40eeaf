"""Custodia Infra FastAPI: app factory, error handlers and request ID middleware."""

from custodia.infra.fastapi.app_factory import create_app
from custodia.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from custodia.infra.fastapi.lifespan import compose_lifespan
from custodia.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)
from custodia.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestIdMiddleware",
    "compose_lifespan",
    "create_app",
    "get_request_id",
    "register_exception_handlers",
]
