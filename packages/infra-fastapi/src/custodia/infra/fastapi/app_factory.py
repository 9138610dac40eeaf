"""FastAPI application factory.

Provides :func:`create_app` which wires routers, middleware, error handlers
and lifespan hooks contributed by the custodia packages an application uses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from custodia.infra.fastapi import _health
from custodia.infra.fastapi.error_handlers import register_exception_handlers
from custodia.infra.fastapi.lifespan import compose_lifespan
from custodia.infra.fastapi.middleware import request_id
from custodia.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi import APIRouter

    from custodia.foundation.application import LifespanContribution, MiddlewareContribution

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    routers: Sequence[APIRouter] = (),
    middleware: Sequence[MiddlewareContribution] = (),
    lifespan_hooks: Sequence[LifespanContribution] = (),
    include_health: bool = True,
) -> FastAPI:
    """Create a FastAPI application from explicit contributions.

    Request ID middleware and the RFC 7807 error handlers are always
    installed. Everything else is passed in by the caller.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        routers: Routers to include.
        middleware: Middleware contributions, in any order.
        lifespan_hooks: Lifespan contributions, in any order.
        include_health: Whether to mount ``GET /healthz``.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(lifespan_hooks),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )

    # Sort by priority ascending, then add in reverse (LIFO for Starlette)
    contributions = sorted([request_id.contribution, *middleware], key=lambda m: m.priority)
    for mw in reversed(contributions):
        app.add_middleware(mw.middleware_class, **mw.kwargs)
        logger.info(
            "Registered middleware %s (priority=%d)",
            mw.middleware_class.__name__,
            mw.priority,
        )

    register_exception_handlers(app)

    if include_health:
        app.include_router(_health.router)
    for router in routers:
        app.include_router(router)
        logger.info("Included router: %s", router.prefix or "/")

    return app
