"""Persistence lifespan hook for startup/shutdown resource management.

Handles:
- Database health check on startup (SELECT 1)
- Engine disposal on shutdown

Priority 75 ensures persistence starts AFTER observability (50)
but BEFORE the services that use the database (100).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from custodia.foundation.application import (
    LIFESPAN_PRIORITY_PERSISTENCE,
    LifespanContribution,
)
from custodia.infra.persistence.database import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _persistence_lifespan(app: Any) -> AsyncIterator[None]:
    """Manage persistence resources across the application lifecycle.

    Startup:
        1. Execute ``SELECT 1`` health check on the sync engine.
        2. Warn when the pool budget is larger than a default PostgreSQL allows.

    Shutdown:
        1. Dispose the engine and its connection pool.

    Args:
        app: The application instance (unused but required by protocol).
    """
    manager = get_database_manager()

    engine = manager.get_sync_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("persistence_lifespan: database health check passed")

    settings = manager.settings
    if settings.is_postgres:
        total_budget = settings.pool_size + settings.max_overflow
        if total_budget > 80:
            logger.warning(
                "persistence_lifespan: total connection budget %d exceeds 80 "
                "(80%% of default max_connections=100). Consider tuning pool sizes.",
                total_budget,
            )
        else:
            logger.info("persistence_lifespan: total connection budget %d", total_budget)

    try:
        yield
    finally:
        manager.dispose()
        logger.info("persistence_lifespan: database engine disposed")


lifespan_contribution = LifespanContribution(
    hook=_persistence_lifespan,
    priority=LIFESPAN_PRIORITY_PERSISTENCE,
)
