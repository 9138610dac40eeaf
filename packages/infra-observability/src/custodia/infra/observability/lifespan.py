"""Observability lifespan hook.

Priority 50 runs it first, so every later hook logs through the
configured structlog pipeline.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from custodia.foundation.application import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LifespanContribution,
)
from custodia.infra.observability.logging import configure_logging, get_logging_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _observability_lifespan(app: Any) -> AsyncIterator[None]:
    """Configure logging on startup."""
    settings = get_logging_settings()
    configure_logging(settings)
    logger.info(
        "observability_lifespan: logging configured",
        extra={"log_level": settings.log_level, "environment": settings.environment},
    )
    yield


lifespan_contribution = LifespanContribution(
    hook=_observability_lifespan,
    priority=LIFESPAN_PRIORITY_OBSERVABILITY,
)
