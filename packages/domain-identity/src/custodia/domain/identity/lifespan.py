"""Identity lifespan hook wiring the cascade service to real backends.

Builds the SQL document store on the shared database engine and the HTTP
identity store client, then attaches a ``CascadeDeletionService`` to
``app.state``. Priority 100 runs it after persistence (75), so the engine
has already passed its health check.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool

from custodia.domain.identity.cascade_deletion import CascadeDeletionService
from custodia.domain.identity.child_collections import CHILD_COLLECTIONS
from custodia.domain.identity.infrastructure.http_identity_store import (
    HttpIdentityStore,
    get_identity_store_settings,
)
from custodia.domain.identity.infrastructure.sql_document_store import (
    SqlDocumentStore,
    build_schema,
)
from custodia.domain.identity.settings import get_cascade_settings
from custodia.foundation.application import LIFESPAN_PRIORITY_SERVICES, LifespanContribution
from custodia.infra.persistence.database import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _identity_lifespan(app: Any) -> AsyncIterator[None]:
    """Attach the cascade deletion service for the application lifetime.

    Startup:
        1. Create the document tables if missing, off the event loop.
        2. Build the cascade service on the SQL and HTTP adapters.

    Shutdown:
        1. Close the identity store HTTP client.

    Args:
        app: The FastAPI application instance.
    """
    cascade_settings = get_cascade_settings()
    manager = get_database_manager()

    documents = SqlDocumentStore(
        manager.get_sync_session_factory(),
        build_schema(cascade_settings, CHILD_COLLECTIONS),
        max_batch_size=manager.settings.max_batch_size,
    )
    await run_in_threadpool(documents.ensure_tables)
    identities = HttpIdentityStore.from_settings(get_identity_store_settings())

    service = CascadeDeletionService(
        documents,
        identities,
        settings=cascade_settings,
    )
    app.state.cascade_deletion_service = service
    logger.info(
        "identity_lifespan: cascade deletion service ready (batch_size=%d)",
        service.batch_size,
    )

    try:
        yield
    finally:
        identities.close()
        logger.info("identity_lifespan: identity store client closed")


lifespan_contribution = LifespanContribution(
    hook=_identity_lifespan,
    priority=LIFESPAN_PRIORITY_SERVICES,
)
