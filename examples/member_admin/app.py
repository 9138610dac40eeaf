"""Member Admin application factory.

Demonstrates the consumer pattern: the identity router, gateway
authentication and the cascade service on in-memory stores seeded with
demo data. No database or identity provider is needed.

Usage::

    from examples.member_admin.app import create_member_admin_app

    app = create_member_admin_app()

Then call ``POST /users/delete`` with ``X-Authenticated-User: ana`` and
``{"targetId": "omar"}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from custodia.domain.identity import CascadeDeletionService, CascadeDeletionSettings
from custodia.domain.identity.infrastructure import InMemoryDocumentStore, InMemoryIdentityStore
from custodia.domain.identity.router import router as identity_router
from custodia.infra.auth import contribution as gateway_auth
from custodia.infra.fastapi import AppSettings, create_app
from custodia.infra.observability import lifespan_contribution as observability

from .seed import seed_demo_data

if TYPE_CHECKING:
    from fastapi import FastAPI


def create_member_admin_app(
    documents: InMemoryDocumentStore | None = None,
    identities: InMemoryIdentityStore | None = None,
    *,
    settings: CascadeDeletionSettings | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Create a Member Admin app backed by in-memory stores.

    Args:
        documents: Document store. A seeded demo store when omitted.
        identities: Identity store. A seeded demo store when omitted.
        settings: Cascade settings. Loaded from environment when omitted.
        configure_logging: Whether to install the structlog lifespan hook.
    """
    if documents is None or identities is None:
        documents = InMemoryDocumentStore()
        identities = InMemoryIdentityStore()
        seed_demo_data(documents, identities)

    app = create_app(
        AppSettings(title="Member Admin", version="0.1.0"),
        routers=[identity_router],
        middleware=[gateway_auth],
        lifespan_hooks=[observability] if configure_logging else [],
        include_health=False,
    )
    app.state.cascade_deletion_service = CascadeDeletionService(
        documents,
        identities,
        settings=settings or CascadeDeletionSettings(),
    )
    return app
