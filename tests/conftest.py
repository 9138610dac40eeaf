"""Shared fixtures for integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from examples.member_admin.app import create_member_admin_app
from examples.member_admin.seed import seed_demo_data
from fastapi.testclient import TestClient

from custodia.domain.identity.infrastructure import (
    InMemoryDocumentStore,
    InMemoryIdentityStore,
    StoreCall,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fastapi import FastAPI


@pytest.fixture()
def journal() -> list[StoreCall]:
    """Call journal shared by both stores, in global call order."""
    return []


@pytest.fixture()
def documents(journal: list[StoreCall]) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(max_batch_size=3, journal=journal)


@pytest.fixture()
def identities(journal: list[StoreCall]) -> InMemoryIdentityStore:
    return InMemoryIdentityStore(journal=journal)


@pytest.fixture()
def member_admin_app(
    documents: InMemoryDocumentStore,
    identities: InMemoryIdentityStore,
) -> FastAPI:
    """A fresh Member Admin app over seeded stores for each test."""
    seed_demo_data(documents, identities)
    return create_member_admin_app(documents, identities, configure_logging=False)


@pytest.fixture()
def client(member_admin_app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the Member Admin app (lifespan hooks executed)."""
    with TestClient(member_admin_app, raise_server_exceptions=False) as c:
        yield c

