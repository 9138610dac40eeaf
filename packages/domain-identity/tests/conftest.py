"""Shared fixtures for domain-identity tests."""

from __future__ import annotations

import pytest

from custodia.domain.identity.cascade_deletion import CascadeDeletionService
from custodia.domain.identity.infrastructure.in_memory import (
    InMemoryDocumentStore,
    InMemoryIdentityStore,
    StoreCall,
)
from custodia.domain.identity.settings import CascadeDeletionSettings

PROFILES = "users"
REPORTS = "borang_b_reports"


class Seeder:
    """Populates the in-memory stores without touching the call journal."""

    def __init__(
        self,
        documents: InMemoryDocumentStore,
        identities: InMemoryIdentityStore,
    ) -> None:
        self.documents = documents
        self.identities = identities

    def user(self, uid: str, role: str | None) -> None:
        """Create a profile (with ``role`` unless None) and its identity."""
        profile: dict[str, object] = {"name": uid.title()}
        if role is not None:
            profile["user_role"] = role
        self.documents.seed(PROFILES, uid, profile)
        self.identities.add(uid)

    def reports(self, owner: str, count: int) -> list[str]:
        """Create ``count`` reports owned by ``owner`` and return their ids."""
        ids = [f"{owner}-report-{i:03d}" for i in range(count)]
        for report_id in ids:
            self.documents.seed(REPORTS, report_id, {"user_id": owner, "title": report_id})
        return ids


@pytest.fixture()
def cascade_settings() -> CascadeDeletionSettings:
    return CascadeDeletionSettings(max_batch_size=500)


@pytest.fixture()
def journal() -> list[StoreCall]:
    return []


@pytest.fixture()
def documents(journal: list[StoreCall]) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(journal=journal)


@pytest.fixture()
def identities(journal: list[StoreCall]) -> InMemoryIdentityStore:
    return InMemoryIdentityStore(journal=journal)


@pytest.fixture()
def service(
    documents: InMemoryDocumentStore,
    identities: InMemoryIdentityStore,
    cascade_settings: CascadeDeletionSettings,
) -> CascadeDeletionService:
    return CascadeDeletionService(documents, identities, settings=cascade_settings)


@pytest.fixture()
def seed(documents: InMemoryDocumentStore, identities: InMemoryIdentityStore) -> Seeder:
    return Seeder(documents, identities)


@pytest.fixture()
def admin_and_officer(seed: Seeder) -> tuple[str, str]:
    """An admin requester and an officer target owning three reports."""
    seed.user("admin-1", "admin")
    seed.user("officer-1", "officer")
    seed.reports("officer-1", 3)
    return "admin-1", "officer-1"
