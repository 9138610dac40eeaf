"""Demo data for the Member Admin example.

One identity per role, with a handful of reports owned by the officer
and the regular user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from custodia.domain.identity.infrastructure import (
        InMemoryDocumentStore,
        InMemoryIdentityStore,
    )

PROFILES = "users"
REPORTS = "borang_b_reports"

DEMO_USERS: dict[str, str] = {
    "root": "superAdmin",
    "ana": "admin",
    "omar": "officer",
    "uma": "user",
}

DEMO_REPORT_COUNTS: dict[str, int] = {"omar": 4, "uma": 2}


def seed_demo_data(documents: InMemoryDocumentStore, identities: InMemoryIdentityStore) -> None:
    """Populate empty stores with the demo users and their reports."""
    for uid, role in DEMO_USERS.items():
        documents.seed(PROFILES, uid, {"name": uid.title(), "user_role": role})
        identities.add(uid)

    for owner, count in DEMO_REPORT_COUNTS.items():
        for index in range(count):
            report_id = f"{owner}-borang-b-{index + 1}"
            documents.seed(
                REPORTS,
                report_id,
                {"user_id": owner, "period": f"2024-Q{index % 4 + 1}"},
            )
