"""Unit tests for child collection registration."""

from __future__ import annotations

import pytest

from custodia.domain.identity.child_collections import (
    CHILD_COLLECTIONS,
    ChildCollection,
    validate_registry,
)


@pytest.mark.unit
class TestChildCollection:
    def test_default_registration(self) -> None:
        assert CHILD_COLLECTIONS == (ChildCollection("borang_b_reports", "user_id"),)

    def test_is_frozen(self) -> None:
        collection = ChildCollection("notes", "owner_id")
        with pytest.raises(AttributeError):
            collection.name = "other"  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("name", "owner_field"),
        [
            ("", "user_id"),
            ("reports; DROP TABLE users", "user_id"),
            ("reports", "user-id"),
            ("1reports", "user_id"),
        ],
    )
    def test_rejects_non_identifiers(self, name: str, owner_field: str) -> None:
        with pytest.raises(ValueError, match="Invalid child collection"):
            ChildCollection(name, owner_field)


@pytest.mark.unit
class TestValidateRegistry:
    def test_returns_input(self) -> None:
        registry = (ChildCollection("a", "owner"), ChildCollection("b", "owner"))

        assert validate_registry(registry) is registry

    def test_rejects_duplicates(self) -> None:
        registry = (ChildCollection("a", "owner"), ChildCollection("a", "author"))

        with pytest.raises(ValueError, match="registered twice"):
            validate_registry(registry)
