"""Unit tests for the in-memory store adapters."""

from __future__ import annotations

import pytest

from custodia.domain.identity.infrastructure.in_memory import (
    InMemoryDocumentStore,
    InMemoryIdentityStore,
    StoreCall,
)
from custodia.foundation.domain.exceptions import BackendError, BackendTimeoutError
from custodia.foundation.domain.ports import DocumentStorePort, IdentityStorePort


@pytest.mark.unit
class TestInMemoryDocumentStore:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryDocumentStore(), DocumentStorePort)

    def test_initial_records_and_get_copy(self) -> None:
        store = InMemoryDocumentStore({"users": {"u-1": {"user_role": "admin"}}})

        record = store.get("users", "u-1")
        assert record == {"user_role": "admin"}
        record["user_role"] = "user"  # type: ignore[index]

        assert store.get("users", "u-1") == {"user_role": "admin"}

    def test_find_ids_sorted(self) -> None:
        store = InMemoryDocumentStore(
            {"r": {"b": {"owner": "x"}, "a": {"owner": "x"}, "c": {"owner": "y"}}}
        )

        assert store.find_ids("r", "owner", "x") == ["a", "b"]
        assert store.find_ids("missing", "owner", "x") == []

    def test_batch_delete_ignores_missing(self) -> None:
        store = InMemoryDocumentStore({"r": {"a": {}, "b": {}}})

        assert store.batch_delete("r", ["a", "zzz"]) == 1
        assert store.snapshot("r") == {"b": {}}

    def test_batch_delete_limit(self) -> None:
        store = InMemoryDocumentStore(max_batch_size=2)

        with pytest.raises(ValueError, match="exceeds"):
            store.batch_delete("r", ["a", "b", "c"])

    def test_delete_reports_presence(self) -> None:
        store = InMemoryDocumentStore({"users": {"u-1": {}}})

        assert store.delete("users", "u-1") is True
        assert store.delete("users", "u-1") is False

    def test_calls_are_recorded_but_seeding_is_not(self) -> None:
        store = InMemoryDocumentStore()
        store.seed("users", "u-1", {})

        store.get("users", "u-1")
        store.batch_delete("r", ["a", "b"])

        assert store.calls == [
            StoreCall("document_store", "get", ("users", "u-1")),
            StoreCall("document_store", "batch_delete", ("r", ("a", "b"))),
        ]

    def test_failed_batch_leaves_records(self) -> None:
        store = InMemoryDocumentStore({"r": {"a": {}, "b": {}}})
        store.fail_on("batch_delete")

        with pytest.raises(BackendError):
            store.batch_delete("r", ["a", "b"])

        assert store.count("r") == 2

    def test_fault_skips_then_fails_then_recovers(self) -> None:
        store = InMemoryDocumentStore()
        store.fail_on("get", after=1, times=1)

        store.get("users", "a")
        with pytest.raises(BackendError):
            store.get("users", "b")
        assert store.get("users", "c") is None

    def test_fault_scoped_to_collection(self) -> None:
        store = InMemoryDocumentStore()
        store.fail_on("get", collection="receipts", transient=True)

        assert store.get("users", "a") is None
        with pytest.raises(BackendTimeoutError):
            store.get("receipts", "a")

    def test_clear_faults(self) -> None:
        store = InMemoryDocumentStore()
        store.fail_on("get")
        store.clear_faults()

        assert store.get("users", "a") is None


@pytest.mark.unit
class TestInMemoryIdentityStore:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryIdentityStore(), IdentityStorePort)

    def test_exists_and_delete(self) -> None:
        store = InMemoryIdentityStore({"u-1"})

        assert store.exists("u-1") is True
        assert store.delete("u-1") is True
        assert store.delete("u-1") is False
        assert "u-1" not in store

    def test_shared_journal_orders_calls(self) -> None:
        journal: list[StoreCall] = []
        documents = InMemoryDocumentStore(journal=journal)
        identities = InMemoryIdentityStore({"u-1"}, journal=journal)

        documents.delete("users", "u-1")
        identities.delete("u-1")

        assert [(c.backend, c.operation) for c in journal] == [
            ("document_store", "delete"),
            ("identity_store", "delete"),
        ]
        assert identities.calls_to("delete") == [StoreCall("identity_store", "delete", ("u-1",))]

    def test_injected_failure(self) -> None:
        store = InMemoryIdentityStore({"u-1"})
        store.fail_on("delete", transient=True)

        with pytest.raises(BackendTimeoutError):
            store.delete("u-1")
        assert "u-1" in store
