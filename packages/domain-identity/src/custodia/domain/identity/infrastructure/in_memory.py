"""Thread-safe in-process store adapters.

Used by the demo application and by tests. Both stores append every port
call to a journal (optionally shared between them, which makes the global
order of a cascade observable) and can be told to fail on demand.

Example:
    >>> journal: list[StoreCall] = []
    >>> documents = InMemoryDocumentStore(journal=journal)
    >>> identities = InMemoryIdentityStore({"u-1"}, journal=journal)
    >>> documents.fail_on("batch_delete", collection="borang_b_reports", after=1)
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from custodia.foundation.domain.exceptions import BackendError, BackendTimeoutError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class StoreCall:
    """One recorded port call.

    Attributes:
        backend: "document_store" or "identity_store".
        operation: Port method name.
        args: Positional arguments, with id sequences frozen to tuples.
    """

    backend: str
    operation: str
    args: tuple[Any, ...]


@dataclass
class _Fault:
    operation: str
    collection: str | None
    transient: bool
    skip: int
    remaining: int


class _FaultInjector:
    """Journal and fault bookkeeping shared by the in-memory stores."""

    backend = "store"

    def __init__(self, journal: list[StoreCall] | None) -> None:
        self._lock = threading.RLock()
        self._faults: list[_Fault] = []
        self.calls: list[StoreCall] = journal if journal is not None else []

    def fail_on(
        self,
        operation: str,
        *,
        collection: str | None = None,
        times: int = 1,
        after: int = 0,
        transient: bool = False,
    ) -> None:
        """Make the next matching calls raise.

        Args:
            operation: Port method name to fail.
            collection: Only fail calls on this collection (document store).
            times: Number of consecutive failures.
            after: Matching calls to let through before failing.
            transient: Raise ``BackendTimeoutError`` instead of ``BackendError``.
        """
        with self._lock:
            self._faults.append(_Fault(operation, collection, transient, after, times))

    def clear_faults(self) -> None:
        with self._lock:
            self._faults.clear()

    def calls_to(self, operation: str) -> list[StoreCall]:
        """Recorded calls to ``operation`` on this store."""
        with self._lock:
            return [
                call
                for call in self.calls
                if call.backend == self.backend and call.operation == operation
            ]

    def _enter(self, operation: str, *args: Any, collection: str | None = None) -> None:
        """Record the call, then raise if an injected fault matches it."""
        self.calls.append(StoreCall(self.backend, operation, args))
        for fault in self._faults:
            if fault.operation != operation or fault.remaining <= 0:
                continue
            if fault.collection is not None and fault.collection != collection:
                continue
            if fault.skip > 0:
                fault.skip -= 1
                return
            fault.remaining -= 1
            error_type = BackendTimeoutError if fault.transient else BackendError
            context = {"collection": collection} if collection is not None else {}
            raise error_type(self.backend, operation, injected=True, **context)


class InMemoryDocumentStore(_FaultInjector):
    """Dictionary-backed document store.

    ``batch_delete`` is atomic because it runs under the store lock and
    only mutates after the fault check has passed.

    Args:
        records: Initial records, ``{collection: {record_id: fields}}``.
        max_batch_size: Largest id count accepted by ``batch_delete``.
        journal: Call journal to append to, possibly shared.
    """

    backend = "document_store"

    def __init__(
        self,
        records: Mapping[str, Mapping[str, dict[str, Any]]] | None = None,
        *,
        max_batch_size: int = 500,
        journal: list[StoreCall] | None = None,
    ) -> None:
        super().__init__(journal)
        if max_batch_size < 1:
            msg = f"max_batch_size must be positive, got {max_batch_size}"
            raise ValueError(msg)
        self.max_batch_size = max_batch_size
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, items in (records or {}).items():
            for record_id, data in items.items():
                self.seed(collection, record_id, data)

    # -- Port --

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            self._enter("get", collection, record_id, collection=collection)
            record = self._collections.get(collection, {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def find_ids(self, collection: str, field: str, value: str) -> list[str]:
        with self._lock:
            self._enter("find_ids", collection, field, value, collection=collection)
            return sorted(
                record_id
                for record_id, data in self._collections.get(collection, {}).items()
                if data.get(field) == value
            )

    def batch_delete(self, collection: str, record_ids: Sequence[str]) -> int:
        with self._lock:
            self._enter("batch_delete", collection, tuple(record_ids), collection=collection)
            if len(record_ids) > self.max_batch_size:
                msg = f"Batch of {len(record_ids)} exceeds max_batch_size {self.max_batch_size}"
                raise ValueError(msg)
            records = self._collections.get(collection, {})
            removed = [records.pop(record_id, None) for record_id in record_ids]
            return sum(1 for record in removed if record is not None)

    def delete(self, collection: str, record_id: str) -> bool:
        with self._lock:
            self._enter("delete", collection, record_id, collection=collection)
            return self._collections.get(collection, {}).pop(record_id, None) is not None

    def put(self, collection: str, record_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._enter("put", collection, record_id, collection=collection)
            self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(data)

    # -- Test and demo helpers (not recorded) --

    def seed(self, collection: str, record_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(data)

    def snapshot(self, collection: str) -> dict[str, dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._collections.get(collection, {}))

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))


class InMemoryIdentityStore(_FaultInjector):
    """Set-backed identity store.

    Args:
        uids: Identities that initially exist.
        journal: Call journal to append to, possibly shared.
    """

    backend = "identity_store"

    def __init__(
        self,
        uids: Iterable[str] = (),
        *,
        journal: list[StoreCall] | None = None,
    ) -> None:
        super().__init__(journal)
        self._uids = set(uids)

    def exists(self, uid: str) -> bool:
        with self._lock:
            self._enter("exists", uid)
            return uid in self._uids

    def delete(self, uid: str) -> bool:
        with self._lock:
            self._enter("delete", uid)
            if uid not in self._uids:
                return False
            self._uids.remove(uid)
            return True

    def add(self, uid: str) -> None:
        with self._lock:
            self._uids.add(uid)

    def __contains__(self, uid: object) -> bool:
        with self._lock:
            return uid in self._uids
