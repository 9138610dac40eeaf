"""SQL-backed document store.

Each collection is one table holding the record id, the record as JSON
text and one plain column per indexed field. Only indexed fields can be
used with ``find_ids``; ``put`` keeps them in sync with the JSON body.

Table and column names are validated identifiers and every value is a
bound parameter, so the interpolated SQL below never carries user input.
"""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from custodia.foundation.domain.exceptions import BackendError, BackendTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

    from sqlalchemy.orm import Session

    from custodia.domain.identity.child_collections import ChildCollection
    from custodia.domain.identity.settings import CascadeDeletionSettings

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_RESERVED_COLUMNS = frozenset({"id", "data"})
# PostgreSQL query_canceled, raised when statement_timeout fires.
_STATEMENT_TIMEOUT_SQLSTATE = "57014"

_BACKEND = "document_store"


def build_schema(
    settings: CascadeDeletionSettings,
    child_collections: Iterable[ChildCollection],
) -> dict[str, tuple[str, ...]]:
    """Map every collection the deletion workflow touches to its indexed fields."""
    schema: dict[str, tuple[str, ...]] = {
        settings.profile_collection: (),
        settings.receipt_collection: (),
    }
    for collection in child_collections:
        schema[collection.name] = (*schema.get(collection.name, ()), collection.owner_field)
    return schema


def _is_statement_timeout(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == _STATEMENT_TIMEOUT_SQLSTATE


class SqlDocumentStore:
    """Document store over SQLAlchemy sync sessions.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        schema: Collection name to indexed field names. Every collection the
            store is asked about must be listed.
        max_batch_size: Largest id count accepted by ``batch_delete``.

    Raises:
        ValueError: If a collection or field name is not a plain identifier.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        schema: Mapping[str, Sequence[str]],
        *,
        max_batch_size: int = 500,
    ) -> None:
        if max_batch_size < 1:
            msg = f"max_batch_size must be positive, got {max_batch_size}"
            raise ValueError(msg)
        for collection, fields in schema.items():
            self._check_identifier(collection)
            for name in fields:
                self._check_identifier(name)
                if name in _RESERVED_COLUMNS:
                    msg = f"Indexed field name is reserved: {name!r}"
                    raise ValueError(msg)
        self._session_factory = session_factory
        self._schema = {name: tuple(fields) for name, fields in schema.items()}
        self.max_batch_size = max_batch_size

    # -- Reads --

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        table = self._table(collection)
        with self._translate("get", collection), self._session_factory() as session:
            row = session.execute(
                text(f"SELECT data FROM {table} WHERE id = :id"),  # noqa: S608
                {"id": record_id},
            ).fetchone()
        if row is None:
            return None
        data = row[0]
        return json.loads(data) if isinstance(data, str) else dict(data)

    def find_ids(self, collection: str, field: str, value: str) -> list[str]:
        table = self._table(collection)
        if field not in self._schema[table]:
            msg = f"Field {field!r} is not indexed on collection {collection!r}"
            raise ValueError(msg)
        with self._translate("find_ids", collection), self._session_factory() as session:
            rows = session.execute(
                text(f"SELECT id FROM {table} WHERE {field} = :value ORDER BY id"),  # noqa: S608
                {"value": value},
            ).fetchall()
        return [str(row[0]) for row in rows]

    # -- Writes --

    def batch_delete(self, collection: str, record_ids: Sequence[str]) -> int:
        """Delete ``record_ids`` in one transaction and return the row count."""
        table = self._table(collection)
        if len(record_ids) > self.max_batch_size:
            msg = f"Batch of {len(record_ids)} exceeds max_batch_size {self.max_batch_size}"
            raise ValueError(msg)
        if not record_ids:
            return 0
        statement = text(f"DELETE FROM {table} WHERE id IN :ids").bindparams(  # noqa: S608
            bindparam("ids", expanding=True)
        )
        with (
            self._translate("batch_delete", collection, size=len(record_ids)),
            self._session_factory() as session,
            session.begin(),
        ):
            result = session.execute(statement, {"ids": list(record_ids)})
            deleted = int(result.rowcount or 0)
        return deleted

    def delete(self, collection: str, record_id: str) -> bool:
        table = self._table(collection)
        with (
            self._translate("delete", collection),
            self._session_factory() as session,
            session.begin(),
        ):
            result = session.execute(
                text(f"DELETE FROM {table} WHERE id = :id"),  # noqa: S608
                {"id": record_id},
            )
            deleted = bool(result.rowcount)
        return deleted

    def put(self, collection: str, record_id: str, data: dict[str, Any]) -> None:
        """UPSERT the record (idempotent)."""
        table = self._table(collection)
        fields = self._schema[table]
        columns = ", ".join(("id", "data", *fields))
        placeholders = ", ".join(f":{name}" for name in ("id", "data", *fields))
        updates = ", ".join(f"{name} = excluded.{name}" for name in ("data", *fields))
        params: dict[str, Any] = {"id": record_id, "data": json.dumps(data, default=str)}
        for name in fields:
            value = data.get(name)
            params[name] = None if value is None else str(value)

        with (
            self._translate("put", collection),
            self._session_factory() as session,
            session.begin(),
        ):
            session.execute(
                text(
                    f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) "  # noqa: S608
                    f"ON CONFLICT (id) DO UPDATE SET {updates}"
                ),
                params,
            )

    # -- Schema --

    def ensure_tables(self) -> None:
        """Create every table and owner index in the schema if missing."""
        with self._translate("ensure_tables", "*"), self._session_factory() as session:
            for table, fields in self._schema.items():
                extra = "".join(f", {name} VARCHAR(255)" for name in fields)
                session.execute(
                    text(
                        f"CREATE TABLE IF NOT EXISTS {table} ("
                        f"id VARCHAR(255) PRIMARY KEY, data TEXT NOT NULL{extra})"
                    )
                )
                for name in fields:
                    session.execute(
                        text(
                            f"CREATE INDEX IF NOT EXISTS idx_{table}_{name} ON {table} ({name})"
                        )
                    )
            session.commit()
        logger.info("document_store_tables_ensured", extra={"tables": sorted(self._schema)})

    # -- Internals --

    def _table(self, collection: str) -> str:
        if collection not in self._schema:
            msg = f"Unknown collection: {collection!r}"
            raise ValueError(msg)
        return collection

    @staticmethod
    def _check_identifier(name: str) -> None:
        if not _IDENTIFIER.match(name):
            msg = f"Invalid SQL identifier: {name!r}"
            raise ValueError(msg)

    @contextmanager
    def _translate(self, operation: str, collection: str, **context: Any) -> Iterator[None]:
        """Re-raise SQLAlchemy failures as backend errors."""
        try:
            yield
        except PoolTimeoutError as exc:
            raise BackendTimeoutError(
                _BACKEND, operation, collection=collection, **context
            ) from exc
        except DBAPIError as exc:
            if _is_statement_timeout(exc):
                raise BackendTimeoutError(
                    _BACKEND, operation, collection=collection, **context
                ) from exc
            raise BackendError(_BACKEND, operation, collection=collection, **context) from exc
        except SQLAlchemyError as exc:
            raise BackendError(_BACKEND, operation, collection=collection, **context) from exc
