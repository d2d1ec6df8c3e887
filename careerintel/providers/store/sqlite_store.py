"""SQLite-backed record store.

Persists every collection as a JSON-document table in a local SQLite
database (default ``data/career_intel.db``).  Uses ``aiosqlite`` for async
I/O.  Declared indexes from ``COLLECTION_INDEXES`` become ``json_extract``
expression indexes.

Writes never rewrite a whole document read earlier.  ``patch`` and
``conditional_patch`` use ``json_set`` on the stored text, so concurrent
patches to different fields of one document do not overwrite each other.
The compare-and-swap puts every expected value in the ``WHERE`` clause of a
single ``UPDATE``.
"""

from __future__ import annotations

import json
import re
import uuid
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from careerintel.interfaces.record_store import (
    COLLECTION_INDEXES,
    Document,
    IRecordStore,
    Predicate,
    SortOrder,
)
from careerintel.utils.clock import Clock, now_ms
from careerintel.utils.errors import RecordNotFoundError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/career_intel.db")

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Columns mirrored out of the document for ordering.
_COLUMN_FIELDS = frozenset({"created_at", "updated_at"})

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    id          TEXT PRIMARY KEY,
    doc         TEXT NOT NULL,
    created_at  REAL NOT NULL,
    updated_at  REAL NOT NULL
);
"""

_CREATE_INDEX_SQL = "CREATE INDEX IF NOT EXISTS {name} ON {table}({expressions});"

_INSERT_SQL = "INSERT INTO {table} (id, doc, created_at, updated_at) VALUES (?, ?, ?, ?);"

_SELECT_ONE_SQL = "SELECT doc FROM {table} WHERE id = ?;"


def _check_field(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise StoreError(message=f"Invalid field name: {field!r}", provider_name="sqlite")
    return field


def _extract(field: str) -> str:
    if field in _COLUMN_FIELDS:
        return field
    return f"json_extract(doc, '$.{_check_field(field)}')"


def _sql_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (dict, list)):
        raise StoreError(
            message="Only scalar values can be matched in a query",
            provider_name="sqlite",
        )
    return value


def _equality_clause(fields: list[str], values: list[Any]) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for field, value in zip(fields, values, strict=True):
        if value is None:
            clauses.append(f"{_extract(field)} IS NULL")
        else:
            clauses.append(f"{_extract(field)} = ?")
            params.append(_sql_value(value))
    return " AND ".join(clauses) or "1 = 1", params


class SQLiteRecordStore(IRecordStore):
    """SQLite JSON-document persistence for all collections.

    Parameters
    ----------
    db_path:
        Database file; parent directories are created on initialize.
    clock:
        Source of epoch-millisecond timestamps.
    collections:
        Collection names to provision.  Defaults to every collection in
        ``COLLECTION_INDEXES``; any other name is rejected.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Clock = now_ms,
        collections: dict[str, tuple[tuple[str, ...], ...]] | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock
        self._indexes = dict(collections or COLLECTION_INDEXES)

    async def initialize(self) -> None:
        """Create one table per collection plus its declared indexes."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for collection, indexes in self._indexes.items():
                table = self._table(collection)
                await db.execute(_CREATE_TABLE_SQL.format(table=table))
                for fields in indexes:
                    name = f"idx_{collection}_{'_'.join(_check_field(f) for f in fields)}"
                    expressions = ", ".join(_extract(f) for f in fields)
                    await db.execute(
                        _CREATE_INDEX_SQL.format(name=name, table=table, expressions=expressions)
                    )
            await db.commit()
        logger.info("record_store_initialized", path=str(self._db_path), collections=len(self._indexes))

    # ------------------------------------------------------------------
    # IRecordStore implementation
    # ------------------------------------------------------------------

    async def create(self, collection: str, doc: Document) -> str:
        table = self._table(collection)
        doc_id = uuid.uuid4().hex
        now = self._clock()
        stored = dict(doc)
        stored["id"] = doc_id
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", stored["created_at"])

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _INSERT_SQL.format(table=table),
                    (doc_id, json.dumps(stored), stored["created_at"], stored["updated_at"]),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(message=f"Insert into {collection} failed: {exc}", provider_name="sqlite") from exc
        return doc_id

    async def patch(self, collection: str, doc_id: str, partial: Document) -> None:
        applied = await self._update(collection, doc_id, {}, partial)
        if not applied:
            raise RecordNotFoundError(message=f"No {collection} record with id {doc_id}")

    async def get(self, collection: str, doc_id: str) -> Document | None:
        table = self._table(collection)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_SELECT_ONE_SQL.format(table=table), (doc_id,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(message=f"Read of {collection}/{doc_id} failed: {exc}", provider_name="sqlite") from exc
        return json.loads(row[0]) if row else None

    async def query_by_index(
        self,
        collection: str,
        fields: tuple[str, ...] | list[str],
        values: tuple[Any, ...] | list[Any],
        order: SortOrder = "desc",
        limit: int | None = None,
    ) -> list[Document]:
        table = self._table(collection)
        where, params = _equality_clause(list(fields), list(values))
        direction = "DESC" if order == "desc" else "ASC"
        sql = f"SELECT doc FROM {table} WHERE {where} ORDER BY created_at {direction}, rowid {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(message=f"Query of {collection} failed: {exc}", provider_name="sqlite") from exc
        return [json.loads(row[0]) for row in rows]

    async def query_by_filter(
        self,
        collection: str,
        predicate: Predicate,
        limit: int | None = None,
        order_by: str = "created_at",
        order: SortOrder = "asc",
    ) -> list[Document]:
        table = self._table(collection)
        direction = "DESC" if order == "desc" else "ASC"
        sql = f"SELECT doc FROM {table} ORDER BY {_extract(order_by)} {direction}, rowid {direction}"

        results: list[Document] = []
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                async with db.execute(sql) as cursor:
                    async for row in cursor:
                        doc = json.loads(row[0])
                        if predicate(doc):
                            results.append(doc)
                            if limit is not None and len(results) >= limit:
                                break
        except aiosqlite.Error as exc:
            raise StoreError(message=f"Scan of {collection} failed: {exc}", provider_name="sqlite") from exc
        return results

    async def conditional_patch(
        self,
        collection: str,
        doc_id: str,
        expected: Document,
        partial: Document,
    ) -> bool:
        return await self._update(collection, doc_id, expected, partial)

    async def close(self) -> None:
        """Connections are opened per operation; nothing to release."""

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _table(self, collection: str) -> str:
        if collection not in self._indexes:
            raise StoreError(message=f"Unknown collection: {collection!r}", provider_name="sqlite")
        return f'"{collection}"'

    async def _update(self, collection: str, doc_id: str, expected: Document, partial: Document) -> bool:
        table = self._table(collection)
        update = {k: v for k, v in partial.items() if k not in ("id", "created_at")}
        update.setdefault("updated_at", self._clock())

        set_args: list[str] = []
        params: list[Any] = []
        for field, value in update.items():
            set_args.append(f"'$.{_check_field(field)}', json(?)")
            params.append(json.dumps(value))
        params.append(update["updated_at"])

        where, where_params = _equality_clause(list(expected), list(expected.values()))
        sql = (
            f"UPDATE {table} SET doc = json_set(doc, {', '.join(set_args)}), updated_at = ? "
            f"WHERE id = ? AND {where}"
        )
        params.append(doc_id)
        params.extend(where_params)

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(sql, params)
                await db.commit()
                changed = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StoreError(message=f"Update of {collection}/{doc_id} failed: {exc}", provider_name="sqlite") from exc
        return changed > 0
