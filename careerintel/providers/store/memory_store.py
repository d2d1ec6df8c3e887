"""In-memory record store.

Dict-backed implementation of :class:`IRecordStore` for tests and
single-process development (``STORE_BACKEND=memory``).  Mutations run
under one ``asyncio.Lock`` so ``conditional_patch`` is a true
compare-and-swap within the process.  Reads return deep copies, so callers
never alias stored state.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import uuid
from typing import Any

import structlog

from careerintel.interfaces.record_store import Document, IRecordStore, Predicate, SortOrder
from careerintel.utils.clock import Clock, now_ms
from careerintel.utils.errors import RecordNotFoundError

logger = structlog.get_logger(logger_name=__name__)


class InMemoryRecordStore(IRecordStore):
    """Record store held entirely in process memory.

    Parameters
    ----------
    clock:
        Source of epoch-millisecond timestamps for ``created_at`` and
        ``updated_at``.
    """

    def __init__(self, clock: Clock = now_ms) -> None:
        self._clock = clock
        self._collections: dict[str, dict[str, Document]] = {}
        # Insertion sequence breaks ties between equal timestamps.
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # IRecordStore implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        logger.info("memory_store_initialized")

    async def create(self, collection: str, doc: Document) -> str:
        async with self._lock:
            doc_id = uuid.uuid4().hex
            now = self._clock()
            stored = copy.deepcopy(doc)
            stored["id"] = doc_id
            stored.setdefault("created_at", now)
            stored.setdefault("updated_at", stored["created_at"])
            self._collections.setdefault(collection, {})[doc_id] = stored
            self._sequence[doc_id] = next(self._counter)
        return doc_id

    async def patch(self, collection: str, doc_id: str, partial: Document) -> None:
        async with self._lock:
            stored = self._collections.get(collection, {}).get(doc_id)
            if stored is None:
                raise RecordNotFoundError(message=f"No {collection} record with id {doc_id}")
            self._apply(stored, partial)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        stored = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def query_by_index(
        self,
        collection: str,
        fields: tuple[str, ...] | list[str],
        values: tuple[Any, ...] | list[Any],
        order: SortOrder = "desc",
        limit: int | None = None,
    ) -> list[Document]:
        pairs = list(zip(fields, values, strict=True))
        return await self.query_by_filter(
            collection,
            lambda doc: all(doc.get(field) == value for field, value in pairs),
            limit=limit,
            order_by="created_at",
            order=order,
        )

    async def query_by_filter(
        self,
        collection: str,
        predicate: Predicate,
        limit: int | None = None,
        order_by: str = "created_at",
        order: SortOrder = "asc",
    ) -> list[Document]:
        docs = [doc for doc in self._collections.get(collection, {}).values() if predicate(doc)]
        docs.sort(
            key=lambda doc: (_sort_value(doc.get(order_by)), self._sequence[doc["id"]]),
            reverse=order == "desc",
        )
        if limit is not None:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    async def conditional_patch(
        self,
        collection: str,
        doc_id: str,
        expected: Document,
        partial: Document,
    ) -> bool:
        async with self._lock:
            stored = self._collections.get(collection, {}).get(doc_id)
            if stored is None:
                return False
            if any(stored.get(field) != value for field, value in expected.items()):
                return False
            self._apply(stored, partial)
            return True

    async def close(self) -> None:
        """Nothing to release."""

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply(self, stored: Document, partial: Document) -> None:
        update = copy.deepcopy(partial)
        update.pop("id", None)
        update.pop("created_at", None)
        update.setdefault("updated_at", self._clock())
        stored.update(update)


def _sort_value(value: Any) -> tuple[int, Any]:
    # Missing values sort first; mixed types are compared as strings.
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))
