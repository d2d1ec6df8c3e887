"""Generic duplicate-prevention and search-unit lifecycle manager.

# ─── HOW FIND-OR-CREATE WORKS ─────────────────────────────────────────
#
# One LifecycleManager is built per search domain (research, profile
# search, job search) from a small DomainDescriptor.  Every domain shares
# the same flow:
#
#   find_or_create(params)
#     1. cleanup_expired()          best-effort, failures only logged
#     2. latest unit with the same dedup key (most recent first)
#     3. decide():
#
#        existing   status     age / expiry          action
#        ────────   ────────   ──────────────────    ─────────────────
#        none       -          -                     create
#        yes        complete   fresh                 reuse its data
#        yes        complete   stale                 create
#        yes        pending    expires_at ahead      await (poll it)
#        yes        pending    expires_at passed     create
#        yes        failed     -                     create
#
#     4. create: write a pending unit with expires_at = now + timeout,
#        submit execute() to the TaskRunner, return immediately.
#
#   execute(unit_id, params)        background, never raises
#     fetch -> save each candidate (dedup by identity) -> complete | failed
#
# Old units are never reset.  A stale or expired unit stays as a
# historical row and a new unit supersedes it.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from careerintel.interfaces.record_store import Document, IRecordStore
from careerintel.models.lifecycle import (
    FindOrCreateResult,
    ProcessingState,
    SaveResult,
    SearchStatus,
    UnitStatusView,
)
from careerintel.pipeline.task_runner import TaskHandle, TaskRunner
from careerintel.utils.clock import Clock, now_ms, to_ms
from careerintel.utils.errors import CareerIntelError
from careerintel.utils.logging import get_logger

DEFAULT_PENDING_TIMEOUT = timedelta(minutes=5)
EXPIRED_ERROR = "expired"

# Record identity within a provider scope, e.g. a listing id per provider.
DEFAULT_RECORD_IDENTITY = ("dedup_identity", "provider")


@dataclass(frozen=True)
class FetchOutcome:
    """What a domain fetch hands back to :meth:`LifecycleManager.execute`.

    Attributes
    ----------
    candidates:
        Result-record documents to persist under the unit.  Empty for
        domains that keep their result on the unit itself.
    provider:
        Provider that actually answered.
    cost_dollars:
        Provider cost for the fetch.
    response_time_ms:
        Provider latency.
    total_found:
        Number of raw hits; defaults to ``len(candidates)``.
    payload:
        Extra keys merged into the unit's summary ``data``.
    extra_fields:
        Top-level fields patched onto the unit with the completion
        (e.g. embeddings).
    """

    candidates: list[Document] = field(default_factory=list)
    provider: str = ""
    cost_dollars: float = 0.0
    response_time_ms: float = 0.0
    total_found: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    extra_fields: dict[str, Any] = field(default_factory=dict)


FetchFn = Callable[[Any], Awaitable[FetchOutcome]]


@dataclass(frozen=True)
class DomainDescriptor:
    """Everything that differs between the three search domains."""

    name: str
    unit_collection: str
    dedup_key_fields: tuple[str, ...]
    staleness: timedelta
    fetch: FetchFn
    record_collection: str | None = None
    record_identity_fields: tuple[str, ...] = DEFAULT_RECORD_IDENTITY
    pending_timeout: timedelta = DEFAULT_PENDING_TIMEOUT

    def dedup_values(self, params: BaseModel) -> tuple[Any, ...]:
        return tuple(getattr(params, f) for f in self.dedup_key_fields)


class Decision(enum.Enum):
    """Outcome of comparing the latest matching unit against the clock."""

    CREATE = "create"
    REUSE = "reuse"
    AWAIT = "await"


# ---------------------------------------------------------------------------
# Pure policy helpers
# ---------------------------------------------------------------------------


def pending_expired(unit: Document, now: float) -> bool:
    """True when *unit* is stored as pending but its window has passed."""
    if unit.get("status") != SearchStatus.PENDING.value:
        return False
    expires_at = unit.get("expires_at")
    return expires_at is not None and expires_at < now


def is_stale(unit: Document, now: float, staleness: timedelta) -> bool:
    return now - unit["updated_at"] > to_ms(staleness)


def decide(unit: Document | None, now: float, staleness: timedelta) -> Decision:
    """Apply the find-or-create decision table to the latest unit."""
    if unit is None:
        return Decision.CREATE
    status = unit.get("status")
    if status == SearchStatus.COMPLETE.value:
        return Decision.CREATE if is_stale(unit, now, staleness) else Decision.REUSE
    if status == SearchStatus.PENDING.value:
        return Decision.CREATE if pending_expired(unit, now) else Decision.AWAIT
    return Decision.CREATE


def _public_record(doc: Document) -> dict[str, Any]:
    return {k: v for k, v in doc.items() if k != "embeddings"}


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class LifecycleManager:
    """Find-or-create plus background execution for one search domain.

    Parameters
    ----------
    descriptor:
        Domain configuration (collections, dedup key, staleness, fetch).
    store:
        Record store shared by every domain.
    task_runner:
        Runs :meth:`execute` off the request path.
    clock:
        Epoch-millisecond clock; tests inject a :class:`ManualClock`.
    """

    def __init__(
        self,
        descriptor: DomainDescriptor,
        store: IRecordStore,
        task_runner: TaskRunner,
        clock: Clock = now_ms,
    ) -> None:
        self._descriptor = descriptor
        self._store = store
        self._task_runner = task_runner
        self._clock = clock
        self._logger = get_logger(__name__)

    @property
    def descriptor(self) -> DomainDescriptor:
        return self._descriptor

    @property
    def store(self) -> IRecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Request path
    # ------------------------------------------------------------------

    async def find_or_create(self, params: BaseModel) -> FindOrCreateResult:
        """Return a reusable unit for *params* or start a new one.

        Only the dedup lookup and the pending-unit write happen inline.
        The fetch runs as a background task.
        """
        d = self._descriptor
        try:
            await self.cleanup_expired()
        except CareerIntelError as exc:
            self._logger.warning("cleanup_expired_failed", domain=d.name, error=str(exc))

        existing = await self.find_latest(params)
        now = self._clock()
        decision = decide(existing, now, d.staleness)

        if decision is Decision.REUSE:
            self._logger.info("unit_reused", domain=d.name, unit_id=existing["id"])
            return FindOrCreateResult(
                id=existing["id"],
                status=SearchStatus.COMPLETE,
                is_existing=True,
                data=existing.get("data"),
            )
        if decision is Decision.AWAIT:
            self._logger.info("unit_pending_reused", domain=d.name, unit_id=existing["id"])
            return FindOrCreateResult(id=existing["id"], status=SearchStatus.PENDING, is_existing=True)

        if existing is not None:
            self._logger.info(
                "unit_superseded",
                domain=d.name,
                previous_id=existing["id"],
                previous_status=existing.get("status"),
            )
        unit_id = await self.create_pending(params)
        self.dispatch(unit_id, params)
        return FindOrCreateResult(id=unit_id, status=SearchStatus.PENDING, is_existing=False)

    async def find_latest(self, params: BaseModel) -> Document | None:
        d = self._descriptor
        matches = await self._store.query_by_index(
            d.unit_collection, d.dedup_key_fields, d.dedup_values(params), order="desc", limit=1
        )
        return matches[0] if matches else None

    async def create_pending(self, params: BaseModel, extra: dict[str, Any] | None = None) -> str:
        """Write a new pending unit and return its id (no dispatch)."""
        d = self._descriptor
        now = self._clock()
        doc: Document = {
            **params.model_dump(),
            **(extra or {}),
            "status": SearchStatus.PENDING.value,
            "data": None,
            "expires_at": now + to_ms(d.pending_timeout),
            "created_at": now,
            "updated_at": now,
        }
        unit_id = await self._store.create(d.unit_collection, doc)
        self._logger.info("unit_created", domain=d.name, unit_id=unit_id)
        return unit_id

    def dispatch(self, unit_id: str, params: BaseModel) -> TaskHandle:
        return self._task_runner.submit(f"{self._descriptor.name}:execute:{unit_id}", self.execute(unit_id, params))

    async def cleanup_expired(self) -> int:
        """Flip expired pending units to failed.  Returns how many flipped.

        Advisory only.  :meth:`get_status` and :func:`decide` already treat
        expired units as failed without this pass.
        """
        d = self._descriptor
        now = self._clock()
        pending = await self._store.query_by_index(
            d.unit_collection, ("status",), (SearchStatus.PENDING.value,), order="asc"
        )
        flipped = 0
        for unit in pending:
            if not pending_expired(unit, now):
                continue
            applied = await self._store.conditional_patch(
                d.unit_collection,
                unit["id"],
                expected={"status": SearchStatus.PENDING.value},
                partial={"status": SearchStatus.FAILED.value, "data": {"error": EXPIRED_ERROR}, "expires_at": None},
            )
            flipped += int(applied)
        if flipped:
            self._logger.info("expired_units_failed", domain=d.name, count=flipped)
        return flipped

    async def get_status(self, unit_id: str) -> UnitStatusView | None:
        """Plain read of a unit with its effective status.  Never writes."""
        d = self._descriptor
        unit = await self._store.get(d.unit_collection, unit_id)
        if unit is None:
            return None

        expired = pending_expired(unit, self._clock())
        status = SearchStatus.FAILED if expired else SearchStatus(unit["status"])
        data = unit.get("data")
        if expired and data is None:
            data = {"error": EXPIRED_ERROR}

        records: list[dict[str, Any]] = []
        if d.record_collection is not None:
            records = [_public_record(doc) for doc in await self.list_records(unit_id)]

        return UnitStatusView(
            id=unit["id"],
            domain=d.name,
            status=status,
            is_expired=expired,
            data=data,
            parameters={f: unit.get(f) for f in d.dedup_key_fields},
            created_at=unit["created_at"],
            updated_at=unit["updated_at"],
            records=records,
        )

    async def list_records(self, unit_id: str, limit: int | None = None) -> list[Document]:
        d = self._descriptor
        if d.record_collection is None:
            return []
        return await self._store.query_by_index(
            d.record_collection, ("search_id",), (unit_id,), order="asc", limit=limit
        )

    # ------------------------------------------------------------------
    # Background path
    # ------------------------------------------------------------------

    async def execute(self, unit_id: str, params: BaseModel) -> None:
        """Fetch, persist candidates, then complete or fail the unit.

        Runs as a background task.  Every error becomes a failed unit; none
        propagates past this method.
        """
        d = self._descriptor
        try:
            outcome = await d.fetch(params)
            stored = 0
            new_records = 0
            if d.record_collection is not None:
                for candidate in outcome.candidates:
                    result = await self.save_record_if_absent(candidate, unit_id)
                    stored += 1
                    new_records += int(result.is_new)

            data = {
                "total_found": outcome.total_found if outcome.total_found is not None else len(outcome.candidates),
                "stored": stored,
                "new_records": new_records,
                "provider": outcome.provider,
                "response_time_ms": round(outcome.response_time_ms),
                "cost_dollars": outcome.cost_dollars,
                **outcome.payload,
            }
            await self.complete(unit_id, data, outcome.extra_fields)
        except Exception as exc:
            self._logger.error(
                "unit_execution_failed",
                domain=d.name,
                unit_id=unit_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await self._fail_quietly(unit_id, getattr(exc, "message", None) or str(exc) or type(exc).__name__)

    async def complete(self, unit_id: str, data: dict[str, Any], extra_fields: dict[str, Any] | None = None) -> bool:
        """Move a pending unit to complete.  Returns False if it already left pending."""
        return await self._transition(
            unit_id,
            {**(extra_fields or {}), "status": SearchStatus.COMPLETE.value, "data": data, "expires_at": None},
        )

    async def fail(self, unit_id: str, error: str) -> bool:
        """Move a pending unit to failed with ``data.error``."""
        return await self._transition(
            unit_id,
            {"status": SearchStatus.FAILED.value, "data": {"error": error}, "expires_at": None},
        )

    async def save_record_if_absent(self, record: Document, unit_id: str | None) -> SaveResult:
        """Persist *record* under *unit_id* unless its identity already exists.

        An existing record with the same identity (within its provider
        scope) is returned untouched with ``is_new=False``.
        """
        d = self._descriptor
        if d.record_collection is None:
            raise CareerIntelError(message=f"Domain {d.name} keeps no result records")

        identity = tuple(record.get(f) for f in d.record_identity_fields)
        existing = await self._store.query_by_index(
            d.record_collection, d.record_identity_fields, identity, order="asc", limit=1
        )
        if existing:
            self._logger.debug("record_exists", domain=d.name, record_id=existing[0]["id"], unit_id=unit_id)
            return SaveResult(id=existing[0]["id"], is_new=False)

        doc = dict(record)
        doc["search_id"] = unit_id
        doc.setdefault("enriched_payload", None)
        doc.setdefault("processing_state", ProcessingState.UNPROCESSED.value)
        doc.setdefault("processing_error", None)
        doc.setdefault("embeddings", {})
        record_id = await self._store.create(d.record_collection, doc)
        return SaveResult(id=record_id, is_new=True)

    async def _transition(self, unit_id: str, partial: Document) -> bool:
        d = self._descriptor
        applied = await self._store.conditional_patch(
            d.unit_collection, unit_id, expected={"status": SearchStatus.PENDING.value}, partial=partial
        )
        if applied:
            self._logger.info("unit_transitioned", domain=d.name, unit_id=unit_id, status=partial["status"])
        else:
            self._logger.warning(
                "unit_transition_discarded", domain=d.name, unit_id=unit_id, status=partial["status"]
            )
        return applied

    async def _fail_quietly(self, unit_id: str, error: str) -> None:
        try:
            await self.fail(unit_id, error)
        except CareerIntelError as exc:
            self._logger.error("unit_fail_write_failed", domain=self._descriptor.name, unit_id=unit_id, error=str(exc))
