"""Lifecycle state models shared by every search domain.

Two independent state machines live here:

* :class:`SearchStatus` drives a **search unit** (one user-initiated
  research / profile search / job search).  A unit starts ``pending`` and
  moves exactly once to ``complete`` or ``failed``.  It is never reset in
  place; a stale or expired unit is superseded by a brand-new one.

      pending ──success──▶ complete
         │
         ├──error────────▶ failed
         └──expires_at elapsed ─▶ (read as failed, row untouched)

* :class:`ProcessingState` drives a **result record** (one job posting or
  profile) through enrichment, advanced by the scheduler rather than by
  the original caller:

      unprocessed ──claim──▶ processing ──enriched──▶ processed
           ▲                     │                       │
           └──────error──────────┘◀──── refresh-stale ───┘
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchStatus(str, Enum):  # noqa: UP042
    """Status of a search unit as stored."""

    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class ProcessingState(str, Enum):  # noqa: UP042
    """Enrichment progress of a result record."""

    UNPROCESSED = "unprocessed"
    PROCESSING = "processing"
    PROCESSED = "processed"


class FindOrCreateResult(BaseModel):
    """Outcome of a find-or-create call, returned to the caller immediately.

    ``data`` is the stored summary payload for a reusable complete unit and
    ``None`` for a pending one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: SearchStatus
    is_existing: bool = False
    data: dict[str, Any] | None = None


class SaveResult(BaseModel):
    """Outcome of storing one result record under its dedup identity."""

    model_config = ConfigDict(frozen=True)

    id: str
    is_new: bool


class UnitStatusView(BaseModel):
    """Read-only snapshot of a search unit for status polling.

    ``status`` is the *effective* status: a pending unit past its
    ``expires_at`` reads as ``failed`` with ``is_expired`` set, even though
    storage still says ``pending``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    domain: str
    status: SearchStatus
    is_expired: bool = False
    data: dict[str, Any] | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    created_at: float
    updated_at: float
    records: list[dict[str, Any]] = Field(default_factory=list)


class BatchSummary(BaseModel):
    """Counters for one scheduler run.  An empty batch is a valid no-op."""

    model_config = ConfigDict(frozen=True)

    operation: str
    selected: int = 0
    claimed: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def message(self) -> str:
        if self.selected == 0:
            return f"{self.operation}: nothing to do"
        return (
            f"{self.operation}: {self.processed} processed, {self.failed} failed, "
            f"{self.skipped} skipped of {self.selected} selected"
        )


class StaleStats(BaseModel):
    """Age breakdown of a record collection.  Months are 30 days."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    fresh: int = 0
    stale_3_months: int = 0
    stale_6_months: int = 0
    stale_1_year: int = 0
    recently_processed: int = 0
    with_errors: int = 0

    @property
    def percentages(self) -> dict[str, int]:
        if self.total == 0:
            return {"fresh": 0, "stale_3_months": 0, "stale_6_months": 0, "stale_1_year": 0}
        return {
            "fresh": round(self.fresh / self.total * 100),
            "stale_3_months": round(self.stale_3_months / self.total * 100),
            "stale_6_months": round(self.stale_6_months / self.total * 100),
            "stale_1_year": round(self.stale_1_year / self.total * 100),
        }
