"""Pydantic request/response schemas for the career-intel API.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# Request bodies are parsed by FastAPI against these models.  Required
# text fields default to "" on purpose: blank or missing values reach the
# domain validators, which raise ValidationError (HTTP 400) before any
# search unit is written.  Type mismatches still get FastAPI's 422.
#
# Convention: request schemas end with "Request", response schemas end
# with "Response".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from careerintel.models.lifecycle import SearchStatus


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ResearchRequest(BaseModel):
    company: str = ""
    position: str = ""
    location: str = ""
    type: str = "structured"


class ProfileSearchRequest(BaseModel):
    job_title: str = ""
    user_location: str = ""
    num_results: int | None = None


class JobSearchRequest(BaseModel):
    query: str = ""
    location: str = ""
    country_code: str | None = None


class ReverseJobRequest(BaseModel):
    url: str = ""


class SemanticSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=50)
    min_similarity: float = Field(default=0.0, ge=-1.0, le=1.0)


class BatchRequest(BaseModel):
    """Manual scheduler trigger.  ``None`` uses the route's default size;
    out-of-range values are clamped by the route."""

    batch_size: int | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class FindOrCreateResponse(BaseModel):
    """Envelope returned by every find-or-create route."""

    id: str
    status: SearchStatus
    is_existing: bool
    data: dict[str, Any] | None = None
    message: str


class UnitStatusResponse(BaseModel):
    id: str
    domain: str
    status: SearchStatus
    is_expired: bool = False
    data: dict[str, Any] | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    created_at: float
    updated_at: float
    records: list[dict[str, Any]] = Field(default_factory=list)


class ScoredRecordResponse(BaseModel):
    id: str
    similarity: float
    record: dict[str, Any]


class SemanticSearchResponse(BaseModel):
    query: str
    results: list[ScoredRecordResponse] = Field(default_factory=list)
    total: int = 0


class RecordListResponse(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    search_id: str | None = None


class ProfileDetailResponse(BaseModel):
    profile: dict[str, Any]
    age_days: int
    age_months: int
    is_stale: bool


class ReverseJobResponse(BaseModel):
    job: dict[str, Any]
    job_id: str
    search_id: str | None = None
    is_existing: bool
    response_time_ms: float
    message: str


class BatchResponse(BaseModel):
    operation: str
    selected: int
    claimed: int
    processed: int
    failed: int
    skipped: int
    message: str


class StaleStatsResponse(BaseModel):
    total: int
    fresh: int
    stale_3_months: int
    stale_6_months: int
    stale_1_year: int
    recently_processed: int
    with_errors: int
    percentages: dict[str, int]
    message: str


class RefreshResponse(BaseModel):
    id: str
    processing_state: str
    message: str


class LocationSuggestion(BaseModel):
    name: str
    canonical_name: str
    country_code: str
    target_type: str
    reach: int
    confidence: float
    match_type: str


class LocationSuggestResponse(BaseModel):
    query: str
    country_code: str
    suggestions: list[LocationSuggestion] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    store: str
    providers: list[str] = Field(default_factory=list)
    scheduler: list[dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
