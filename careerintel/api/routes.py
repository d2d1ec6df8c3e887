"""FastAPI API routes for career-intel.

Every find-or-create route does the same two things synchronously: validate
the parameters (400 on failure) and run the dedup decision.  Fetching,
enrichment and embedding all happen in the background; callers poll the
status routes.  Service dependencies are resolved from ``app.state`` via
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint                                  Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/research                          POST    Find-or-create research
# /api/v1/research/stream                   GET     Streamed completion (not stored)
# /api/v1/research/status/{id}              GET     Poll a research unit
# /api/v1/research/search                   POST    Semantic search of reports
# /api/v1/profiles/search                   POST    Find-or-create profile search
# /api/v1/profiles/status/{id}              GET     Poll, with stored profiles
# /api/v1/profiles                          GET     List or semantic search
# /api/v1/profiles/stale                    GET     Stale statistics
# /api/v1/profiles/stale                    POST    Manual refresh-stale (1..10)
# /api/v1/profiles/process-unprocessed      POST    Manual enrichment batch
# /api/v1/profiles/{id}                     GET     One profile with its age
# /api/v1/profiles/{id}/refresh             POST    Mark for reprocessing (409 mid-batch)
# /api/v1/jobs/search                       POST    Find-or-create job search
# /api/v1/jobs/status/{id}                  GET     Poll, with stored jobs
# /api/v1/jobs/reverse                      POST    Reverse lookup of a URL
# /api/v1/jobs                              GET     List or semantic search
# /api/v1/jobs/process-unprocessed          POST    Manual enrichment batch
# /api/v1/jobs/refresh-stale                POST    Manual refresh-stale
# /api/v1/locations/suggest                 GET     Location autocomplete
# /api/v1/health                            GET     Health + scheduler jobs
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from careerintel.api.schemas import (
    BatchRequest,
    BatchResponse,
    ErrorResponse,
    FindOrCreateResponse,
    HealthResponse,
    JobSearchRequest,
    LocationSuggestion,
    LocationSuggestResponse,
    ProfileDetailResponse,
    ProfileSearchRequest,
    RecordListResponse,
    RefreshResponse,
    ResearchRequest,
    ReverseJobRequest,
    ReverseJobResponse,
    ScoredRecordResponse,
    SemanticSearchRequest,
    SemanticSearchResponse,
    StaleStatsResponse,
    UnitStatusResponse,
)
from careerintel.interfaces.record_store import JOBS, PROFILES, RESEARCH_REPORTS, IRecordStore
from careerintel.models.lifecycle import BatchSummary, FindOrCreateResult, SearchStatus, StaleStats
from careerintel.pipeline.domains import (
    validate_job_search,
    validate_profile_search,
    validate_research,
    validate_research_stream,
)
from careerintel.pipeline.lifecycle import LifecycleManager
from careerintel.pipeline.periodic import PeriodicRunner
from careerintel.pipeline.scheduler import EnrichmentScheduler
from careerintel.services.location_matcher import LocationMatcher
from careerintel.services.research_service import ResearchService
from careerintel.services.reverse_job_service import ReverseJobService
from careerintel.services.semantic_search_service import SemanticSearchService
from careerintel.utils.clock import Clock, now_ms
from careerintel.utils.errors import CareerIntelError, RecordNotFoundError
from careerintel.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_DAY_MS = 24 * 60 * 60 * 1000
_PROFILE_BATCH_DEFAULT = 5
_PROFILE_STALE_BATCH_DEFAULT = 5
_PROFILE_STALE_BATCH_MAX = 10
_JOB_BATCH_DEFAULT = 50
_LIST_LIMIT_DEFAULT = 50
_NOT_FOUND = {404: {"model": ErrorResponse}}
_NOT_FOUND_OR_BUSY = {**_NOT_FOUND, 409: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def _get_research_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.research_lifecycle


def _get_profile_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.profile_lifecycle


def _get_job_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.job_lifecycle


def _get_research_service(request: Request) -> ResearchService:
    return request.app.state.research_service


def _get_semantic_search(request: Request) -> SemanticSearchService:
    return request.app.state.semantic_search


def _get_reverse_job_service(request: Request) -> ReverseJobService:
    return request.app.state.reverse_job_service


def _get_job_scheduler(request: Request) -> EnrichmentScheduler:
    return request.app.state.job_scheduler


def _get_profile_scheduler(request: Request) -> EnrichmentScheduler:
    return request.app.state.profile_scheduler


def _get_location_matcher(request: Request) -> LocationMatcher:
    return request.app.state.location_matcher


def _get_store(request: Request) -> IRecordStore:
    return request.app.state.store


def _get_clock(request: Request) -> Clock:
    """Return the injected clock, or wall-clock time when none is set."""
    return getattr(request.app.state, "clock", now_ms)


def _get_stale_after_days(request: Request) -> int:
    return getattr(request.app.state, "record_stale_after_days", 90)


ResearchLifecycleDep = Annotated[LifecycleManager, Depends(_get_research_lifecycle)]
ProfileLifecycleDep = Annotated[LifecycleManager, Depends(_get_profile_lifecycle)]
JobLifecycleDep = Annotated[LifecycleManager, Depends(_get_job_lifecycle)]
ResearchServiceDep = Annotated[ResearchService, Depends(_get_research_service)]
SemanticSearchDep = Annotated[SemanticSearchService, Depends(_get_semantic_search)]
ReverseJobDep = Annotated[ReverseJobService, Depends(_get_reverse_job_service)]
JobSchedulerDep = Annotated[EnrichmentScheduler, Depends(_get_job_scheduler)]
ProfileSchedulerDep = Annotated[EnrichmentScheduler, Depends(_get_profile_scheduler)]
LocationMatcherDep = Annotated[LocationMatcher, Depends(_get_location_matcher)]
StoreDep = Annotated[IRecordStore, Depends(_get_store)]
ClockDep = Annotated[Clock, Depends(_get_clock)]
StaleAfterDaysDep = Annotated[int, Depends(_get_stale_after_days)]


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _envelope(result: FindOrCreateResult, noun: str) -> FindOrCreateResponse:
    if result.status is SearchStatus.COMPLETE:
        message = f"Returning existing {noun}"
    elif result.is_existing:
        message = f"{noun.capitalize()} already in progress; poll the status endpoint"
    else:
        message = f"{noun.capitalize()} started; poll the status endpoint"
    return FindOrCreateResponse(
        id=result.id,
        status=result.status,
        is_existing=result.is_existing,
        data=result.data,
        message=message,
    )


async def _status(lifecycle: LifecycleManager, unit_id: str) -> UnitStatusResponse:
    view = await lifecycle.get_status(unit_id)
    if view is None:
        raise RecordNotFoundError(message=f"No {lifecycle.descriptor.name} with id {unit_id}")
    return UnitStatusResponse(**view.model_dump())


def _batch_response(summary: BatchSummary) -> BatchResponse:
    return BatchResponse(**summary.model_dump(), message=summary.message)


def _public(doc: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in doc.items() if k != "embeddings"}


async def _semantic(
    search: SemanticSearchService, collection: str, query: str, limit: int, min_similarity: float = 0.0
) -> SemanticSearchResponse:
    results = await search.search(collection, query, limit=limit, min_similarity=min_similarity)
    return SemanticSearchResponse(
        query=query,
        results=[ScoredRecordResponse(id=r.id, similarity=r.similarity, record=r.record) for r in results],
        total=len(results),
    )


async def _list_records(
    store: IRecordStore,
    lifecycle: LifecycleManager,
    collection: str,
    search_id: str | None,
    limit: int,
) -> RecordListResponse:
    if search_id:
        docs = await lifecycle.list_records(search_id, limit=limit)
    else:
        docs = await store.query_by_filter(collection, lambda doc: True, limit=limit, order="desc")
    return RecordListResponse(records=[_public(d) for d in docs], total=len(docs), search_id=search_id)


# ---------------------------------------------------------------------------
# Research
# ---------------------------------------------------------------------------


@router.post("/research", response_model=FindOrCreateResponse, summary="Find or create a research report")
async def create_research(body: ResearchRequest, lifecycle: ResearchLifecycleDep) -> FindOrCreateResponse:
    params = validate_research(body.company, body.position, body.location, body.type)
    result = await lifecycle.find_or_create(params)
    return _envelope(result, "research report")


@router.get("/research/stream", summary="Stream a research completion (not stored)")
async def stream_research(
    research: ResearchServiceDep,
    company: str = "",
    position: str = "",
    location: str = "",
) -> StreamingResponse:
    params = validate_research_stream(company, position, location)

    async def events() -> AsyncIterator[str]:
        try:
            async for chunk in research.stream(params):
                yield f"data: {json.dumps({'chunk': chunk})}\n\n"
        except CareerIntelError as exc:
            _logger.warning("research_stream_failed", company=params.company, error=str(exc))
            yield f"data: {json.dumps({'error': exc.message})}\n\n"
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/research/status/{unit_id}", response_model=UnitStatusResponse, responses=_NOT_FOUND)
async def research_status(unit_id: str, lifecycle: ResearchLifecycleDep) -> UnitStatusResponse:
    return await _status(lifecycle, unit_id)


@router.post("/research/search", response_model=SemanticSearchResponse, summary="Semantic search of reports")
async def search_research(body: SemanticSearchRequest, search: SemanticSearchDep) -> SemanticSearchResponse:
    return await _semantic(search, RESEARCH_REPORTS, body.query, body.limit, body.min_similarity)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@router.post("/profiles/search", response_model=FindOrCreateResponse, summary="Find or create a profile search")
async def create_profile_search(body: ProfileSearchRequest, lifecycle: ProfileLifecycleDep) -> FindOrCreateResponse:
    params = validate_profile_search(body.job_title, body.user_location, body.num_results)
    result = await lifecycle.find_or_create(params)
    return _envelope(result, "profile search")


@router.get("/profiles/status/{unit_id}", response_model=UnitStatusResponse, responses=_NOT_FOUND)
async def profile_search_status(unit_id: str, lifecycle: ProfileLifecycleDep) -> UnitStatusResponse:
    return await _status(lifecycle, unit_id)


@router.get("/profiles", response_model=RecordListResponse | SemanticSearchResponse)
async def list_profiles(
    store: StoreDep,
    lifecycle: ProfileLifecycleDep,
    search: SemanticSearchDep,
    search_id: str | None = None,
    query: Annotated[str | None, Query(alias="search")] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = _LIST_LIMIT_DEFAULT,
) -> RecordListResponse | SemanticSearchResponse:
    if query:
        return await _semantic(search, PROFILES, query, min(limit, 50))
    return await _list_records(store, lifecycle, PROFILES, search_id, limit)


@router.get("/profiles/stale", response_model=StaleStatsResponse, summary="Profile staleness statistics")
async def profile_stale_stats(scheduler: ProfileSchedulerDep) -> StaleStatsResponse:
    stats: StaleStats = await scheduler.stale_stats()
    return StaleStatsResponse(
        **stats.model_dump(),
        percentages=stats.percentages,
        message=f"Found {stats.stale_3_months} stale profiles (>3 months) out of {stats.total} total",
    )


@router.post("/profiles/stale", response_model=BatchResponse, summary="Manually refresh stale profiles")
async def refresh_stale_profiles(
    scheduler: ProfileSchedulerDep,
    stale_after_days: StaleAfterDaysDep,
    body: BatchRequest | None = None,
) -> BatchResponse:
    requested = body.batch_size if body and body.batch_size is not None else _PROFILE_STALE_BATCH_DEFAULT
    batch_size = min(max(requested, 1), _PROFILE_STALE_BATCH_MAX)
    summary = await scheduler.refresh_stale(batch_size, timedelta(days=stale_after_days))
    return _batch_response(summary)


@router.post("/profiles/process-unprocessed", response_model=BatchResponse, summary="Enrich unprocessed profiles")
async def process_unprocessed_profiles(
    scheduler: ProfileSchedulerDep, body: BatchRequest | None = None
) -> BatchResponse:
    batch_size = body.batch_size if body and body.batch_size is not None else _PROFILE_BATCH_DEFAULT
    return _batch_response(await scheduler.run_batch(max(batch_size, 1)))


@router.get("/profiles/{profile_id}", response_model=ProfileDetailResponse, responses=_NOT_FOUND)
async def get_profile(
    profile_id: str, store: StoreDep, clock: ClockDep, stale_after_days: StaleAfterDaysDep
) -> ProfileDetailResponse:
    profile = await store.get(PROFILES, profile_id)
    if profile is None:
        raise RecordNotFoundError(message=f"No profile with id {profile_id}")
    age_days = int((clock() - profile["updated_at"]) // _DAY_MS)
    return ProfileDetailResponse(
        profile=_public(profile),
        age_days=age_days,
        age_months=age_days // 30,
        is_stale=age_days > stale_after_days,
    )


@router.post("/profiles/{profile_id}/refresh", response_model=RefreshResponse, responses=_NOT_FOUND_OR_BUSY)
async def refresh_profile(profile_id: str, scheduler: ProfileSchedulerDep) -> RefreshResponse:
    if not await scheduler.mark_for_refresh(profile_id):
        raise RecordNotFoundError(message=f"No profile with id {profile_id}")
    return RefreshResponse(
        id=profile_id,
        processing_state="unprocessed",
        message="Profile marked for reprocessing on the next batch",
    )


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@router.post("/jobs/search", response_model=FindOrCreateResponse, summary="Find or create a job search")
async def create_job_search(body: JobSearchRequest, lifecycle: JobLifecycleDep) -> FindOrCreateResponse:
    params = validate_job_search(body.query, body.location, body.country_code)
    result = await lifecycle.find_or_create(params)
    return _envelope(result, "job search")


@router.get("/jobs/status/{unit_id}", response_model=UnitStatusResponse, responses=_NOT_FOUND)
async def job_search_status(unit_id: str, lifecycle: JobLifecycleDep) -> UnitStatusResponse:
    return await _status(lifecycle, unit_id)


@router.post("/jobs/reverse", response_model=ReverseJobResponse, summary="Reverse lookup of a job posting URL")
async def reverse_job(body: ReverseJobRequest, service: ReverseJobDep) -> ReverseJobResponse:
    result = await service.lookup(body.url)
    job = result.job
    if result.is_existing:
        message = f"Returning previously processed job: {job.title} at {job.company}"
    else:
        message = f"Successfully scraped and processed job: {job.title} at {job.company}"
    return ReverseJobResponse(
        job=job.model_dump(),
        job_id=result.job_id,
        search_id=result.search_id,
        is_existing=result.is_existing,
        response_time_ms=round(result.response_time_ms, 2),
        message=message,
    )


@router.get("/jobs", response_model=RecordListResponse | SemanticSearchResponse)
async def list_jobs(
    store: StoreDep,
    lifecycle: JobLifecycleDep,
    search: SemanticSearchDep,
    search_id: str | None = None,
    query: Annotated[str | None, Query(alias="search")] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = _LIST_LIMIT_DEFAULT,
) -> RecordListResponse | SemanticSearchResponse:
    if query:
        return await _semantic(search, JOBS, query, min(limit, 50))
    return await _list_records(store, lifecycle, JOBS, search_id, limit)


@router.post("/jobs/process-unprocessed", response_model=BatchResponse, summary="Enrich unprocessed jobs")
async def process_unprocessed_jobs(scheduler: JobSchedulerDep, body: BatchRequest | None = None) -> BatchResponse:
    batch_size = body.batch_size if body and body.batch_size is not None else _JOB_BATCH_DEFAULT
    return _batch_response(await scheduler.run_batch(max(batch_size, 1)))


@router.post("/jobs/refresh-stale", response_model=BatchResponse, summary="Manually refresh stale jobs")
async def refresh_stale_jobs(
    scheduler: JobSchedulerDep,
    stale_after_days: StaleAfterDaysDep,
    body: BatchRequest | None = None,
) -> BatchResponse:
    batch_size = body.batch_size if body and body.batch_size is not None else _JOB_BATCH_DEFAULT
    summary = await scheduler.refresh_stale(max(batch_size, 1), timedelta(days=stale_after_days))
    return _batch_response(summary)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@router.get("/locations/suggest", response_model=LocationSuggestResponse, summary="Location autocomplete")
async def suggest_locations(
    matcher: LocationMatcherDep,
    q: Annotated[str, Query(min_length=1)],
    country_code: str = "gb",
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
) -> LocationSuggestResponse:
    matches = await matcher.suggest(q, country_code, limit=limit)
    return LocationSuggestResponse(
        query=q,
        country_code=country_code,
        suggestions=[
            LocationSuggestion(
                name=m.location.name,
                canonical_name=m.location.canonical_name,
                country_code=m.location.country_code,
                target_type=m.location.target_type,
                reach=m.location.reach,
                confidence=round(m.confidence, 3),
                match_type=m.match_type,
            )
            for m in matches
        ],
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return status, version, store backend, providers and scheduler jobs."""
    store: IRecordStore | None = getattr(request.app.state, "store", None)
    runner: PeriodicRunner | None = getattr(request.app.state, "periodic_runner", None)
    providers: list[str] = list(getattr(request.app.state, "available_providers", []))
    return HealthResponse(
        status="healthy" if store is not None else "unhealthy",
        version=getattr(request.app.state, "version", "0.1.0"),
        store=store.get_provider_name() if store is not None else "none",
        providers=providers,
        scheduler=runner.describe() if runner is not None else [],
    )
