"""The three search domains: validation, record builders and descriptors.

Each ``*_domain()`` factory returns a :class:`DomainDescriptor` that the
generic :class:`LifecycleManager` runs.  Validation happens before any unit
is written and raises :class:`ValidationError` (HTTP 400).

    domain           dedup key                                    staleness
    ──────────────   ──────────────────────────────────────────   ─────────
    research         company, position, location, type            7 days
    profile_search   job_title, user_location, num_results        24 hours
    job_search       query, location, country_code, num_results   24 hours

Staleness comes from :class:`Settings`; the table shows the defaults.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any

from careerintel.config.localization import DEFAULT_COUNTRY_CODE
from careerintel.config.settings import Settings
from careerintel.interfaces.profile_search_provider import IProfileSearchProvider
from careerintel.interfaces.record_store import (
    JOB_SEARCHES,
    JOBS,
    PROFILE_SEARCHES,
    PROFILES,
    RESEARCH_REPORTS,
    Document,
)
from careerintel.models.job import JOB_SEARCH_NUM_RESULTS, JobSearchParams, RawJob, StructuredJob
from careerintel.models.profile import ProfileSearchParams, RawProfile
from careerintel.models.research import RESEARCH_QUESTIONS, STORED_RESEARCH_TYPES, ResearchParams
from careerintel.pipeline.lifecycle import DomainDescriptor, FetchOutcome
from careerintel.services.embedding_service import (
    EmbeddingService,
    build_research_text,
    prepare_text_for_embedding,
)
from careerintel.services.job_search_gateway import JobSearchGateway
from careerintel.services.research_service import ResearchService
from careerintel.utils.errors import ValidationError
from careerintel.utils.text import extract_profile_field

RESEARCH = "research"
PROFILE_SEARCH = "profile_search"
JOB_SEARCH = "job_search"

JOB_RECORD_IDENTITY = ("dedup_identity", "provider", "country_code")
PROFILE_RECORD_IDENTITY = ("dedup_identity", "provider")

PROFILE_NUM_RESULTS_DEFAULT = 10
PROFILE_NUM_RESULTS_MAX = 100

# Filterable fields copied out of the enriched job onto the record.
JOB_PROMOTED_FIELDS = ("job_type", "experience_level", "salary_range", "industry", "work_arrangement")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _required(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message=f"{name} is required")
    return value.strip()


def validate_research(company: Any, position: Any, location: Any, type: Any = "structured") -> ResearchParams:
    """Build research parameters, rejecting blanks and unstored types."""
    research_type = type or "structured"
    if research_type not in STORED_RESEARCH_TYPES:
        raise ValidationError(
            message=f"Unsupported research type: {research_type} (expected one of {sorted(STORED_RESEARCH_TYPES)})"
        )
    return ResearchParams(
        company=_required(company, "company"),
        position=_required(position, "position"),
        location=_required(location, "location"),
        type=research_type,
    )


def validate_research_stream(company: Any, position: Any, location: Any) -> ResearchParams:
    """Build parameters for a streamed completion, which is never stored."""
    return ResearchParams(
        company=_required(company, "company"),
        position=_required(position, "position"),
        location=_required(location, "location"),
        type="streaming",
    )


def validate_profile_search(job_title: Any, user_location: Any, num_results: Any = None) -> ProfileSearchParams:
    count = PROFILE_NUM_RESULTS_DEFAULT if num_results is None else num_results
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= PROFILE_NUM_RESULTS_MAX:
        raise ValidationError(message=f"num_results must be an integer between 1 and {PROFILE_NUM_RESULTS_MAX}")
    return ProfileSearchParams(
        job_title=_required(job_title, "job_title"),
        user_location=_required(user_location, "user_location"),
        num_results=count,
    )


def validate_job_search(query: Any, location: Any, country_code: Any = None) -> JobSearchParams:
    """Build job search parameters.  ``num_results`` is always 30."""
    if country_code is None:
        code = DEFAULT_COUNTRY_CODE
    else:
        code = _required(country_code, "country_code").lower()
    return JobSearchParams(
        query=_required(query, "query"),
        location=_required(location, "location"),
        country_code=code,
        num_results=JOB_SEARCH_NUM_RESULTS,
    )


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def build_job_record(raw: RawJob, country_code: str) -> Document:
    """Turn a normalized listing into an unprocessed job record document."""
    record: Document = {
        "dedup_identity": raw.id,
        "provider": raw.provider,
        "country_code": country_code,
        "title": raw.title,
        "company_name": raw.company_name,
        "location": raw.location,
        "description": raw.description,
        "share_link": raw.share_link,
        "via": raw.via,
        "apply_options": raw.apply_options,
        "raw_payload": raw.model_dump(),
    }
    record.update({name: None for name in JOB_PROMOTED_FIELDS})
    return record


def promoted_job_fields(job: StructuredJob) -> dict[str, Any]:
    return {
        "job_type": job.job_type,
        "experience_level": job.experience_level,
        "salary_range": job.salary_range,
        "industry": job.job_analysis.industry,
        "work_arrangement": job.job_analysis.work_arrangement,
    }


def build_profile_record(raw: RawProfile, user_location: str, provider: str) -> Document:
    """Turn a profile hit into an unprocessed profile record document.

    ``profile_location`` and ``position`` are read from the raw text so
    listing filters work before enrichment has run.
    """
    return {
        "dedup_identity": raw.url,
        "provider": provider,
        "exa_id": raw.id,
        "url": raw.url,
        "title": raw.title,
        "author": raw.author,
        "published_date": raw.published_date,
        "image": raw.image,
        "user_location": user_location,
        "profile_location": extract_profile_field(raw.text, "Location"),
        "position": extract_profile_field(raw.text, "Position"),
        "raw_payload": raw.model_dump(),
    }


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


def research_domain(research: ResearchService, embedding: EmbeddingService, settings: Settings) -> DomainDescriptor:
    """Research keeps its report on the unit; there are no result records."""

    async def fetch(params: ResearchParams) -> FetchOutcome:
        if params.type == "completion":
            outcome = await research.completion(params)
        else:
            outcome = await research.structured(params)

        text = build_research_text(outcome.report)
        vector = await embedding.embed(text)
        report = outcome.report if isinstance(outcome.report, str) else outcome.report.model_dump()
        return FetchOutcome(
            provider=research.provider_name,
            cost_dollars=outcome.cost_dollars,
            response_time_ms=outcome.response_time_ms,
            total_found=len(RESEARCH_QUESTIONS) if params.type == "structured" else 1,
            payload={"report": report, "model": outcome.model},
            extra_fields={
                "embeddings": {"combined": vector},
                "embedding_text": prepare_text_for_embedding(text),
                "model": outcome.model,
                "response_time_ms": round(outcome.response_time_ms),
                "cost_dollars": outcome.cost_dollars,
            },
        )

    return DomainDescriptor(
        name=RESEARCH,
        unit_collection=RESEARCH_REPORTS,
        dedup_key_fields=("company", "position", "location", "type"),
        staleness=timedelta(hours=settings.research_staleness_hours),
        pending_timeout=timedelta(minutes=settings.pending_timeout_minutes),
        fetch=fetch,
    )


def profile_search_domain(provider: IProfileSearchProvider, settings: Settings) -> DomainDescriptor:
    async def fetch(params: ProfileSearchParams) -> FetchOutcome:
        started = time.monotonic()
        result = await provider.search(params.job_title, params.user_location, params.num_results)
        elapsed_ms = (time.monotonic() - started) * 1000.0
        name = provider.get_provider_name()
        return FetchOutcome(
            candidates=[build_profile_record(p, params.user_location, name) for p in result.profiles],
            provider=name,
            cost_dollars=result.cost_dollars,
            response_time_ms=elapsed_ms,
        )

    return DomainDescriptor(
        name=PROFILE_SEARCH,
        unit_collection=PROFILE_SEARCHES,
        record_collection=PROFILES,
        dedup_key_fields=("job_title", "user_location", "num_results"),
        record_identity_fields=PROFILE_RECORD_IDENTITY,
        staleness=timedelta(hours=settings.profile_search_staleness_hours),
        pending_timeout=timedelta(minutes=settings.pending_timeout_minutes),
        fetch=fetch,
    )


def job_search_domain(gateway: JobSearchGateway, settings: Settings) -> DomainDescriptor:
    async def fetch(params: JobSearchParams) -> FetchOutcome:
        result = await gateway.fetch(params)
        return FetchOutcome(
            candidates=[build_job_record(job, params.country_code) for job in result.candidates],
            provider=result.provider,
            cost_dollars=result.cost_dollars,
            response_time_ms=result.response_time_ms,
            payload={"location_used": result.location_used, "country_code": params.country_code},
        )

    return DomainDescriptor(
        name=JOB_SEARCH,
        unit_collection=JOB_SEARCHES,
        record_collection=JOBS,
        dedup_key_fields=("query", "location", "country_code", "num_results"),
        record_identity_fields=JOB_RECORD_IDENTITY,
        staleness=timedelta(hours=settings.job_search_staleness_hours),
        pending_timeout=timedelta(minutes=settings.pending_timeout_minutes),
        fetch=fetch,
    )
