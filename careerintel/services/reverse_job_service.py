"""Reverse job lookup: turn a single posting URL into a stored, processed job.

    lookup(url)
      │
      ├── job with this share_link exists? ──▶ return it (is_existing)
      │
      ▼
    scrape page ─▶ enrich as reverse_job ─▶ infer country from location
      │
      ▼
    pending job-search unit ("Reverse job search: <url>")
      │
      ▼
    embed + store job as processed ─▶ complete unit (provider "reverse")

Unlike regular searches everything runs inline, because the caller wants
the structured job in the response.  A failure after the unit exists
marks it failed before the error is re-raised.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any

from careerintel.interfaces.record_store import JOBS, Document
from careerintel.interfaces.scraper import IPageScraper
from careerintel.models.job import (
    ApplicationDetails,
    ApplyOption,
    JobAnalysis,
    JobSearchParams,
    RawJob,
    StructuredJob,
)
from careerintel.models.lifecycle import ProcessingState
from careerintel.pipeline.domains import build_job_record, promoted_job_fields
from careerintel.pipeline.lifecycle import LifecycleManager
from careerintel.services.embedding_service import (
    EmbeddingService,
    build_job_views,
    prepare_text_for_embedding,
)
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.utils.clock import Clock, iso_from_ms, now_ms
from careerintel.utils.errors import CareerIntelError, ProviderError, ValidationError
from careerintel.utils.logging import get_logger
from careerintel.utils.text import infer_country_code

REVERSE_PROVIDER = "reverse"


@dataclass(frozen=True)
class ReverseLookupResult:
    job: StructuredJob
    job_id: str
    is_existing: bool
    search_id: str | None
    response_time_ms: float


def validate_reverse_url(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(message="url is required and must be a non-empty string")
    cleaned = url.strip()
    if not cleaned.startswith(("http://", "https://")) or "." not in cleaned.split("://", 1)[1]:
        raise ValidationError(message="Invalid URL format")
    return cleaned


def placeholder_job(record: Document, url: str) -> StructuredJob:
    """Minimal structured job for a stored record that has no enrichment yet."""
    apply_options = [
        ApplyOption(platform=opt.get("title") or opt.get("platform") or "", url=opt.get("link") or opt.get("url") or "")
        for opt in record.get("apply_options") or []
    ]
    return StructuredJob(
        title=record.get("title") or "",
        company=record.get("company_name") or "",
        location=record.get("location") or "",
        description=record.get("description") or "",
        job_type=record.get("job_type"),
        salary_range=record.get("salary_range"),
        experience_level=record.get("experience_level"),
        job_analysis=JobAnalysis(
            summary="Previously processed job",
            ideal_candidate="Previously processed",
            industry=record.get("industry"),
            work_arrangement=record.get("work_arrangement") or "Unknown",
        ),
        application_details=ApplicationDetails(apply_options=apply_options),
        source_url=url,
        provider=REVERSE_PROVIDER,
        last_updated=iso_from_ms(record["updated_at"]),
    )


class ReverseJobService:
    """Scrapes, enriches and stores one job posting by URL.

    Parameters
    ----------
    job_lifecycle:
        Lifecycle manager of the job search domain; owns the unit and the
        job records.
    scraper:
        Page scraper returning markdown.
    enrichment:
        Runs the ``reverse_job`` extraction.
    embedding:
        Embeds the title/description/combined views.
    clock:
        Source of record timestamps and generated ids.
    """

    def __init__(
        self,
        job_lifecycle: LifecycleManager,
        scraper: IPageScraper,
        enrichment: EnrichmentService,
        embedding: EmbeddingService,
        clock: Clock = now_ms,
    ) -> None:
        self._lifecycle = job_lifecycle
        self._store = job_lifecycle.store
        self._scraper = scraper
        self._enrichment = enrichment
        self._embedding = embedding
        self._clock = clock
        self._logger = get_logger(__name__)

    async def lookup(self, url: str) -> ReverseLookupResult:
        """Return the structured job for *url*, processing it if unseen.

        Raises
        ------
        ValidationError
            If *url* is not an http(s) URL.
        ProviderError
            If scraping, enrichment or storage fails.
        """
        url = validate_reverse_url(url)
        started = time.monotonic()

        # Any provider's record for this posting counts, enriched or not.
        existing = await self._store.query_by_index(JOBS, ("share_link",), (url,), limit=1)
        if existing:
            record = existing[0]
            self._logger.info("reverse_job_exists", url=url, job_id=record["id"])
            enriched = record.get("enriched_payload")
            job = StructuredJob.model_validate(enriched) if enriched else placeholder_job(record, url)
            return ReverseLookupResult(
                job=job,
                job_id=record["id"],
                is_existing=True,
                search_id=record.get("search_id"),
                response_time_ms=(time.monotonic() - started) * 1000.0,
            )

        scraped = await self._scraper.scrape(url)
        try:
            job = await self._enrichment.enrich("reverse_job", {"url": url, "scraped_content": scraped})
        except CareerIntelError as exc:
            raise ProviderError(message=f"Reverse job extraction failed: {exc.message}", provider_name=REVERSE_PROVIDER) from exc
        country_code = infer_country_code(job.location)
        self._logger.info("reverse_job_country_inferred", location=job.location, country_code=country_code)

        params = JobSearchParams(
            query=f"Reverse job search: {url}",
            location=f"Reverse - {job.location}",
            country_code=country_code,
            num_results=1,
        )
        search_id = await self._lifecycle.create_pending(params)

        try:
            job_id = await self._store_processed(job, url, scraped, country_code, search_id)
            elapsed_ms = (time.monotonic() - started) * 1000.0
            await self._lifecycle.complete(
                search_id,
                {
                    "total_found": 1,
                    "stored": 1,
                    "new_records": 1,
                    "provider": REVERSE_PROVIDER,
                    "response_time_ms": round(elapsed_ms),
                    "cost_dollars": 0.0,
                    "country_code": country_code,
                },
            )
        except CareerIntelError as exc:
            await self._lifecycle.fail(search_id, exc.message)
            raise ProviderError(message=f"Reverse job search failed: {exc.message}", provider_name=REVERSE_PROVIDER) from exc

        self._logger.info("reverse_job_stored", url=url, job_id=job_id, search_id=search_id)
        return ReverseLookupResult(
            job=job,
            job_id=job_id,
            is_existing=False,
            search_id=search_id,
            response_time_ms=elapsed_ms,
        )

    async def _store_processed(
        self, job: StructuredJob, url: str, scraped: str, country_code: str, search_id: str
    ) -> str:
        now = self._clock()
        raw = RawJob(
            id=f"{REVERSE_PROVIDER}-{int(now)}-{uuid.uuid4().hex[:9]}",
            title=job.title,
            company_name=job.company,
            location=job.location,
            description=scraped,
            via=job.company,
            share_link=url,
            apply_options=[
                {"title": opt.platform, "link": opt.url} for opt in job.application_details.apply_options
            ],
            provider=REVERSE_PROVIDER,
            raw_data={"url": url, "scraped_content": scraped, "scraped_at": iso_from_ms(now)},
        )

        views = build_job_views(job)
        vectors = await self._embedding.embed_views(views)

        record = build_job_record(raw, country_code)
        record.update(promoted_job_fields(job))
        record.update(
            {
                "enriched_payload": job.model_dump(),
                "processing_state": ProcessingState.PROCESSED.value,
                "processing_error": None,
                "embeddings": vectors,
                "embedding_text": prepare_text_for_embedding(views["combined"]),
                "processed_at": now,
            }
        )
        result = await self._lifecycle.save_record_if_absent(record, search_id)
        return result.id
