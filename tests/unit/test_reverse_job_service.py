"""Unit tests for reverse job lookup by posting URL."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from careerintel.config.settings import Settings
from careerintel.interfaces.record_store import JOB_SEARCHES, JOBS
from careerintel.interfaces.scraper import IPageScraper
from careerintel.pipeline.domains import build_job_record, job_search_domain
from careerintel.pipeline.lifecycle import LifecycleManager
from careerintel.pipeline.task_runner import TaskRunner
from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.services.embedding_service import EmbeddingService
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.services.job_search_gateway import JobSearchGateway
from careerintel.services.reverse_job_service import ReverseJobService, validate_reverse_url
from careerintel.utils.clock import ManualClock
from careerintel.utils.errors import LLMError, ProviderError, ValidationError

from conftest import raw_job, structured_job_payload

URL = "https://careers.acme.com/jobs/123"


@pytest.fixture
def scraper() -> MagicMock:
    mock = MagicMock(spec=IPageScraper)
    mock.scrape = AsyncMock(return_value="# Senior Python Developer\nAcme Ltd, London")
    mock.get_provider_name.return_value = "scrapingdog"
    return mock


@pytest.fixture
def job_lifecycle(
    store: InMemoryRecordStore, task_runner: TaskRunner, clock: ManualClock, settings: Settings
) -> LifecycleManager:
    return LifecycleManager(job_search_domain(MagicMock(spec=JobSearchGateway), settings), store, task_runner, clock=clock)


@pytest.fixture
def service(
    job_lifecycle: LifecycleManager,
    scraper: MagicMock,
    mock_llm: MagicMock,
    embedding_service: EmbeddingService,
    clock: ManualClock,
) -> ReverseJobService:
    return ReverseJobService(
        job_lifecycle=job_lifecycle,
        scraper=scraper,
        enrichment=EnrichmentService(mock_llm, clock=clock),
        embedding=embedding_service,
        clock=clock,
    )


class TestValidateReverseUrl:
    def test_strips_whitespace(self) -> None:
        assert validate_reverse_url(f"  {URL} ") == URL

    @pytest.mark.parametrize("url", ["", None, "careers.acme.com/1", "ftp://acme.com/x", "https://localhost"])
    def test_rejects_bad_urls(self, url: object) -> None:
        with pytest.raises(ValidationError):
            validate_reverse_url(url)


class TestLookup:
    @pytest.mark.asyncio
    async def test_new_url_is_scraped_enriched_and_stored_processed(
        self, service: ReverseJobService, store: InMemoryRecordStore, scraper: MagicMock
    ) -> None:
        result = await service.lookup(URL)

        assert result.is_existing is False
        assert result.job.title == "Senior Python Developer"
        assert result.job.provider == "reverse"
        scraper.scrape.assert_awaited_once_with(URL)

        record = await store.get(JOBS, result.job_id)
        assert record["processing_state"] == "processed"
        assert record["provider"] == "reverse"
        assert record["country_code"] == "gb"
        assert record["share_link"] == URL
        assert set(record["embeddings"]) == {"title", "description", "combined"}

        unit = await store.get(JOB_SEARCHES, result.search_id)
        assert unit["status"] == "complete"
        assert unit["query"] == f"Reverse job search: {URL}"
        assert unit["location"] == "Reverse - London, UK"
        assert unit["data"]["provider"] == "reverse"

    @pytest.mark.asyncio
    async def test_known_url_is_returned_without_scraping(
        self, service: ReverseJobService, scraper: MagicMock
    ) -> None:
        first = await service.lookup(URL)
        second = await service.lookup(URL)

        assert second.is_existing is True
        assert second.job_id == first.job_id
        assert second.search_id == first.search_id
        assert second.job.title == "Senior Python Developer"
        scraper.scrape.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unenriched_listing_gets_placeholder(
        self, service: ReverseJobService, store: InMemoryRecordStore, scraper: MagicMock
    ) -> None:
        record = build_job_record(raw_job("j-1", share_link=URL, title="Barista"), "gb")
        record["search_id"] = "unit-1"
        await store.create(JOBS, record)

        result = await service.lookup(URL)

        assert result.is_existing is True
        assert result.job.title == "Barista"
        assert result.job.job_analysis.summary == "Previously processed job"
        assert result.job.source_url == URL
        scraper.scrape.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enrichment_failure_raises_provider_error(
        self, service: ReverseJobService, store: InMemoryRecordStore, mock_llm: MagicMock
    ) -> None:
        mock_llm.extract_structured = AsyncMock(side_effect=LLMError(message="quota"))

        with pytest.raises(ProviderError, match="Reverse job extraction failed"):
            await service.lookup(URL)

        assert await store.query_by_filter(JOB_SEARCHES, lambda doc: True) == []

    @pytest.mark.asyncio
    async def test_unknown_location_country(
        self, service: ReverseJobService, store: InMemoryRecordStore, mock_llm: MagicMock
    ) -> None:
        mock_llm.extract_structured = AsyncMock(return_value=structured_job_payload(location="Remote"))

        result = await service.lookup(URL)

        assert (await store.get(JOBS, result.job_id))["country_code"] == "unknown"
