"""Integration tests for the FastAPI endpoints using TestClient.

The app is wired with the real lifecycle managers, schedulers and the
in-memory record store.  Only the external services (research engine,
job search gateway, page scraper, gazetteer and LLM) are mocked.  The
client is entered as a context manager so background fetches run on one
event loop, and ``_drain`` waits for them through the client's portal.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from careerintel.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from careerintel.api.routes import router as api_router
from careerintel.config.loader import DEFAULT_SCHEDULER_JOBS
from careerintel.config.settings import Settings
from careerintel.interfaces.gazetteer import GazetteerLocation, ILocationGazetteer
from careerintel.interfaces.profile_search_provider import IProfileSearchProvider, ProfileSearchResult
from careerintel.interfaces.record_store import JOBS, PROFILES
from careerintel.interfaces.research_provider import IResearchProvider
from careerintel.interfaces.scraper import IPageScraper
from careerintel.pipeline.domains import job_search_domain, profile_search_domain, research_domain
from careerintel.pipeline.lifecycle import LifecycleManager
from careerintel.pipeline.periodic import PeriodicRunner, build_periodic_jobs
from careerintel.pipeline.scheduler import EnrichmentScheduler, JobRecordProcessor, ProfileRecordProcessor
from careerintel.pipeline.task_runner import TaskRunner
from careerintel.providers.cache.memory_cache import MemoryCacheProvider
from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.services.embedding_service import EmbeddingService
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.services.job_search_gateway import JobSearchGateway, ProviderFetch
from careerintel.services.location_matcher import LocationMatcher
from careerintel.services.research_service import ResearchService
from careerintel.services.reverse_job_service import ReverseJobService
from careerintel.services.semantic_search_service import SemanticSearchService
from careerintel.utils.clock import ManualClock
from careerintel.utils.errors import ProviderError

from conftest import raw_job

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass
class Harness:
    client: TestClient
    store: InMemoryRecordStore
    task_runner: TaskRunner
    clock: ManualClock
    research_provider: MagicMock
    gateway: MagicMock
    scraper: MagicMock


def _drain(harness: Harness) -> None:
    harness.client.portal.call(harness.task_runner.drain)


def _gazetteer() -> MagicMock:
    gazetteer = MagicMock(spec=ILocationGazetteer)
    gazetteer.search = AsyncMock(
        return_value=[
            GazetteerLocation("1", "Manchester", "Manchester,England,United Kingdom", "GB", "City", 500_000),
            GazetteerLocation("2", "Manchester", "Manchester,New Hampshire,United States", "US", "City", 100_000),
        ]
    )
    gazetteer.get_provider_name.return_value = "fake-gazetteer"
    return gazetteer


def _create_test_app(
    store: InMemoryRecordStore,
    task_runner: TaskRunner,
    clock: ManualClock,
    settings: Settings,
    embedding: EmbeddingService,
    llm: MagicMock,
) -> tuple[FastAPI, MagicMock, MagicMock, MagicMock]:
    """Create a FastAPI app whose state mirrors what build_all() returns."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)

    research_provider = MagicMock(spec=IResearchProvider)
    research_provider.complete = AsyncMock(return_value="# Acme\nA python shop in Berlin.")
    research_provider.get_provider_name.return_value = "exa"

    profile_provider = MagicMock(spec=IProfileSearchProvider)
    profile_provider.search = AsyncMock(return_value=ProfileSearchResult(profiles=[], cost_dollars=0.0))
    profile_provider.get_provider_name.return_value = "exa"

    gateway = MagicMock(spec=JobSearchGateway)
    gateway.fetch = AsyncMock(
        return_value=ProviderFetch(
            candidates=[raw_job("j-1"), raw_job("j-2", title="Python Engineer")],
            provider="serpapi",
            cost_dollars=0.005,
            response_time_ms=120.0,
            location_used="London,England,United Kingdom",
        )
    )

    scraper = MagicMock(spec=IPageScraper)
    scraper.scrape = AsyncMock(return_value="# Senior Python Developer\nAcme Ltd, London")
    scraper.get_provider_name.return_value = "scrapingdog"

    research_service = ResearchService(provider=research_provider, clock=clock)
    enrichment = EnrichmentService(llm, clock=clock)
    job_lifecycle = LifecycleManager(job_search_domain(gateway, settings), store, task_runner, clock=clock)
    job_scheduler = EnrichmentScheduler(store, JOBS, JobRecordProcessor(enrichment, embedding), clock=clock)
    profile_scheduler = EnrichmentScheduler(
        store, PROFILES, ProfileRecordProcessor(enrichment, embedding), clock=clock
    )

    app.state.store = store
    app.state.task_runner = task_runner
    app.state.clock = clock
    app.state.research_service = research_service
    app.state.semantic_search = SemanticSearchService(store=store, embedding=embedding)
    app.state.research_lifecycle = LifecycleManager(
        research_domain(research_service, embedding, settings), store, task_runner, clock=clock
    )
    app.state.profile_lifecycle = LifecycleManager(
        profile_search_domain(profile_provider, settings), store, task_runner, clock=clock
    )
    app.state.job_lifecycle = job_lifecycle
    app.state.job_scheduler = job_scheduler
    app.state.profile_scheduler = profile_scheduler
    app.state.periodic_runner = PeriodicRunner(
        build_periodic_jobs(DEFAULT_SCHEDULER_JOBS, {JOBS: job_scheduler, PROFILES: profile_scheduler}, 90),
        enabled=False,
    )
    app.state.location_matcher = LocationMatcher(_gazetteer(), MemoryCacheProvider())
    app.state.reverse_job_service = ReverseJobService(
        job_lifecycle=job_lifecycle,
        scraper=scraper,
        enrichment=enrichment,
        embedding=embedding,
        clock=clock,
    )
    app.state.available_providers = ["exa", "serpapi"]
    app.state.record_stale_after_days = 90
    app.state.version = "0.1.0"

    return app, research_provider, gateway, scraper


@pytest.fixture
def harness(
    store: InMemoryRecordStore,
    task_runner: TaskRunner,
    clock: ManualClock,
    settings: Settings,
    embedding_service: EmbeddingService,
    mock_llm: MagicMock,
) -> Iterator[Harness]:
    app, research_provider, gateway, scraper = _create_test_app(
        store, task_runner, clock, settings, embedding_service, mock_llm
    )
    with TestClient(app) as client:
        yield Harness(client, store, task_runner, clock, research_provider, gateway, scraper)


# ---------------------------------------------------------------------------
# Research
# ---------------------------------------------------------------------------


class TestResearchEndpoints:
    """Tests for /api/v1/research*."""

    BODY = {"company": "Acme", "position": "Engineer", "location": "Berlin", "type": "completion"}

    def test_create_then_poll_then_reuse(self, harness: Harness) -> None:
        first = harness.client.post("/api/v1/research", json=self.BODY)

        assert first.status_code == 200
        assert first.json()["status"] == "pending"
        assert first.json()["is_existing"] is False

        _drain(harness)
        status = harness.client.get(f"/api/v1/research/status/{first.json()['id']}").json()
        assert status["status"] == "complete"
        assert status["domain"] == "research"
        assert status["data"]["model"] == "exa-research"
        assert status["data"]["report"].startswith("# Acme")
        assert status["parameters"]["company"] == "Acme"

        second = harness.client.post("/api/v1/research", json=self.BODY).json()
        assert second["id"] == first.json()["id"]
        assert second["is_existing"] is True
        assert second["status"] == "complete"
        harness.research_provider.complete.assert_awaited_once()

    def test_missing_company_is_400(self, harness: Harness) -> None:
        response = harness.client.post("/api/v1/research", json={**self.BODY, "company": "  "})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_unknown_status_is_404(self, harness: Harness) -> None:
        response = harness.client.get("/api/v1/research/status/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "RecordNotFoundError"

    def test_stream_emits_chunks_then_done(self, harness: Harness) -> None:
        async def chunks(prompt: str):
            yield "# Acme"
            yield " report"

        harness.research_provider.stream = chunks

        response = harness.client.get(
            "/api/v1/research/stream", params={"company": "Acme", "position": "Engineer", "location": "Berlin"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert 'data: {"chunk": "# Acme"}' in response.text
        assert response.text.rstrip().endswith("data: [DONE]")

    def test_stream_failure_is_an_error_event(self, harness: Harness) -> None:
        async def failing(prompt: str):
            yield "# Acme"
            raise ProviderError(message="Exa research stream failed: reset", provider_name="exa")

        harness.research_provider.stream = failing

        response = harness.client.get(
            "/api/v1/research/stream", params={"company": "Acme", "position": "Engineer", "location": "Berlin"}
        )

        assert '"error": "Exa research stream failed: reset"' in response.text
        assert "data: [DONE]" in response.text


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobEndpoints:
    """Tests for /api/v1/jobs*."""

    BODY = {"query": "python developer", "location": "London", "country_code": "gb"}

    def test_search_stores_records_and_status_lists_them(self, harness: Harness) -> None:
        created = harness.client.post("/api/v1/jobs/search", json=self.BODY).json()
        _drain(harness)

        status = harness.client.get(f"/api/v1/jobs/status/{created['id']}").json()

        assert status["status"] == "complete"
        assert status["data"]["total_found"] == 2
        assert status["data"]["new_records"] == 2
        assert status["data"]["location_used"] == "London,England,United Kingdom"
        assert {r["title"] for r in status["records"]} == {"Python Developer", "Python Engineer"}
        assert all("embeddings" not in r for r in status["records"])

        listed = harness.client.get("/api/v1/jobs", params={"search_id": created["id"]}).json()
        assert listed["total"] == 2
        assert listed["search_id"] == created["id"]

    def test_concurrent_duplicate_requests_share_one_unit(self, harness: Harness) -> None:
        first = harness.client.post("/api/v1/jobs/search", json=self.BODY).json()
        second = harness.client.post("/api/v1/jobs/search", json=self.BODY).json()
        _drain(harness)

        assert second["id"] == first["id"]
        assert second["is_existing"] is True
        harness.gateway.fetch.assert_awaited_once()

    def test_blank_query_is_400(self, harness: Harness) -> None:
        response = harness.client.post("/api/v1/jobs/search", json={**self.BODY, "query": ""})

        assert response.status_code == 400
        harness.gateway.fetch.assert_not_awaited()

    def test_process_unprocessed_then_semantic_search(self, harness: Harness) -> None:
        harness.client.post("/api/v1/jobs/search", json=self.BODY)
        _drain(harness)

        batch = harness.client.post("/api/v1/jobs/process-unprocessed", json={"batch_size": 10}).json()
        assert (batch["selected"], batch["processed"], batch["failed"]) == (2, 2, 0)

        again = harness.client.post("/api/v1/jobs/process-unprocessed").json()
        assert again["message"] == "jobs:process-unprocessed: nothing to do"

        found = harness.client.get("/api/v1/jobs", params={"search": "python"}).json()
        assert found["query"] == "python"
        assert found["total"] == 2
        assert all(0.0 < r["similarity"] <= 1.0 for r in found["results"])

    def test_reverse_lookup_then_reuse(self, harness: Harness) -> None:
        url = "https://careers.acme.com/jobs/123"

        first = harness.client.post("/api/v1/jobs/reverse", json={"url": url})
        second = harness.client.post("/api/v1/jobs/reverse", json={"url": url}).json()

        assert first.status_code == 200
        assert first.json()["is_existing"] is False
        assert first.json()["message"].startswith("Successfully scraped and processed job")
        assert second["is_existing"] is True
        assert second["job_id"] == first.json()["job_id"]
        harness.scraper.scrape.assert_awaited_once_with(url)

    def test_reverse_invalid_url_is_400(self, harness: Harness) -> None:
        assert harness.client.post("/api/v1/jobs/reverse", json={"url": "not a url"}).status_code == 400

    def test_reverse_scrape_failure_is_502(self, harness: Harness) -> None:
        harness.scraper.scrape = AsyncMock(
            side_effect=ProviderError(message="ScrapingDog returned status 500", provider_name="scrapingdog")
        )

        response = harness.client.post("/api/v1/jobs/reverse", json={"url": "https://careers.acme.com/jobs/9"})

        assert response.status_code == 502
        assert response.json() == {"error": "ProviderError", "detail": "ScrapingDog returned status 500"}


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfileEndpoints:
    """Tests for /api/v1/profiles*."""

    def _seed(self, harness: Harness) -> str:
        return harness.client.portal.call(
            harness.store.create,
            PROFILES,
            {"url": "https://linkedin.com/in/jane", "name": "Jane", "processing_state": "processed", "embeddings": {}},
        )

    def test_profile_search_with_no_results_completes(self, harness: Harness) -> None:
        created = harness.client.post(
            "/api/v1/profiles/search", json={"job_title": "Designer", "user_location": "GB"}
        ).json()
        _drain(harness)

        status = harness.client.get(f"/api/v1/profiles/status/{created['id']}").json()
        assert status["status"] == "complete"
        assert status["data"]["total_found"] == 0
        assert status["records"] == []

    def test_profile_search_bad_num_results_is_400(self, harness: Harness) -> None:
        response = harness.client.post(
            "/api/v1/profiles/search", json={"job_title": "Designer", "user_location": "GB", "num_results": 500}
        )
        assert response.status_code == 400

    def test_get_profile_reports_age(self, harness: Harness) -> None:
        profile_id = self._seed(harness)
        harness.clock.advance(timedelta(days=100))

        body = harness.client.get(f"/api/v1/profiles/{profile_id}").json()

        assert body["age_days"] == 100
        assert body["age_months"] == 3
        assert body["is_stale"] is True
        assert "embeddings" not in body["profile"]

    def test_refresh_marks_unprocessed(self, harness: Harness) -> None:
        profile_id = self._seed(harness)

        response = harness.client.post(f"/api/v1/profiles/{profile_id}/refresh")

        assert response.json()["processing_state"] == "unprocessed"
        stored = harness.client.portal.call(harness.store.get, PROFILES, profile_id)
        assert stored["processing_state"] == "unprocessed"

    def test_refresh_of_profile_mid_batch_is_409(self, harness: Harness) -> None:
        profile_id = self._seed(harness)
        harness.client.portal.call(
            harness.store.patch,
            PROFILES,
            profile_id,
            {"processing_state": "processing", "processing_started_at": harness.clock()},
        )

        response = harness.client.post(f"/api/v1/profiles/{profile_id}/refresh")

        assert response.status_code == 409
        assert response.json()["error"] == "RecordBusyError"
        stored = harness.client.portal.call(harness.store.get, PROFILES, profile_id)
        assert stored["processing_state"] == "processing"

    def test_unknown_profile_is_404(self, harness: Harness) -> None:
        assert harness.client.get("/api/v1/profiles/nope").status_code == 404
        assert harness.client.post("/api/v1/profiles/nope/refresh").status_code == 404

    def test_stale_stats(self, harness: Harness) -> None:
        self._seed(harness)
        harness.clock.advance(timedelta(days=100))
        self._seed(harness)

        body = harness.client.get("/api/v1/profiles/stale").json()

        assert body["total"] == 2
        assert body["stale_3_months"] == 1
        assert body["message"] == "Found 1 stale profiles (>3 months) out of 2 total"


# ---------------------------------------------------------------------------
# Locations and health
# ---------------------------------------------------------------------------


class TestLocationSuggest:
    def test_suggestions_are_country_filtered(self, harness: Harness) -> None:
        body = harness.client.get("/api/v1/locations/suggest", params={"q": "Manchester", "country_code": "gb"}).json()

        assert [s["canonical_name"] for s in body["suggestions"]] == ["Manchester,England,United Kingdom"]
        assert body["suggestions"][0]["match_type"] == "exact"
        assert body["suggestions"][0]["confidence"] == 1.0

    def test_query_is_required(self, harness: Harness) -> None:
        assert harness.client.get("/api/v1/locations/suggest").status_code == 422


class TestHealthEndpoint:
    def test_health(self, harness: Harness) -> None:
        body = harness.client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["store"] == "memory"
        assert body["providers"] == ["exa", "serpapi"]
        assert {job["name"] for job in body["scheduler"]} == set(DEFAULT_SCHEDULER_JOBS)
        assert all(job["running"] is False for job in body["scheduler"])
