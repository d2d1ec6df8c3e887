"""career-intel FastAPI application: dependency assembly and app factory.

# ─── STARTUP SEQUENCE ─────────────────────────────────────────────────
#
#   Settings()  +  load_config()          env / .env / config.yaml
#        │
#        ▼
#   build_all()                            every provider, service,
#        │                                 lifecycle manager, scheduler
#        ▼
#   _lifespan()                            setattr(app.state, ...),
#        │                                 store.initialize(),
#        │                                 periodic runner start
#        ▼
#   routes.py resolves dependencies from app.state
#
# Shutdown runs the same list backwards: periodic runner, background
# search tasks, store, then the shared httpx client.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from careerintel.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from careerintel.api.routes import router as api_router
from careerintel.config.loader import load_config
from careerintel.config.settings import Settings
from careerintel.interfaces.record_store import IRecordStore, JOBS, PROFILES
from careerintel.pipeline.domains import (
    job_search_domain,
    profile_search_domain,
    research_domain,
)
from careerintel.pipeline.lifecycle import LifecycleManager
from careerintel.pipeline.periodic import PeriodicRunner, build_periodic_jobs
from careerintel.pipeline.scheduler import (
    EnrichmentScheduler,
    JobRecordProcessor,
    ProfileRecordProcessor,
)
from careerintel.pipeline.task_runner import TaskRunner
from careerintel.providers.cache.memory_cache import MemoryCacheProvider
from careerintel.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from careerintel.providers.exa.client import ExaClient
from careerintel.providers.exa.profile_search_provider import ExaProfileSearchProvider
from careerintel.providers.exa.research_provider import ExaResearchProvider
from careerintel.providers.geo.serpapi_locations_provider import SerpApiLocationsProvider
from careerintel.providers.jobs.scrapingdog_jobs_provider import ScrapingDogJobsProvider
from careerintel.providers.jobs.serpapi_jobs_provider import SerpApiJobsProvider
from careerintel.providers.llm.openai_provider import OpenAILLMProvider
from careerintel.providers.scraper.scrapingdog_scraper import ScrapingDogScraper
from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.providers.store.sqlite_store import SQLiteRecordStore
from careerintel.services.embedding_service import EmbeddingService
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.services.job_search_gateway import JobSearchGateway
from careerintel.services.location_matcher import LocationFilter, LocationMatcher
from careerintel.services.research_service import ResearchService
from careerintel.services.reverse_job_service import ReverseJobService
from careerintel.services.semantic_search_service import SemanticSearchService
from careerintel.utils.clock import now_ms
from careerintel.utils.errors import ConfigurationError
from careerintel.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

VERSION = str(config.get("app", {}).get("version", "0.1.0"))


# ---------------------------------------------------------------------------
# Store selection
# ---------------------------------------------------------------------------


def _build_store(app_settings: Settings) -> IRecordStore:
    """Pick the record store adapter named by ``STORE_BACKEND``."""
    backend = app_settings.store_backend.lower()
    if backend == "sqlite":
        return SQLiteRecordStore(db_path=app_settings.store_db_path)
    if backend == "memory":
        return InMemoryRecordStore()
    raise ConfigurationError(message=f"Unknown STORE_BACKEND {app_settings.store_backend!r} (expected sqlite or memory)")


def _build_location_matcher(
    http_client: httpx.AsyncClient,
    app_settings: Settings,
    app_config: dict[str, Any],
) -> LocationMatcher:
    matching = app_config.get("location_matching", {})
    location_filter = LocationFilter(
        target_types=frozenset(t.lower() for t in matching.get("target_types", ["City", "Region"])),
        min_reach=int(matching.get("min_reach", 10_000)),
    )
    return LocationMatcher(
        gazetteer=SerpApiLocationsProvider(http_client=http_client),
        cache=MemoryCacheProvider(ttl=app_settings.location_cache_ttl_seconds),
        search_limit=int(matching.get("limit", 15)),
        location_filter=location_filter,
        cache_ttl=app_settings.location_cache_ttl_seconds,
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The CLI uses the same assembly for one-shot scheduler runs.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)
    store = _build_store(app_settings)
    task_runner = TaskRunner()

    # -- Providers --
    llm = OpenAILLMProvider(settings=app_settings)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    exa = ExaClient(
        http_client=http_client,
        api_key=app_settings.exa_api_key,
        base_url=app_settings.exa_base_url,
    )
    job_providers = [
        SerpApiJobsProvider(http_client=http_client, api_key=app_settings.serpapi_api_key),
        ScrapingDogJobsProvider(http_client=http_client, api_key=app_settings.scrapingdog_api_key),
    ]
    scraper = ScrapingDogScraper(http_client=http_client, api_key=app_settings.scrapingdog_api_key)

    # -- Services --
    location_matcher = _build_location_matcher(http_client, app_settings, app_config)
    gateway = JobSearchGateway(providers=job_providers, location_matcher=location_matcher)
    enrichment = EnrichmentService(llm=llm, timeout_seconds=app_settings.enrichment_timeout_seconds)
    embedding = EmbeddingService(provider=embedding_provider)
    research_service = ResearchService(provider=ExaResearchProvider(client=exa))
    semantic_search = SemanticSearchService(store=store, embedding=embedding)

    # -- Lifecycle managers --
    research_lifecycle = LifecycleManager(
        research_domain(research_service, embedding, app_settings), store, task_runner
    )
    profile_lifecycle = LifecycleManager(
        profile_search_domain(ExaProfileSearchProvider(client=exa), app_settings), store, task_runner
    )
    job_lifecycle = LifecycleManager(job_search_domain(gateway, app_settings), store, task_runner)

    # -- Schedulers --
    job_scheduler = EnrichmentScheduler(
        store,
        JOBS,
        JobRecordProcessor(enrichment, embedding),
        concurrency=app_settings.scheduler_concurrency,
    )
    profile_scheduler = EnrichmentScheduler(
        store,
        PROFILES,
        ProfileRecordProcessor(enrichment, embedding),
        concurrency=app_settings.scheduler_concurrency,
    )
    periodic_runner = PeriodicRunner(
        build_periodic_jobs(
            app_config["scheduler"]["jobs"],
            {JOBS: job_scheduler, PROFILES: profile_scheduler},
            app_settings.record_stale_after_days,
        ),
        enabled=app_settings.scheduler_enabled,
    )

    reverse_job_service = ReverseJobService(
        job_lifecycle=job_lifecycle,
        scraper=scraper,
        enrichment=enrichment,
        embedding=embedding,
    )

    return {
        "http_client": http_client,
        "store": store,
        "task_runner": task_runner,
        "clock": now_ms,
        "location_matcher": location_matcher,
        "research_service": research_service,
        "semantic_search": semantic_search,
        "research_lifecycle": research_lifecycle,
        "profile_lifecycle": profile_lifecycle,
        "job_lifecycle": job_lifecycle,
        "job_scheduler": job_scheduler,
        "profile_scheduler": profile_scheduler,
        "periodic_runner": periodic_runner,
        "reverse_job_service": reverse_job_service,
        "available_providers": app_settings.get_available_providers(),
        "record_stale_after_days": app_settings.record_stale_after_days,
        "version": VERSION,
        "app_config": app_config,
    }


async def close_all(components: dict[str, Any]) -> None:
    """Release everything :func:`build_all` opened, newest first."""
    await components["periodic_runner"].stop()
    await components["task_runner"].shutdown()
    await components["store"].close()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["store"].initialize()
    components["periodic_runner"].start()

    _logger.info(
        "app_startup",
        version=VERSION,
        environment=settings.app_env,
        store=components["store"].get_provider_name(),
        providers=components["available_providers"],
        scheduler_enabled=settings.scheduler_enabled,
    )

    yield

    await close_all(components)
    _logger.info("app_shutdown", message="Scheduler stopped, store and HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="career-intel API",
        version=VERSION,
        description=(
            "Company research, candidate profile search and job search with "
            "duplicate-free background fetching, LLM enrichment and semantic "
            "search over stored results."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "careerintel.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
