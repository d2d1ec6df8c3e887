"""Shared pytest fixtures for the career-intel test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from careerintel.config.settings import Settings
from careerintel.interfaces.embedding_provider import IEmbeddingProvider
from careerintel.interfaces.llm_provider import ILLMProvider
from careerintel.models.job import RawJob
from careerintel.models.profile import RawProfile
from careerintel.pipeline.task_runner import TaskRunner
from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.services.embedding_service import EmbeddingService
from careerintel.utils.clock import ManualClock

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

# Each keyword is one vector dimension; the trailing constant keeps every
# vector non-zero so cosine similarity is always defined.
EMBEDDING_KEYWORDS = ("python", "sales", "design", "finance")


def keyword_vector(text: str) -> list[float]:
    lowered = text.lower()
    return [float(lowered.count(word)) for word in EMBEDDING_KEYWORDS] + [0.1]


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic keyword-count embeddings; records every request."""

    def __init__(self) -> None:
        self.requests: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.requests.append(list(texts))
        return [keyword_vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return len(EMBEDDING_KEYWORDS) + 1

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Payload factories
# ---------------------------------------------------------------------------


def structured_job_payload(**overrides: Any) -> dict[str, Any]:
    """An LLM extraction result that validates as ``StructuredJob``."""
    payload: dict[str, Any] = {
        "title": "Senior Python Developer",
        "company": "Acme Ltd",
        "location": "London, UK",
        "description": "Build Python services for the payments platform.",
        "job_type": "Full-time",
        "salary_range": "£70,000 - £85,000",
        "experience_level": "Senior",
        "requirements": {
            "essential": ["5 years Python"],
            "preferred": ["Kubernetes"],
            "skills": ["Python", "SQL"],
            "experience": "5+ years",
            "education": None,
        },
        "benefits": ["Pension", "Remote Fridays"],
        "job_analysis": {
            "summary": "Backend role on the payments team.",
            "key_responsibilities": ["Design APIs", "Review code"],
            "ideal_candidate": "An experienced Python engineer.",
            "career_progression": "Lead engineer",
            "company_size": "Medium",
            "industry": "Fintech",
            "work_arrangement": "Hybrid",
        },
        "application_details": {
            "apply_options": [{"platform": "LinkedIn", "url": "https://linkedin.com/jobs/1"}],
            "posted_date": "3 days ago",
            "application_deadline": None,
        },
    }
    payload.update(overrides)
    return payload


def structured_profile_payload(**overrides: Any) -> dict[str, Any]:
    """An LLM extraction result that validates as ``StructuredProfile``."""
    payload: dict[str, Any] = {
        "name": "Jane Doe",
        "position": "Head of Design",
        "company": "Globex",
        "location": "Manchester, UK",
        "connections": "500+",
        "bio": "Design leader.",
        "profile_summary": {
            "overview": "Design leader with a product focus.",
            "key_strengths": ["Design systems"],
            "career_highlights": [],
            "industry_expertise": ["SaaS"],
            "years_of_experience": 12,
            "seniority_level": "Lead",
            "specialisations": [],
        },
        "current_job": {"title": "Head of Design", "company": "Globex"},
        "experience": [{"title": "Designer", "company": "Initech"}],
        "education": [{"institution": "University of Leeds", "degree": "BA"}],
        "skills": ["Figma", "Design"],
    }
    payload.update(overrides)
    return payload


def raw_job(job_id: str = "job-1", provider: str = "serpapi", **overrides: Any) -> RawJob:
    fields: dict[str, Any] = {
        "id": job_id,
        "title": "Python Developer",
        "company_name": "Acme Ltd",
        "location": "London",
        "description": "Python work",
        "share_link": f"https://jobs.example.com/{job_id}",
        "provider": provider,
    }
    fields.update(overrides)
    return RawJob(**fields)


def raw_profile(profile_id: str = "p-1", **overrides: Any) -> RawProfile:
    fields: dict[str, Any] = {
        "id": profile_id,
        "url": f"https://linkedin.com/in/{profile_id}",
        "title": "Jane Doe - Head of Design",
        "author": "Jane Doe",
        "text": "Jane Doe\nPosition: Head of Design\nLocation: Manchester, UK\n",
    }
    fields.update(overrides)
    return RawProfile(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture
def task_runner() -> TaskRunner:
    return TaskRunner()


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def embedding_service(embedding_provider: FakeEmbeddingProvider) -> EmbeddingService:
    return EmbeddingService(embedding_provider)


@pytest.fixture
def mock_llm() -> MagicMock:
    """ILLMProvider mock whose extraction returns a valid job by default."""
    llm = MagicMock(spec=ILLMProvider)
    llm.extract_structured = AsyncMock(return_value=structured_job_payload())
    llm.complete = AsyncMock(return_value="text")
    llm.get_provider_name.return_value = "mock-llm"
    llm.is_available.return_value = True
    return llm


@pytest.fixture
def settings() -> Settings:
    """Settings with every key empty and no .env lookup."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        exa_api_key="",
        serpapi_api_key="",
        scrapingdog_api_key="",
        store_backend="memory",
        app_env="test",
    )


@pytest.fixture
def job_payload() -> Callable[..., dict[str, Any]]:
    return structured_job_payload


@pytest.fixture
def profile_payload() -> Callable[..., dict[str, Any]]:
    return structured_profile_payload


@pytest.fixture
def make_raw_job() -> Callable[..., RawJob]:
    return raw_job


@pytest.fixture
def make_raw_profile() -> Callable[..., RawProfile]:
    return raw_profile
