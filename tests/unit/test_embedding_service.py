"""Unit tests for embedding text preparation, views and similarity."""

from __future__ import annotations

import numpy as np
import pytest

from careerintel.models.job import StructuredJob
from careerintel.models.profile import StructuredProfile
from careerintel.models.research import CompanyResearchReport
from careerintel.services.embedding_service import (
    EmbeddingService,
    build_job_views,
    build_profile_text,
    build_research_text,
    cosine_similarity,
    prepare_text_for_embedding,
)

from conftest import FakeEmbeddingProvider, structured_job_payload, structured_profile_payload


class TestPrepareText:
    def test_collapses_whitespace(self) -> None:
        assert prepare_text_for_embedding("  Senior\n\n Python\tDeveloper  ") == "Senior Python Developer"

    def test_truncates_with_marker(self) -> None:
        text = "a" * 8001
        prepared = prepare_text_for_embedding(text)
        assert len(prepared) == 8003
        assert prepared.endswith("...")

    def test_exact_limit_is_untouched(self) -> None:
        assert prepare_text_for_embedding("b" * 8000) == "b" * 8000

    def test_none_becomes_empty(self) -> None:
        assert prepare_text_for_embedding(None) == ""  # type: ignore[arg-type]


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity(np.array([1.0, 1.0]), np.array([-1.0, -1.0])) == pytest.approx(-1.0)

    @pytest.mark.parametrize(
        ("a", "b"),
        [([1.0, 2.0], [1.0]), ([], []), ([0.0, 0.0], [1.0, 1.0])],
    )
    def test_degenerate_inputs_score_zero(self, a: list[float], b: list[float]) -> None:
        assert cosine_similarity(a, b) == 0.0


class TestViews:
    def test_job_views(self) -> None:
        job = StructuredJob.model_validate(structured_job_payload())

        views = build_job_views(job)

        assert views["title"] == "Senior Python Developer at Acme Ltd in London, UK"
        assert "Experience Level: Senior" in views["description"]
        assert "Industry: Fintech" in views["description"]
        assert views["combined"].startswith(views["title"])

    def test_profile_text(self) -> None:
        profile = StructuredProfile.model_validate(structured_profile_payload())

        text = build_profile_text(profile)

        assert "Position: Head of Design" in text
        assert "Experience: Designer at Initech" in text
        assert "Education: BA from University of Leeds" in text

    def test_research_text_skips_empty_sections(self) -> None:
        report = CompanyResearchReport(company_overview="Big.", financials="Profitable.")

        text = build_research_text(report)

        assert text == "Company Overview: Big.\n\nFinancials: Profitable."
        assert build_research_text("free text") == "free text"


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_embed_prepares_text(self, embedding_service: EmbeddingService, embedding_provider: FakeEmbeddingProvider) -> None:
        await embedding_service.embed("  python\n design ")

        assert embedding_provider.requests == [["python design"]]

    @pytest.mark.asyncio
    async def test_embed_views_one_batch(self, embedding_service: EmbeddingService, embedding_provider: FakeEmbeddingProvider) -> None:
        vectors = await embedding_service.embed_views({"title": "python", "description": "sales", "combined": "python sales"})

        assert list(vectors) == ["title", "description", "combined"]
        assert vectors["title"][0] == 1.0
        assert vectors["description"][1] == 1.0
        assert len(embedding_provider.requests) == 1

    @pytest.mark.asyncio
    async def test_embed_many_empty(self, embedding_service: EmbeddingService, embedding_provider: FakeEmbeddingProvider) -> None:
        assert await embedding_service.embed_many([]) == []
        assert embedding_provider.requests == []

    def test_provider_name(self, embedding_service: EmbeddingService) -> None:
        assert embedding_service.provider_name == "fake_embedding"
