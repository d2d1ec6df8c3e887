"""Embedding orchestration: text preparation, named views, and similarity.

A record can carry several vectors, each an independent embedding of its own
text view (``title``, ``description``, ``combined``).  Views are never
slices of one vector.  Every text is normalized by
:func:`prepare_text_for_embedding` before it reaches the provider, so
identical input always produces an identical request.
"""

from __future__ import annotations

import numpy as np

from careerintel.interfaces.embedding_provider import IEmbeddingProvider
from careerintel.models.job import StructuredJob
from careerintel.models.profile import StructuredProfile
from careerintel.models.research import REPORT_SECTION_LABELS, CompanyResearchReport
from careerintel.utils.logging import get_logger
from careerintel.utils.text import collapse_whitespace

MAX_EMBEDDING_CHARS = 8000
TRUNCATION_MARKER = "..."


def prepare_text_for_embedding(text: str, max_length: int = MAX_EMBEDDING_CHARS) -> str:
    """Collapse whitespace, strip, and truncate to *max_length* characters.

    Truncated text gets ``"..."`` appended after the cut.
    """
    cleaned = collapse_whitespace(text or "")
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + TRUNCATION_MARKER
    return cleaned


def cosine_similarity(a: list[float] | np.ndarray, b: list[float] | np.ndarray) -> float:
    """Cosine similarity of two vectors, clamped into ``[-1, 1]``.

    Returns ``0.0`` instead of raising when the lengths differ, either
    vector is empty, or either vector is all zeros.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or vb.ndim != 1 or va.size == 0 or va.shape != vb.shape:
        return 0.0
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


# ---------------------------------------------------------------------------
# Text views
# ---------------------------------------------------------------------------


def build_job_views(job: StructuredJob) -> dict[str, str]:
    """Return the ``title``, ``description`` and ``combined`` views of a job."""
    title_text = f"{job.title} at {job.company} in {job.location}"

    parts: list[str] = []
    if job.job_type:
        parts.append(f"Job Type: {job.job_type}")
    if job.experience_level:
        parts.append(f"Experience Level: {job.experience_level}")
    parts.append(f"Description: {job.description}")
    if job.requirements.essential:
        parts.append(f"Requirements: {', '.join(job.requirements.essential)}")
    if job.requirements.skills:
        parts.append(f"Skills: {', '.join(job.requirements.skills)}")
    if job.benefits:
        parts.append(f"Benefits: {', '.join(job.benefits)}")
    if job.job_analysis.industry:
        parts.append(f"Industry: {job.job_analysis.industry}")
    parts.append(f"Work Arrangement: {job.job_analysis.work_arrangement}")
    if job.job_analysis.key_responsibilities:
        parts.append(f"Key Responsibilities: {', '.join(job.job_analysis.key_responsibilities)}")
    description_text = " ".join(parts)

    return {
        "title": title_text,
        "description": description_text,
        "combined": f"{title_text} {description_text}",
    }


def build_profile_text(profile: StructuredProfile) -> str:
    """Flatten a structured profile into one searchable text."""
    parts = [
        f"Name: {profile.name}",
        f"Position: {profile.position}",
        f"Company: {profile.company}",
        f"Location: {profile.location}",
    ]
    if profile.bio:
        parts.append(f"Bio: {profile.bio}")
    parts.append(f"Current Job: {profile.current_job.title} at {profile.current_job.company}")
    if profile.experience:
        parts.append(
            "Experience: " + ", ".join(f"{exp.title} at {exp.company}" for exp in profile.experience)
        )
    if profile.education:
        parts.append(
            "Education: "
            + ", ".join(f"{edu.degree or 'Study'} from {edu.institution}" for edu in profile.education)
        )
    if profile.skills:
        parts.append(f"Skills: {', '.join(profile.skills)}")
    if profile.certifications:
        parts.append(f"Certifications: {', '.join(cert.name for cert in profile.certifications)}")
    return "\n".join(parts)


def build_research_text(report: CompanyResearchReport | str) -> str:
    """Flatten a research report (structured or free text) into one text."""
    if isinstance(report, str):
        return report
    sections = report.model_dump()
    return "\n\n".join(
        f"{label}: {sections[key]}" for key, label in REPORT_SECTION_LABELS.items() if sections.get(key)
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class EmbeddingService:
    """Prepares text and delegates vector generation to an embedding provider."""

    def __init__(self, provider: IEmbeddingProvider) -> None:
        self._provider = provider
        self._logger = get_logger(__name__)

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    async def embed(self, text: str) -> list[float]:
        return await self._provider.embed_single(prepare_text_for_embedding(text))

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one provider call, preserving order."""
        if not texts:
            return []
        return await self._provider.embed([prepare_text_for_embedding(t) for t in texts])

    async def embed_views(self, views: dict[str, str]) -> dict[str, list[float]]:
        """Embed each named view independently.

        Parameters
        ----------
        views:
            Mapping of view name (``title``, ``description``, ``combined``)
            to its text.

        Returns
        -------
        dict[str, list[float]]
            One vector per view, under the same names.
        """
        names = list(views)
        vectors = await self.embed_many([views[name] for name in names])
        self._logger.debug("views_embedded", views=names, provider=self.provider_name)
        return dict(zip(names, vectors, strict=True))
