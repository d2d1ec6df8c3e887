"""Professional-profile search models."""

from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from careerintel.utils.text import match_choice

SeniorityLevel = Literal["Entry", "Mid", "Senior", "Lead", "Executive", "C-Level"]

_SENIORITY_ALIASES = {
    "junior": "Entry",
    "graduate": "Entry",
    "intermediate": "Mid",
    "principal": "Lead",
    "staff": "Lead",
    "director": "Executive",
    "vp": "Executive",
    "csuite": "C-Level",
    "cxo": "C-Level",
}


class ProfileSearchParams(BaseModel):
    """Validated profile search parameters.  All three fields form the dedup key."""

    model_config = ConfigDict(frozen=True)

    job_title: str
    user_location: str
    num_results: int = 10


class RawProfile(BaseModel):
    """One profile hit from neural search, stored verbatim for enrichment."""

    id: str
    url: str
    title: str | None = None
    published_date: str | None = None
    author: str | None = None
    text: str = ""
    image: str | None = None


# ---------------------------------------------------------------------------
# Structured (enriched) profile
# ---------------------------------------------------------------------------


class ProfileSummary(BaseModel):
    overview: str = Field(description="2-3 sentence professional overview")
    key_strengths: list[str] = Field(default_factory=list)
    career_highlights: list[str] = Field(default_factory=list)
    industry_expertise: list[str] = Field(default_factory=list)
    years_of_experience: float | None = None
    seniority_level: SeniorityLevel = "Mid"
    specialisations: list[str] = Field(default_factory=list)

    @field_validator("seniority_level", mode="before")
    @classmethod
    def _normalise_seniority(cls, value: Any) -> Any:
        if value is None:
            return "Mid"
        if not isinstance(value, str):
            return value
        return match_choice(value, get_args(SeniorityLevel), _SENIORITY_ALIASES) or "Mid"


class CurrentJob(BaseModel):
    title: str
    company: str
    start_date: str | None = None
    location: str | None = None
    description: str | None = None


class Experience(BaseModel):
    title: str
    company: str
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    description: str | None = None


class Education(BaseModel):
    institution: str
    degree: str | None = None
    field: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class Certification(BaseModel):
    name: str
    issuer: str | None = None
    date: str | None = None


class Language(BaseModel):
    language: str
    proficiency: str | None = None


class Volunteering(BaseModel):
    position: str
    organisation: str
    start_date: str | None = None
    end_date: str | None = None


class Website(BaseModel):
    title: str
    url: str


class Publication(BaseModel):
    title: str
    published: str | None = None
    summary: str | None = None
    url: str | None = None


class StructuredProfile(BaseModel):
    """Schema-conformant professional profile produced by enrichment."""

    name: str
    position: str
    company: str
    location: str
    connections: str | None = None
    bio: str | None = None
    profile_summary: ProfileSummary
    current_job: CurrentJob
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    volunteering: list[Volunteering] = Field(default_factory=list)
    websites: list[Website] = Field(default_factory=list)
    publications: list[Publication] = Field(default_factory=list)

    profile_url: str = ""
    last_updated: str = ""


STRUCTURED_PROFILE_METADATA_FIELDS = frozenset({"profile_url", "last_updated"})
