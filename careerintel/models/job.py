"""Job search models: request parameters, raw provider listings, and the
structured schema the enrichment step produces.

``StructuredJob`` is what the LLM must return.  Nullable fields default to
``None`` and list fields to ``[]`` so a dump always carries every key,
with explicit nulls rather than omissions.
"""

from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from careerintel.utils.text import match_choice

ExperienceLevel = Literal["Entry", "Mid", "Senior", "Lead", "Executive"]
CompanySize = Literal["Startup", "Small", "Medium", "Large", "Enterprise"]
WorkArrangement = Literal["Remote", "Hybrid", "On-site", "Unknown"]

# Normalised spellings the LLM uses that are not one of the choices.
_EXPERIENCE_ALIASES = {
    "junior": "Entry",
    "graduate": "Entry",
    "intern": "Entry",
    "intermediate": "Mid",
    "middle": "Mid",
    "principal": "Lead",
    "staff": "Lead",
    "director": "Executive",
}
_COMPANY_SIZE_ALIASES = {
    "micro": "Startup",
    "midsize": "Medium",
    "midsized": "Medium",
    "mid": "Medium",
    "corporate": "Enterprise",
}
_WORK_ARRANGEMENT_ALIASES = {
    "fullyremote": "Remote",
    "remotefirst": "Remote",
    "office": "On-site",
    "inoffice": "On-site",
    "inperson": "On-site",
    "onpremises": "On-site",
}

# Listing count requested from the jobs engines for every search.
JOB_SEARCH_NUM_RESULTS = 30


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------


class JobSearchParams(BaseModel):
    """Validated job search parameters.  All four fields form the dedup key."""

    model_config = ConfigDict(frozen=True)

    query: str
    location: str
    country_code: str = "gb"
    num_results: int = JOB_SEARCH_NUM_RESULTS


# ---------------------------------------------------------------------------
# Raw provider listing
# ---------------------------------------------------------------------------


class RawJob(BaseModel):
    """One listing as normalized from a jobs provider.

    ``id`` is the provider-scoped dedup identity.  ``raw_data`` keeps the
    untouched provider object for audit and later enrichment.
    """

    id: str
    title: str
    company_name: str
    location: str
    description: str = ""
    via: str | None = None
    share_link: str | None = None
    thumbnail: str | None = None
    detected_extensions: dict[str, Any] | None = None
    job_highlights: list[dict[str, Any]] | None = None
    apply_options: list[dict[str, Any]] | None = None
    extensions: list[str] | None = None
    job_id: str | None = None
    provider: str
    raw_data: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Structured (enriched) job
# ---------------------------------------------------------------------------


class JobRequirements(BaseModel):
    essential: list[str] = Field(default_factory=list, description="Essential requirements and qualifications")
    preferred: list[str] = Field(default_factory=list, description="Preferred qualifications")
    skills: list[str] = Field(default_factory=list, description="Required technical and soft skills")
    experience: str | None = Field(default=None, description="Years of experience required")
    education: str | None = Field(default=None, description="Educational requirements")


class JobAnalysis(BaseModel):
    summary: str = Field(description="2-3 sentence summary of the role and its key aspects")
    key_responsibilities: list[str] = Field(default_factory=list, description="Main job responsibilities")
    ideal_candidate: str = Field(description="Description of the ideal candidate profile")
    career_progression: str | None = Field(default=None, description="Potential career progression")
    company_size: CompanySize | None = Field(default=None, description="Estimated company size")
    industry: str | None = Field(default=None, description="Industry sector")
    work_arrangement: WorkArrangement = Field(default="Unknown", description="Work arrangement")

    @field_validator("company_size", mode="before")
    @classmethod
    def _normalise_company_size(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value
        return match_choice(value, get_args(CompanySize), _COMPANY_SIZE_ALIASES)

    @field_validator("work_arrangement", mode="before")
    @classmethod
    def _normalise_work_arrangement(cls, value: Any) -> Any:
        if value is None:
            return "Unknown"
        if not isinstance(value, str):
            return value
        return match_choice(value, get_args(WorkArrangement), _WORK_ARRANGEMENT_ALIASES) or "Unknown"


class ApplyOption(BaseModel):
    platform: str
    url: str


class ApplicationDetails(BaseModel):
    apply_options: list[ApplyOption] = Field(default_factory=list, description="Where to apply for this job")
    posted_date: str | None = Field(default=None, description="When the job was posted")
    application_deadline: str | None = Field(default=None, description="Application deadline if mentioned")


class StructuredJob(BaseModel):
    """Schema-conformant job posting produced by enrichment."""

    title: str = Field(description="Job title")
    company: str = Field(description="Company name")
    location: str = Field(description="Job location")
    description: str = Field(description="Full job description")
    job_type: str | None = Field(default=None, description="Employment type (Full-time, Contract, ...)")
    salary_range: str | None = Field(default=None, description="Salary range if mentioned")
    experience_level: ExperienceLevel | None = Field(default=None, description="Required experience level")
    requirements: JobRequirements = Field(default_factory=JobRequirements)
    benefits: list[str] = Field(default_factory=list, description="Company benefits and perks mentioned")
    job_analysis: JobAnalysis
    application_details: ApplicationDetails = Field(default_factory=ApplicationDetails)

    @field_validator("experience_level", mode="before")
    @classmethod
    def _normalise_experience_level(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value
        return match_choice(value, get_args(ExperienceLevel), _EXPERIENCE_ALIASES)

    # Stamped after parsing, never requested from the model.
    source_url: str = ""
    provider: str = ""
    last_updated: str = ""


# Fields the LLM is asked to fill; metadata is stamped afterwards.
STRUCTURED_JOB_METADATA_FIELDS = frozenset({"source_url", "provider", "last_updated"})
