"""career-intel domain models, re-exported from one place.

The models are organized across four submodules by domain concern:
    - lifecycle.py  -- search-unit status, record processing state, and the
                       result shapes of the lifecycle manager and scheduler
    - job.py        -- job search parameters, raw listings, structured jobs
    - profile.py    -- profile search parameters, raw and structured profiles
    - research.py   -- research parameters, reports, and the question set
"""

from __future__ import annotations

# --- Lifecycle models: shared by every search domain. ---
from careerintel.models.lifecycle import (
    BatchSummary,
    FindOrCreateResult,
    ProcessingState,
    SaveResult,
    SearchStatus,
    StaleStats,
    UnitStatusView,
)
# --- Job models ---
from careerintel.models.job import (
    JOB_SEARCH_NUM_RESULTS,
    ApplicationDetails,
    ApplyOption,
    JobAnalysis,
    JobRequirements,
    JobSearchParams,
    RawJob,
    StructuredJob,
)
# --- Profile models ---
from careerintel.models.profile import (
    ProfileSearchParams,
    ProfileSummary,
    RawProfile,
    StructuredProfile,
)
# --- Research models ---
from careerintel.models.research import (
    RESEARCH_QUESTIONS,
    CompanyResearchReport,
    ResearchParams,
    ResearchQuestion,
)

__all__ = [
    "ApplicationDetails",
    "ApplyOption",
    "BatchSummary",
    "CompanyResearchReport",
    "FindOrCreateResult",
    "JOB_SEARCH_NUM_RESULTS",
    "JobAnalysis",
    "JobRequirements",
    "JobSearchParams",
    "ProcessingState",
    "ProfileSearchParams",
    "ProfileSummary",
    "RESEARCH_QUESTIONS",
    "RawJob",
    "RawProfile",
    "ResearchParams",
    "ResearchQuestion",
    "SaveResult",
    "SearchStatus",
    "StaleStats",
    "StructuredJob",
    "StructuredProfile",
    "UnitStatusView",
]
