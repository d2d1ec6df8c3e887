"""LLM-driven enrichment of raw provider payloads into fixed schemas.

Three extraction kinds share one path:

    kind          raw payload                      output model
    ───────────   ──────────────────────────────   ─────────────────
    job           RawJob dump                      StructuredJob
    reverse_job   {"url", "scraped_content"}       StructuredJob
    profile       RawProfile dump                  StructuredProfile

Each call runs under a hard timeout (5 minutes by default).  A timeout,
an LLM failure, unparseable output or a schema violation all propagate as
:class:`EnrichmentError` (or its timeout subclass).  Nothing here retries.
Retry is the scheduler's job, via the record's processing state.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Literal

import pydantic

from careerintel.interfaces.llm_provider import ILLMProvider
from careerintel.models.job import STRUCTURED_JOB_METADATA_FIELDS, StructuredJob
from careerintel.models.profile import STRUCTURED_PROFILE_METADATA_FIELDS, StructuredProfile
from careerintel.utils.clock import Clock, iso_from_ms, now_ms
from careerintel.utils.errors import EnrichmentError, EnrichmentTimeoutError, LLMError
from careerintel.utils.logging import get_logger

EnrichmentKind = Literal["job", "reverse_job", "profile"]

DEFAULT_TIMEOUT_SECONDS = 300.0

_JOB_SYSTEM_PROMPT = """You are an expert job posting analyst. Parse the job posting data you are given and extract comprehensive structured information.

INSTRUCTIONS:
- Be thorough and accurate in your analysis
- Generate insightful analysis in the job_analysis section
- Extract all requirements, skills, and qualifications mentioned
- Identify benefits and perks offered
- Determine experience level based on job requirements
- Estimate company size and work arrangement from context
- Use null for unavailable optional fields, empty arrays for missing lists
- Focus on actionable information for job seekers
- Identify key responsibilities and ideal candidate profile"""

_PROFILE_SYSTEM_PROMPT = """You are an expert professional profile analyst. Parse the profile data you are given and extract comprehensive structured information.

INSTRUCTIONS:
- Be thorough and accurate in your analysis
- Generate insightful analysis in the profile_summary section
- Calculate years of experience based on work history
- Determine seniority level based on job titles and experience
- Extract all available information systematically
- Use null for unavailable optional fields, empty arrays for missing lists
- Focus on professional achievements and career progression
- Identify key skills, technologies, and industry expertise"""


def _extraction_schema(model: type[pydantic.BaseModel], metadata_fields: frozenset[str]) -> dict[str, Any]:
    schema = model.model_json_schema()
    for field in metadata_fields:
        schema.get("properties", {}).pop(field, None)
    if "required" in schema:
        schema["required"] = [f for f in schema["required"] if f not in metadata_fields]
    return schema


_JOB_SCHEMA = _extraction_schema(StructuredJob, STRUCTURED_JOB_METADATA_FIELDS)
_PROFILE_SCHEMA = _extraction_schema(StructuredProfile, STRUCTURED_PROFILE_METADATA_FIELDS)


def _job_prompt(raw: dict[str, Any]) -> str:
    extensions = raw.get("extensions") or []
    return f"""JOB POSTING DATA TO ANALYSE:
Title: {raw.get("title", "")}
Company: {raw.get("company_name", "")}
Location: {raw.get("location", "")}
Description: {raw.get("description", "")}
Via: {raw.get("via") or "Unknown"}
Extensions: {", ".join(extensions) or "None"}
Job Highlights: {json.dumps(raw.get("job_highlights") or [])}
Apply Options: {json.dumps(raw.get("apply_options") or [])}

METADATA:
- Source URL: {raw.get("share_link") or "Unknown"}
- Provider: {raw.get("provider", "")}
- Job ID: {raw.get("job_id") or raw.get("id", "")}

Pay particular attention to:
1. Job requirements and qualifications breakdown
2. Key responsibilities and role expectations
3. Company benefits and work environment
4. Career progression opportunities
5. Ideal candidate profile and experience level
6. Work arrangement and company culture indicators"""


def _reverse_job_prompt(raw: dict[str, Any]) -> str:
    url = raw.get("url", "")
    return f"""SCRAPED JOB POSTING CONTENT TO ANALYSE:
{raw.get("scraped_content", "")}

METADATA:
- Original URL: {url}

The scraped content may include navigation and unrelated page text; extract
only the job posting itself.  Always include the original URL ({url}) as one
of the application_details.apply_options entries."""


def _profile_prompt(raw: dict[str, Any]) -> str:
    return f"""PROFILE DATA TO ANALYSE:
{raw.get("text", "")}

METADATA:
- Profile URL: {raw.get("url", "")}
- Last Updated: {raw.get("published_date") or "Unknown"}
- Author: {raw.get("author") or "Unknown"}

Pay particular attention to:
1. Professional overview and career trajectory
2. Key technical and business skills
3. Industry expertise and specialisations
4. Notable achievements and career highlights
5. Leadership experience and seniority level
6. Educational background and certifications"""


class EnrichmentService:
    """Turns raw payloads into structured records with an LLM.

    Parameters
    ----------
    llm:
        Provider used for JSON-mode extraction.
    timeout_seconds:
        Hard ceiling per call; exceeding it is a failure, never a partial
        result.
    clock:
        Source of the ``last_updated`` stamp.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Clock = now_ms,
    ) -> None:
        self._llm = llm
        self._timeout = timeout_seconds
        self._clock = clock
        self._logger = get_logger(__name__)

    async def enrich(self, kind: EnrichmentKind, raw_payload: dict[str, Any]) -> StructuredJob | StructuredProfile:
        """Extract one structured record from *raw_payload*.

        Raises
        ------
        EnrichmentTimeoutError
            If the LLM call exceeds the timeout.
        EnrichmentError
            If the call fails or the output does not fit the schema.
        """
        if kind == "profile":
            system_prompt, user_prompt, schema = _PROFILE_SYSTEM_PROMPT, _profile_prompt(raw_payload), _PROFILE_SCHEMA
            model: type[StructuredJob] | type[StructuredProfile] = StructuredProfile
        elif kind in ("job", "reverse_job"):
            user_prompt = _job_prompt(raw_payload) if kind == "job" else _reverse_job_prompt(raw_payload)
            system_prompt, schema, model = _JOB_SYSTEM_PROMPT, _JOB_SCHEMA, StructuredJob
        else:
            raise EnrichmentError(message=f"Unknown enrichment kind: {kind}")

        try:
            extracted = await asyncio.wait_for(
                self._llm.extract_structured(system_prompt, user_prompt, schema),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            self._logger.warning("enrichment_timeout", kind=kind, timeout_seconds=self._timeout)
            raise EnrichmentTimeoutError(
                message=f"{kind} enrichment timed out after {self._timeout:.0f}s",
                provider_name=self._llm.get_provider_name(),
            ) from exc
        except LLMError as exc:
            raise EnrichmentError(message=f"{kind} enrichment failed: {exc.message}", provider_name=exc.provider_name) from exc

        extracted = {k: v for k, v in extracted.items() if k not in self._metadata_fields(model)}
        extracted.update(self._metadata(kind, raw_payload))
        try:
            result = model.model_validate(extracted)
        except pydantic.ValidationError as exc:
            self._logger.warning("enrichment_schema_mismatch", kind=kind, errors=exc.error_count())
            raise EnrichmentError(
                message=f"{kind} enrichment output failed validation: {exc.error_count()} error(s)",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        self._logger.info("record_enriched", kind=kind, title=getattr(result, "title", None) or getattr(result, "name", None))
        return result

    @staticmethod
    def _metadata_fields(model: type[pydantic.BaseModel]) -> frozenset[str]:
        if model is StructuredProfile:
            return STRUCTURED_PROFILE_METADATA_FIELDS
        return STRUCTURED_JOB_METADATA_FIELDS

    def _metadata(self, kind: EnrichmentKind, raw: dict[str, Any]) -> dict[str, str]:
        now_iso = iso_from_ms(self._clock())
        if kind == "profile":
            return {
                "profile_url": raw.get("url", ""),
                "last_updated": raw.get("published_date") or now_iso,
            }
        if kind == "reverse_job":
            return {"source_url": raw.get("url", ""), "provider": "reverse", "last_updated": now_iso}
        return {
            "source_url": raw.get("share_link") or "",
            "provider": raw.get("provider", ""),
            "last_updated": now_iso,
        }
