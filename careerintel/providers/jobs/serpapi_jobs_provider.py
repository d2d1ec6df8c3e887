"""SerpAPI Google Jobs provider implementing IJobSearchProvider.

Calls ``https://serpapi.com/search`` with ``engine=google_jobs``.  The
location sent is the gazetteer-normalized canonical name when one was
found.  A payload with an ``error`` field or without a ``jobs_results``
list is a provider failure.  An empty ``jobs_results`` is a valid result.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from careerintel.config.localization import Localization
from careerintel.interfaces.job_search_provider import IJobSearchProvider
from careerintel.models.job import JobSearchParams, RawJob
from careerintel.utils.errors import ProviderError, RateLimitError
from careerintel.utils.logging import get_logger

_SEARCH_URL = "https://serpapi.com/search"
_COST_PER_SEARCH = 0.005


def normalize_listing(
    job: dict[str, Any],
    index: int,
    provider: str,
    fallback_location: str,
) -> RawJob:
    """Map one engine listing onto :class:`RawJob`.

    Listings without a ``job_id`` get a generated ``<provider>-<ms>-<index>``
    identity, which never collides with a later search.
    """
    job_id = job.get("job_id")
    return RawJob(
        id=job_id or f"{provider}-{int(time.time() * 1000)}-{index}",
        title=job.get("title") or "Unknown Title",
        company_name=job.get("company_name") or "Unknown Company",
        location=job.get("location") or fallback_location,
        description=job.get("description") or "",
        via=job.get("via"),
        share_link=job.get("share_link"),
        thumbnail=job.get("thumbnail"),
        detected_extensions=job.get("detected_extensions"),
        job_highlights=job.get("job_highlights"),
        apply_options=job.get("apply_options"),
        extensions=job.get("extensions"),
        job_id=job_id,
        provider=provider,
        raw_data=job,
    )


class SerpApiJobsProvider(IJobSearchProvider):
    """Primary job-listing provider backed by SerpAPI's ``google_jobs`` engine.

    The ``httpx.AsyncClient`` is injected for testability and connection
    pooling.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        self._http = http_client
        self._api_key = api_key
        self._logger = get_logger(__name__)

    # -- IJobSearchProvider implementation -----------------------------------

    async def search(
        self,
        params: JobSearchParams,
        localization: Localization,
        location: str,
    ) -> list[RawJob]:
        if not self._api_key:
            raise ProviderError(message="SERPAPI_API_KEY is not configured", provider_name=self.get_provider_name())

        request_params = {
            "engine": "google_jobs",
            "q": params.query,
            "location": location,
            "api_key": self._api_key,
            "num": str(params.num_results),
            "hl": localization.hl,
            "gl": localization.gl,
            "google_domain": localization.google_domain,
        }
        self._logger.info(
            "serpapi_jobs_request",
            query=params.query,
            location=location,
            google_domain=localization.google_domain,
            hl=localization.hl,
            gl=localization.gl,
        )

        try:
            response = await self._http.get(_SEARCH_URL, params=request_params)
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"SerpAPI request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(message="SerpAPI rate limit exceeded", provider_name=self.get_provider_name())
        if response.status_code != 200:
            raise ProviderError(
                message=f"SerpAPI returned status {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(message="SerpAPI returned invalid JSON", provider_name=self.get_provider_name()) from exc

        if not isinstance(data, dict):
            raise ProviderError(message="Invalid response format from SerpAPI", provider_name=self.get_provider_name())
        if data.get("error"):
            raise ProviderError(message=f"SerpAPI error: {data['error']}", provider_name=self.get_provider_name())
        results = data.get("jobs_results")
        if not isinstance(results, list):
            raise ProviderError(message="Invalid response format from SerpAPI", provider_name=self.get_provider_name())

        if not results:
            self._logger.warning("serpapi_jobs_empty", query=params.query, location=location)

        return [
            normalize_listing(job, index, self.get_provider_name(), params.location)
            for index, job in enumerate(results)
            if isinstance(job, dict)
        ]

    def get_cost_per_search(self) -> float:
        return _COST_PER_SEARCH

    def get_provider_name(self) -> str:
        return "serpapi"

    def is_available(self) -> bool:
        return bool(self._api_key)
