"""ScrapingDog Google Jobs provider implementing IJobSearchProvider.

Fallback for the SerpAPI engine.  ScrapingDog takes a free-text query and
a country (``gl`` value) rather than a canonical location, so the location
is folded into the query text.
"""

from __future__ import annotations

import httpx

from careerintel.config.localization import Localization
from careerintel.interfaces.job_search_provider import IJobSearchProvider
from careerintel.models.job import JobSearchParams, RawJob
from careerintel.providers.jobs.serpapi_jobs_provider import normalize_listing
from careerintel.utils.errors import ProviderError, RateLimitError
from careerintel.utils.logging import get_logger

_SEARCH_URL = "https://api.scrapingdog.com/google_jobs"
_COST_PER_SEARCH = 0.001


class ScrapingDogJobsProvider(IJobSearchProvider):
    """Secondary job-listing provider backed by ScrapingDog's ``google_jobs`` API."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        self._http = http_client
        self._api_key = api_key
        self._logger = get_logger(__name__)

    async def search(
        self,
        params: JobSearchParams,
        localization: Localization,
        location: str,
    ) -> list[RawJob]:
        if not self._api_key:
            raise ProviderError(
                message="SCRAPINGDOG_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        request_params = {
            "api_key": self._api_key,
            "query": f"{params.query} {location}".strip(),
            "country": localization.gl,
        }
        self._logger.info("scrapingdog_jobs_request", query=params.query, location=location)

        try:
            response = await self._http.get(_SEARCH_URL, params=request_params)
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"ScrapingDog request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(message="ScrapingDog rate limit exceeded", provider_name=self.get_provider_name())
        if response.status_code != 200:
            raise ProviderError(
                message=f"ScrapingDog returned status {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(
                message="ScrapingDog returned invalid JSON",
                provider_name=self.get_provider_name(),
            ) from exc

        results = data.get("jobs_results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ProviderError(
                message="Invalid response format from ScrapingDog",
                provider_name=self.get_provider_name(),
            )

        return [
            normalize_listing(job, index, self.get_provider_name(), params.location)
            for index, job in enumerate(results[: params.num_results])
            if isinstance(job, dict)
        ]

    def get_cost_per_search(self) -> float:
        return _COST_PER_SEARCH

    def get_provider_name(self) -> str:
        return "scrapingdog"

    def is_available(self) -> bool:
        return bool(self._api_key)
