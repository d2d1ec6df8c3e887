"""ScrapingDog page scraper implementing IPageScraper.

Fetches a job posting page through ``https://api.scrapingdog.com/scrape``
with markdown output and no JavaScript rendering.
"""

from __future__ import annotations

import httpx

from careerintel.interfaces.scraper import IPageScraper
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger

_SCRAPE_URL = "https://api.scrapingdog.com/scrape"


class ScrapingDogScraper(IPageScraper):
    """Markdown page scraper backed by ScrapingDog."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        self._http = http_client
        self._api_key = api_key
        self._logger = get_logger(__name__)

    async def scrape(self, url: str) -> str:
        if not self._api_key:
            raise ProviderError(
                message="SCRAPINGDOG_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        self._logger.info("scrapingdog_scrape", url=url)
        try:
            response = await self._http.get(
                _SCRAPE_URL,
                params={
                    "api_key": self._api_key,
                    "url": url,
                    "dynamic": "false",
                    "markdown": "true",
                },
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"ScrapingDog request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            raise ProviderError(
                message=f"ScrapingDog returned status {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        content = response.text
        if not content or not content.strip():
            raise ProviderError(
                message="ScrapingDog returned empty or invalid content",
                provider_name=self.get_provider_name(),
            )
        return content

    def get_provider_name(self) -> str:
        return "scrapingdog"

    def is_available(self) -> bool:
        return bool(self._api_key)
