"""Abstract base class for page scrapers used by reverse job lookup."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: ScrapingDogScraper (careerintel/providers/scraper/)
class IPageScraper(ABC):
    """Contract for fetching a rendered page as markdown text."""

    @abstractmethod
    async def scrape(self, url: str) -> str:
        """Fetch *url* and return its content as markdown.

        Raises
        ------
        careerintel.utils.errors.ProviderError
            If the fetch fails or the page body is empty.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
