"""Abstract base class for job-listing search providers.

Each provider translates validated job search parameters plus a
localization entry into one request against a search-engine-results API
and normalizes the listings into :class:`~careerintel.models.job.RawJob`.
The gateway tries providers in priority order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from careerintel.config.localization import Localization
from careerintel.models.job import JobSearchParams, RawJob


# Concrete implementations: SerpApiJobsProvider (primary),
# ScrapingDogJobsProvider (fallback).  Located in: careerintel/providers/jobs/
class IJobSearchProvider(ABC):
    """Contract for job-listing search services."""

    @abstractmethod
    async def search(
        self,
        params: JobSearchParams,
        localization: Localization,
        location: str,
    ) -> list[RawJob]:
        """Run one job search.

        Parameters
        ----------
        params:
            Validated search parameters.
        localization:
            Language / country / domain triple for the country code.
        location:
            The location text to send, already normalized against the
            gazetteer when a match was found.

        Returns
        -------
        list[RawJob]
            Normalized listings.  An empty list is a valid answer.

        Raises
        ------
        careerintel.utils.errors.ProviderError
            On network failure, a non-2xx status, or a malformed payload.
        """

    @abstractmethod
    def get_cost_per_search(self) -> float:
        """Return the cost in dollars charged for one search call."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier stored on each record."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
