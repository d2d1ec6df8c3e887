"""Job-listing search providers, in gateway priority order.

    - SerpApiJobsProvider      -- SerpAPI ``google_jobs`` (primary)
    - ScrapingDogJobsProvider  -- ScrapingDog ``google_jobs`` (fallback)
"""

from careerintel.providers.jobs.scrapingdog_jobs_provider import ScrapingDogJobsProvider
from careerintel.providers.jobs.serpapi_jobs_provider import SerpApiJobsProvider, normalize_listing

__all__ = ["ScrapingDogJobsProvider", "SerpApiJobsProvider", "normalize_listing"]
