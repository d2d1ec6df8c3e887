"""Page scrapers used by reverse job lookup."""

from careerintel.providers.scraper.scrapingdog_scraper import ScrapingDogScraper

__all__ = ["ScrapingDogScraper"]
