"""Location gazetteer providers."""

from careerintel.providers.geo.serpapi_locations_provider import SerpApiLocationsProvider

__all__ = ["SerpApiLocationsProvider"]
