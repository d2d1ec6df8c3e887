"""Exa providers: profile search, answer engine and research model.

Both providers share one ExaClient (API key, base URL, error mapping)
built in main.py around the application's httpx.AsyncClient.
"""

from careerintel.providers.exa.client import ExaClient
from careerintel.providers.exa.profile_search_provider import ExaProfileSearchProvider
from careerintel.providers.exa.research_provider import ExaResearchProvider

__all__ = ["ExaClient", "ExaProfileSearchProvider", "ExaResearchProvider"]
