"""SerpAPI locations gazetteer implementing ILocationGazetteer.

``https://serpapi.com/locations.json`` is a free, keyless endpoint that
returns the canonical location names the ``google_jobs`` engine accepts.
"""

from __future__ import annotations

from typing import Any

import httpx

from careerintel.interfaces.gazetteer import GazetteerLocation, ILocationGazetteer
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger

_LOCATIONS_URL = "https://serpapi.com/locations.json"


class SerpApiLocationsProvider(ILocationGazetteer):
    """Location lookup against SerpAPI's locations database."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._logger = get_logger(__name__)

    async def search(self, query: str, limit: int = 10) -> list[GazetteerLocation]:
        try:
            response = await self._http.get(_LOCATIONS_URL, params={"q": query, "limit": limit})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(
                message=f"Unable to search location data: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not isinstance(payload, list):
            raise ProviderError(
                message="Locations endpoint returned an unexpected payload",
                provider_name=self.get_provider_name(),
            )

        locations = [loc for loc in (self._parse(item) for item in payload) if loc is not None]
        self._logger.debug("serpapi_locations_found", query=query, count=len(locations))
        return locations

    @staticmethod
    def _parse(item: Any) -> GazetteerLocation | None:
        if not isinstance(item, dict) or not item.get("name") or not item.get("canonical_name"):
            return None
        return GazetteerLocation(
            id=str(item.get("id", "")),
            name=item["name"],
            canonical_name=item["canonical_name"],
            country_code=str(item.get("country_code", "")),
            target_type=str(item.get("target_type", "")),
            reach=int(item.get("reach") or 0),
            google_id=item.get("google_id"),
            google_parent_id=item.get("google_parent_id"),
        )

    def get_provider_name(self) -> str:
        return "serpapi_locations"
