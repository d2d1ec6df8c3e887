"""Exa neural search over professional profiles, implementing IProfileSearchProvider."""

from __future__ import annotations

from typing import Any

from careerintel.interfaces.profile_search_provider import IProfileSearchProvider, ProfileSearchResult
from careerintel.models.profile import RawProfile
from careerintel.providers.exa.client import PROVIDER_NAME, ExaClient, cost_total
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger

_PROFILE_CATEGORY = "linkedin profile"


class ExaProfileSearchProvider(IProfileSearchProvider):
    """Profile search via Exa ``/search`` with page text included."""

    def __init__(self, client: ExaClient) -> None:
        self._client = client
        self._logger = get_logger(__name__)

    async def search(
        self,
        job_title: str,
        user_location: str,
        num_results: int = 10,
    ) -> ProfileSearchResult:
        payload = await self._client.post(
            "/search",
            {
                "query": job_title,
                "type": "auto",
                "category": _PROFILE_CATEGORY,
                "userLocation": user_location,
                "numResults": num_results,
                "contents": {"text": True},
            },
        )

        results = payload.get("results")
        if not isinstance(results, list):
            raise ProviderError(message="Exa search returned no results list", provider_name=PROVIDER_NAME)

        profiles = [self._to_raw_profile(item) for item in results if isinstance(item, dict) and item.get("url")]
        cost = cost_total(payload)
        self._logger.info(
            "exa_profile_search_complete",
            job_title=job_title,
            user_location=user_location,
            found=len(profiles),
            cost_dollars=cost,
        )
        return ProfileSearchResult(profiles=profiles, cost_dollars=cost)

    @staticmethod
    def _to_raw_profile(item: dict[str, Any]) -> RawProfile:
        return RawProfile(
            id=str(item.get("id") or item["url"]),
            url=item["url"],
            title=item.get("title"),
            published_date=item.get("publishedDate"),
            author=item.get("author"),
            text=item.get("text") or "",
            image=item.get("image"),
        )

    def get_provider_name(self) -> str:
        return PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._client.api_key)
