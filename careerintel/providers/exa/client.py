"""Thin JSON client for the Exa REST API, shared by the Exa providers.

Handles the ``x-api-key`` header, status checking and JSON decoding so the
providers only deal with request bodies and response fields.
"""

from __future__ import annotations

from typing import Any

import httpx

from careerintel.utils.errors import ProviderError, RateLimitError
from careerintel.utils.logging import get_logger

PROVIDER_NAME = "exa"
DEFAULT_BASE_URL = "https://api.exa.ai"


def cost_total(payload: dict[str, Any]) -> float:
    """Return ``costDollars.total`` from an Exa response, or ``0.0``."""
    cost = payload.get("costDollars")
    if isinstance(cost, dict):
        try:
            return float(cost.get("total") or 0.0)
        except (TypeError, ValueError):
            return 0.0
    return 0.0


class ExaClient:
    """POSTs JSON bodies to Exa endpoints.

    The ``httpx.AsyncClient`` is injected for testability and connection
    pooling.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._logger = get_logger(__name__)

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def base_url(self) -> str:
        return self._base_url

    async def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            raise ProviderError(message="EXA_API_KEY is not configured", provider_name=PROVIDER_NAME)

        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = await self._http.post(
                url,
                json=body,
                headers={"x-api-key": self._api_key, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise ProviderError(message=f"Exa request to {path} failed: {exc}", provider_name=PROVIDER_NAME) from exc

        if response.status_code == 429:
            raise RateLimitError(message="Exa rate limit exceeded", provider_name=PROVIDER_NAME)
        if response.status_code >= 400:
            self._logger.warning("exa_http_error", path=path, status=response.status_code)
            raise ProviderError(
                message=f"Exa {path} returned status {response.status_code}",
                provider_name=PROVIDER_NAME,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(message=f"Exa {path} returned invalid JSON", provider_name=PROVIDER_NAME) from exc
        if not isinstance(payload, dict):
            raise ProviderError(message=f"Exa {path} returned an unexpected payload", provider_name=PROVIDER_NAME)
        return payload
