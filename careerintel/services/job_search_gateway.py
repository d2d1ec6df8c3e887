"""Job search gateway: localization, location normalization, provider fallback.

Providers are tried in priority order.  The first provider that answers
wins, even with zero listings, since an empty result is still an answer.
Only when every configured provider raised does the fetch fail, with one
``ProviderUnavailableError`` that lists each provider's error.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import pydantic

from careerintel.config.localization import DEFAULT_COUNTRY_CODE, get_localization
from careerintel.interfaces.job_search_provider import IJobSearchProvider
from careerintel.models.job import JobSearchParams, RawJob
from careerintel.services.location_matcher import LocationMatcher
from careerintel.utils.errors import CareerIntelError, ProviderUnavailableError
from careerintel.utils.logging import get_logger


@dataclass(frozen=True)
class ProviderFetch:
    """Listings plus telemetry for one gateway fetch."""

    candidates: list[RawJob] = field(default_factory=list)
    provider: str = ""
    cost_dollars: float = 0.0
    response_time_ms: float = 0.0
    location_used: str = ""


class JobSearchGateway:
    """Fetches raw job listings with fallback between providers.

    Parameters
    ----------
    providers:
        Job search providers in priority order.  Providers reporting
        ``is_available() == False`` are skipped.
    location_matcher:
        Optional gazetteer normalizer.  Without one the location text is
        sent as typed.
    """

    def __init__(
        self,
        providers: list[IJobSearchProvider],
        location_matcher: LocationMatcher | None = None,
    ) -> None:
        self._providers = providers
        self._location_matcher = location_matcher
        self._logger = get_logger(__name__)

    async def fetch(self, params: JobSearchParams) -> ProviderFetch:
        """Run *params* against the providers until one answers.

        Raises
        ------
        ProviderUnavailableError
            If no provider is configured or every provider failed.
        """
        country_code = params.country_code or DEFAULT_COUNTRY_CODE
        localization = get_localization(country_code)
        location = params.location
        if self._location_matcher is not None:
            location = await self._location_matcher.normalize(params.location, country_code)

        started = time.monotonic()
        errors: list[str] = []
        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                self._logger.debug("job_provider_skipped", provider=name)
                continue
            try:
                candidates = await provider.search(params, localization, location)
            except (CareerIntelError, pydantic.ValidationError) as exc:
                self._logger.warning("job_provider_failed", provider=name, error=str(exc))
                errors.append(f"{name}: {getattr(exc, 'message', exc)}")
                continue

            elapsed_ms = (time.monotonic() - started) * 1000.0
            self._logger.info(
                "job_provider_succeeded",
                provider=name,
                found=len(candidates),
                response_time_ms=round(elapsed_ms),
            )
            return ProviderFetch(
                candidates=candidates,
                provider=name,
                cost_dollars=provider.get_cost_per_search(),
                response_time_ms=elapsed_ms,
                location_used=location,
            )

        detail = "; ".join(errors) if errors else "no job search provider is configured"
        raise ProviderUnavailableError(message=f"All job search providers failed ({detail})")
