"""Gazetteer-backed location normalization for job searches.

Free-text input such as ``"manchester"`` is resolved to the canonical
name the jobs engine expects (``"Manchester,England,United Kingdom"``).

Matching pipeline for :meth:`LocationMatcher.best_match`:

    gazetteer search (cached 1 h per query+limit)
        │
        ▼
    filter by country ──(empties?)──▶ keep the unfiltered list
        │
        ▼
    keep City/Region with reach ≥ 10k ──(empties?)──▶ keep the country list
        │
        ▼
    sort: cities first, then reach descending
        │
        ▼
    score in order:
        name == input or first input part          1.00  exact
        canonical name contains first input part   ≤0.90 partial
        first city                                 0.70  fuzzy
        first candidate                            0.60  fuzzy

A gazetteer failure or an empty result is not an error.  The caller falls
back to the text the user typed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from rapidfuzz import fuzz

from careerintel.interfaces.cache_provider import ICacheProvider
from careerintel.interfaces.gazetteer import GazetteerLocation, ILocationGazetteer
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger

MatchType = Literal["exact", "partial", "fuzzy"]

_CACHE_TTL_SECONDS = 3600

# The jobs localization uses "gb" but gazetteers report the UK either way.
_COUNTRY_ALIASES: dict[str, frozenset[str]] = {
    "gb": frozenset({"gb", "uk"}),
    "uk": frozenset({"gb", "uk"}),
}


@dataclass(frozen=True)
class LocationMatch:
    """A scored gazetteer candidate."""

    location: GazetteerLocation
    confidence: float
    match_type: MatchType


@dataclass(frozen=True)
class LocationFilter:
    """Candidate filter applied after the country filter."""

    target_types: frozenset[str] = field(default_factory=lambda: frozenset({"city", "region"}))
    min_reach: int = 10_000


def _sort_cities_first(locations: list[GazetteerLocation]) -> list[GazetteerLocation]:
    return sorted(locations, key=lambda loc: (not loc.is_city, -loc.reach))


class LocationMatcher:
    """Resolves free-text locations against a gazetteer.

    Parameters
    ----------
    gazetteer:
        Location lookup provider.
    cache:
        Injected cache for gazetteer responses.
    search_limit:
        Number of gazetteer entries requested per lookup.
    location_filter:
        Target types and minimum reach for candidates.
    cache_ttl:
        Seconds a gazetteer response stays cached.
    """

    def __init__(
        self,
        gazetteer: ILocationGazetteer,
        cache: ICacheProvider,
        search_limit: int = 15,
        location_filter: LocationFilter | None = None,
        cache_ttl: int = _CACHE_TTL_SECONDS,
    ) -> None:
        self._gazetteer = gazetteer
        self._cache = cache
        self._search_limit = search_limit
        self._filter = location_filter or LocationFilter()
        self._cache_ttl = cache_ttl
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def normalize(self, location: str, country_code: str) -> str:
        """Return the canonical name of the best match, or *location* unchanged."""
        match = await self.best_match(location, country_code)
        if match is None:
            self._logger.info("location_unmatched", location=location, country_code=country_code)
            return location
        self._logger.info(
            "location_matched",
            location=location,
            canonical=match.location.canonical_name,
            match_type=match.match_type,
            confidence=round(match.confidence, 3),
        )
        return match.location.canonical_name

    async def best_match(self, location: str, country_code: str) -> LocationMatch | None:
        """Return the highest-priority candidate for *location*, or ``None``."""
        query = location.strip()
        if not query:
            return None
        candidates = await self._lookup(query, self._search_limit)
        if not candidates:
            return None

        country_filtered = self._filter_country(candidates, country_code)
        filtered = self._apply_filter(country_filtered) or _sort_cities_first(country_filtered)

        lowered = query.lower()
        first_part = lowered.split(",")[0].strip()
        for loc in filtered:
            name = loc.name.lower()
            if name == lowered or name == first_part:
                return LocationMatch(loc, 1.0 if name == lowered else 0.95, "exact")
            if first_part and first_part in loc.canonical_name.lower():
                confidence = min(0.9, len(first_part) / max(len(name), 1))
                return LocationMatch(loc, confidence, "partial")

        first_city = next((loc for loc in filtered if loc.is_city), None)
        if first_city is not None:
            return LocationMatch(first_city, 0.7, "fuzzy")
        return LocationMatch(filtered[0], 0.6, "fuzzy")

    async def suggest(self, location: str, country_code: str, limit: int = 5) -> list[LocationMatch]:
        """Return up to *limit* scored suggestions for autocomplete.

        Exact name matches score 1.0 and substring matches 0.8.  Otherwise
        a rapidfuzz similarity above 0.6 is scaled by 0.7.  Only scores
        above 0.5 are kept, best first.
        """
        query = location.strip()
        if not query:
            return []
        candidates = await self._lookup(query, limit * 2)
        ranked = _sort_cities_first(self._filter_country(candidates, country_code))

        lowered = query.lower()
        first_part = lowered.split(",")[0].strip()
        suggestions: list[LocationMatch] = []
        for loc in ranked:
            name = loc.name.lower()
            if name == lowered or name == first_part:
                confidence, match_type = 1.0, "exact"
            elif first_part in loc.canonical_name.lower() or first_part in name:
                confidence, match_type = 0.8, "partial"
            else:
                similarity = fuzz.ratio(name, first_part) / 100.0
                confidence, match_type = (similarity * 0.7, "fuzzy") if similarity > 0.6 else (0.0, "fuzzy")
            if confidence > 0.5:
                suggestions.append(LocationMatch(loc, confidence, match_type))

        suggestions.sort(key=lambda m: (-m.confidence, not m.location.is_city, -m.location.reach))
        return suggestions[:limit]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _lookup(self, query: str, limit: int) -> list[GazetteerLocation]:
        key = f"location:{query.lower()}:{limit}"
        cached = await self._cache.get(key)
        if cached is not None:
            return cached
        try:
            results = await self._gazetteer.search(query, limit)
        except ProviderError as exc:
            self._logger.warning("location_lookup_failed", query=query, error=str(exc))
            return []
        await self._cache.set(key, results, ttl=self._cache_ttl)
        return results

    @staticmethod
    def _filter_country(candidates: list[GazetteerLocation], country_code: str) -> list[GazetteerLocation]:
        wanted = _COUNTRY_ALIASES.get(country_code.lower(), frozenset({country_code.lower()}))
        matching = [loc for loc in candidates if loc.country_code.lower() in wanted]
        return matching or candidates

    def _apply_filter(self, candidates: list[GazetteerLocation]) -> list[GazetteerLocation]:
        kept = [
            loc
            for loc in candidates
            if loc.target_type.lower() in self._filter.target_types and loc.reach >= self._filter.min_reach
        ]
        return _sort_cities_first(kept)
