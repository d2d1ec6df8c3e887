"""Abstract base class for location gazetteers.

A gazetteer resolves free-text location input to canonical place entries
that the jobs engines understand.  The location matcher scores and filters
what the gazetteer returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class GazetteerLocation:
    """A single gazetteer entry.

    Attributes
    ----------
    id:
        Provider identifier.
    name:
        Short place name, e.g. ``"Manchester"``.
    canonical_name:
        Fully qualified name sent to the jobs engine, e.g.
        ``"Manchester,England,United Kingdom"``.
    country_code:
        Upper-case ISO country code as reported by the provider.
    target_type:
        Entity type such as ``City``, ``Region`` or ``Country``.
    reach:
        Audience size, used as a proxy for population and business activity.
    """

    id: str
    name: str
    canonical_name: str
    country_code: str
    target_type: str
    reach: int = 0
    google_id: int | None = None
    google_parent_id: int | None = None

    @property
    def is_city(self) -> bool:
        return self.target_type.lower() == "city"


# Concrete implementation: SerpApiLocationsProvider (careerintel/providers/geo/)
class ILocationGazetteer(ABC):
    """Contract for location lookup services."""

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[GazetteerLocation]:
        """Return up to *limit* entries matching *query*.

        Raises
        ------
        careerintel.utils.errors.ProviderError
            If the lookup fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier."""
