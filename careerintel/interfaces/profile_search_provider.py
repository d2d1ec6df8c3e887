"""Abstract base class for professional-profile search providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from careerintel.models.profile import RawProfile


@dataclass(frozen=True)
class ProfileSearchResult:
    """Profiles returned by one search call plus its cost.

    Attributes
    ----------
    profiles:
        Raw profile hits in provider ranking order.
    cost_dollars:
        Amount charged for the call; ``0.0`` when the provider does not say.
    """

    profiles: list[RawProfile] = field(default_factory=list)
    cost_dollars: float = 0.0


# Concrete implementation: ExaProfileSearchProvider (careerintel/providers/exa/)
class IProfileSearchProvider(ABC):
    """Contract for neural search over professional profiles."""

    @abstractmethod
    async def search(
        self,
        job_title: str,
        user_location: str,
        num_results: int = 10,
    ) -> ProfileSearchResult:
        """Find profiles matching *job_title* near *user_location*.

        Raises
        ------
        careerintel.utils.errors.ProviderError
            If the search call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier stored on each profile."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
