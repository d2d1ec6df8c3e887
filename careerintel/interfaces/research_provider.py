"""Abstract base class for company-research providers.

Two capabilities are needed: a question-answering engine for the seven
section questions of a structured report, and a research model for the
long-form completion (whole or streamed).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass


@dataclass(frozen=True)
class AnswerResult:
    """One answer-engine response.

    Attributes
    ----------
    answer:
        The answer text.
    cost_dollars:
        Amount charged for the call.
    """

    answer: str
    cost_dollars: float = 0.0


# Concrete implementation: ExaResearchProvider (careerintel/providers/exa/)
class IResearchProvider(ABC):
    """Contract for answer-engine and research-model calls."""

    @abstractmethod
    async def answer(self, question: str, description: str) -> AnswerResult:
        """Answer one question with a single-string output schema.

        Parameters
        ----------
        question:
            The full question text.
        description:
            Description of the expected answer, sent with the output schema.

        Raises
        ------
        careerintel.utils.errors.ProviderError
            If the call fails or returns no answer.
        """

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the full research-model response for *prompt*."""

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield research-model content chunks for *prompt* as they arrive."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"exa"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
