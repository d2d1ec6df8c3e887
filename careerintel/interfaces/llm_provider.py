"""Abstract base class for LLM service providers.

Defines the contract for the language-model backend that turns raw job
listings and profiles into schema-conformant structured records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementation: OpenAILLMProvider
# Located in: careerintel/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the enrichment step."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a plain text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        careerintel.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    async def extract_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, Any],
        temperature: float = 0.1,
        max_tokens: int = 8000,
    ) -> dict[str, Any]:
        """Ask the model for a JSON object conforming to *json_schema*.

        Parameters
        ----------
        system_prompt:
            Extraction instructions.
        user_prompt:
            The raw payload to extract from.
        json_schema:
            JSON Schema the returned object must follow.  Providers include
            it in the request; final validation is the caller's job.

        Returns
        -------
        dict
            The decoded JSON object.

        Raises
        ------
        careerintel.utils.errors.LLMError
            If the call fails or the response is not a JSON object.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and ready."""
