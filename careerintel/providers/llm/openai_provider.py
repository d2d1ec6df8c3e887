"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured (e.g. OpenRouter), the
client points at that URL instead of the default OpenAI endpoint.

Structured extraction uses JSON mode: the target JSON Schema is appended
to the system prompt and the response is decoded with ``json.loads``.
Schema validation happens in the enrichment service, not here.
"""

from __future__ import annotations

import json
from typing import Any

import openai
import structlog

from careerintel.config.settings import Settings
from careerintel.interfaces.llm_provider import ILLMProvider
from careerintel.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TEXT_MODEL = "gpt-4.1-mini"


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key or "unset",
                "timeout": openai.Timeout(settings.enrichment_timeout_seconds, connect=10.0),
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)
        self._client = client
        self._text_model = settings.openai_text_model or _DEFAULT_TEXT_MODEL
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        return await self._chat(
            system_prompt,
            user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            event="openai_completion",
        )

    async def extract_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, Any],
        temperature: float = 0.1,
        max_tokens: int = 8000,
    ) -> dict[str, Any]:
        schema_text = json.dumps(json_schema, indent=2)
        content = await self._chat(
            f"{system_prompt}\n\nRespond with a single JSON object that conforms to this "
            f"JSON Schema. Use null for unknown optional values and [] for empty lists.\n\n"
            f"{schema_text}",
            user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            event="openai_extract_structured",
            response_format={"type": "json_object"},
        )
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise LLMError(
                message=f"{self._provider_label} returned invalid JSON: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(parsed, dict):
            raise LLMError(
                message=f"{self._provider_label} returned {type(parsed).__name__}, expected an object",
                provider_name=self.get_provider_name(),
            )
        return parsed

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _chat(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        event: str,
        response_format: dict[str, str] | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self._text_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format is not None:
            kwargs["response_format"] = response_format

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            event,
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content
