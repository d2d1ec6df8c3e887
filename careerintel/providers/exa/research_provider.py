"""Exa answer engine and research model, implementing IResearchProvider.

Structured answers go through ``/answer`` with a one-field output schema.
Long-form research uses Exa's OpenAI-compatible chat completions endpoint
with the ``exa-research`` model, either whole or streamed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import openai

from careerintel.interfaces.research_provider import AnswerResult, IResearchProvider
from careerintel.models.research import COMPLETION_MODEL
from careerintel.providers.exa.client import PROVIDER_NAME, ExaClient, cost_total
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger


class ExaResearchProvider(IResearchProvider):
    """Company research backed by Exa.

    Parameters
    ----------
    client:
        Shared Exa REST client for ``/answer``.
    completions_client:
        OpenAI SDK client pointed at the Exa base URL.  Built from *client*
        when omitted.
    """

    def __init__(self, client: ExaClient, completions_client: openai.AsyncOpenAI | None = None) -> None:
        self._client = client
        if completions_client is None:
            completions_client = openai.AsyncOpenAI(
                api_key=client.api_key or "unset",
                base_url=client.base_url,
            )
        self._completions = completions_client
        self._logger = get_logger(__name__)

    async def answer(self, question: str, description: str) -> AnswerResult:
        payload = await self._client.post(
            "/answer",
            {
                "query": question,
                "text": False,
                "outputSchema": {
                    "type": "object",
                    "required": ["answer"],
                    "additionalProperties": False,
                    "properties": {"answer": {"type": "string", "description": description}},
                },
            },
        )

        answer = payload.get("answer")
        # With an output schema the answer arrives as the schema object.
        if isinstance(answer, dict):
            answer = answer.get("answer")
        if not isinstance(answer, str) or not answer.strip():
            raise ProviderError(message="Exa answer returned no answer text", provider_name=PROVIDER_NAME)
        return AnswerResult(answer=answer, cost_dollars=cost_total(payload))

    async def complete(self, prompt: str) -> str:
        try:
            completion = await self._completions.chat.completions.create(
                model=COMPLETION_MODEL,
                messages=[{"role": "user", "content": prompt}],
                stream=False,
            )
        except openai.APIError as exc:
            raise ProviderError(
                message=f"Exa research completion failed: {exc}",
                provider_name=PROVIDER_NAME,
            ) from exc

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise ProviderError(message="Exa research completion was empty", provider_name=PROVIDER_NAME)
        self._logger.info("exa_research_completion", model=COMPLETION_MODEL, chars=len(text))
        return text

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            response = await self._completions.chat.completions.create(
                model=COMPLETION_MODEL,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
            )
            async for chunk in response:
                content = chunk.choices[0].delta.content if chunk.choices else None
                if content:
                    yield content
        except openai.APIError as exc:
            raise ProviderError(
                message=f"Exa research stream failed: {exc}",
                provider_name=PROVIDER_NAME,
            ) from exc

    def get_provider_name(self) -> str:
        return PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._client.api_key)
