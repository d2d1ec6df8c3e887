"""LLM provider adapters.

OpenAILLMProvider implements ILLMProvider (careerintel/interfaces/llm_provider.py)
against OpenAI or any OpenAI-compatible endpoint.  main.py creates it at
startup and injects it into the enrichment service.
"""

from careerintel.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
