"""Public interface definitions for storage and external service providers.

Every external API and the document store are accessed exclusively through
the abstract base classes defined in this package.  Concrete adapters
implement these interfaces and are wired together in
``careerintel/main.py``, so unit tests can inject fakes without network
calls.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in careerintel/providers/)
    ─────────────────────────────────────────────────────────────────────
    IRecordStore               →  InMemoryRecordStore, SQLiteRecordStore
    ICacheProvider             →  MemoryCacheProvider
    IEmbeddingProvider         →  OpenAIEmbeddingProvider
    ILLMProvider               →  OpenAILLMProvider
    IJobSearchProvider         →  SerpApiJobsProvider, ScrapingDogJobsProvider
    IProfileSearchProvider     →  ExaProfileSearchProvider
    IResearchProvider          →  ExaResearchProvider
    ILocationGazetteer         →  SerpApiLocationsProvider
    IPageScraper               →  ScrapingDogScraper
"""

from careerintel.interfaces.cache_provider import ICacheProvider
from careerintel.interfaces.embedding_provider import IEmbeddingProvider
from careerintel.interfaces.gazetteer import GazetteerLocation, ILocationGazetteer
from careerintel.interfaces.job_search_provider import IJobSearchProvider
from careerintel.interfaces.llm_provider import ILLMProvider
from careerintel.interfaces.profile_search_provider import IProfileSearchProvider, ProfileSearchResult
from careerintel.interfaces.record_store import COLLECTION_INDEXES, IRecordStore
from careerintel.interfaces.research_provider import AnswerResult, IResearchProvider
from careerintel.interfaces.scraper import IPageScraper

__all__ = [
    "AnswerResult",
    "COLLECTION_INDEXES",
    "GazetteerLocation",
    "ICacheProvider",
    "IEmbeddingProvider",
    "IJobSearchProvider",
    "ILLMProvider",
    "ILocationGazetteer",
    "IPageScraper",
    "IProfileSearchProvider",
    "IRecordStore",
    "IResearchProvider",
    "ProfileSearchResult",
]
