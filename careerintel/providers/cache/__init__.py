"""Cache providers.

In-memory TTL cache used to avoid repeated gazetteer lookups for the same
location text.  MemoryCacheProvider is not shared across processes; a
multi-worker deployment can swap in another ICacheProvider adapter without
changing any business logic.
"""

from careerintel.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
