"""Utility modules for career-intel.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  CareerIntelError; the API middleware maps each subclass to an HTTP status.
- **concurrency** -- asyncio semaphore throttling and bounded fan-out used
  by the research answer calls and scheduler batches.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **clock** -- epoch-millisecond time helpers and a settable test clock.
- **text** -- whitespace collapsing, ``Label: value`` field extraction from
  raw profile text, and location-to-country inference.
"""

# -- Domain exception hierarchy --------------------------------------------
from careerintel.utils.errors import (
    CareerIntelError,
    ConfigurationError,
    EmbeddingError,
    EnrichmentError,
    EnrichmentTimeoutError,
    LLMError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)

# -- Time helpers ----------------------------------------------------------
from careerintel.utils.clock import Clock, ManualClock, iso_from_ms, now_ms, to_ms

# -- Async concurrency helpers ---------------------------------------------
from careerintel.utils.concurrency import bounded_map, throttled_gather

# -- Structured logging setup ----------------------------------------------
from careerintel.utils.logging import configure_logging, get_logger

# -- Text helpers ----------------------------------------------------------
from careerintel.utils.text import (
    UNKNOWN_COUNTRY,
    collapse_whitespace,
    extract_profile_field,
    infer_country_code,
)

__all__ = [
    "CareerIntelError",
    "Clock",
    "ConfigurationError",
    "EmbeddingError",
    "EnrichmentError",
    "EnrichmentTimeoutError",
    "LLMError",
    "ManualClock",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitError",
    "RecordNotFoundError",
    "StoreError",
    "UNKNOWN_COUNTRY",
    "ValidationError",
    "bounded_map",
    "collapse_whitespace",
    "configure_logging",
    "extract_profile_field",
    "get_logger",
    "infer_country_code",
    "iso_from_ms",
    "now_ms",
    "throttled_gather",
    "to_ms",
]
