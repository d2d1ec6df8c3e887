"""Custom exception hierarchy for career-intel.

All application exceptions inherit from :class:`CareerIntelError`, which
carries an optional ``provider_name`` so handlers and log lines can name
the external service (e.g. "serpapi", "exa", "openai") behind a failure.

    CareerIntelError  (base)
    +-- ValidationError          (bad request parameters, raised before any write)
    +-- RecordNotFoundError      (unknown document id)
    +-- StoreError               (persistence backend failure)
    +-- ProviderError            (one external data source failed)
    |   +-- ProviderUnavailableError (every provider in a fallback chain failed)
    |   +-- RateLimitError       (provider rate limit exceeded)
    +-- LLMError                 (language-model call failure)
    +-- EnrichmentError          (raw record could not be turned into a schema)
    |   +-- EnrichmentTimeoutError
    +-- EmbeddingError           (embedding API failure)
    +-- ConfigurationError       (startup / missing config)

The API middleware maps these onto HTTP status codes; background tasks
record them as document state instead of raising past the task boundary.
"""


class CareerIntelError(Exception):
    """Base exception for all career-intel errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider in brackets,
    e.g. ``[serpapi] SerpAPI returned status 429``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request-path errors
# ---------------------------------------------------------------------------

class ValidationError(CareerIntelError):
    """Raised when request parameters are missing or malformed."""

    def __init__(
        self,
        message: str = "Invalid request parameters",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RecordNotFoundError(CareerIntelError):
    """Raised when a document id does not exist in its collection."""

    def __init__(
        self,
        message: str = "Record not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RecordBusyError(CareerIntelError):
    """Raised when a record is being processed and cannot be changed right now."""

    def __init__(
        self,
        message: str = "Record is being processed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreError(CareerIntelError):
    """Raised when the record store backend fails."""

    def __init__(
        self,
        message: str = "Record store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External data providers
# ---------------------------------------------------------------------------

class ProviderError(CareerIntelError):
    """Raised when an external data provider returns an error or bad payload."""

    def __init__(
        self,
        message: str = "External provider request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(ProviderError):
    """Raised when no provider in a fallback chain could serve the request."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ProviderError):
    """Raised when an API rate limit is exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Enrichment / embedding
# ---------------------------------------------------------------------------

class LLMError(CareerIntelError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EnrichmentError(CareerIntelError):
    """Raised when a raw payload cannot be turned into a structured record."""

    def __init__(
        self,
        message: str = "Enrichment failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EnrichmentTimeoutError(EnrichmentError):
    """Raised when enrichment exceeds its hard time ceiling."""

    def __init__(
        self,
        message: str = "Enrichment timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(CareerIntelError):
    """Raised when an embedding request fails."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

class ConfigurationError(CareerIntelError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
