"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values come from two sources, highest priority first:
#
#   1. Environment variables, e.g. SERPAPI_API_KEY=abc123
#   2. The .env file in the project root (local development)
#
# Field ``serpapi_api_key`` maps to ``SERPAPI_API_KEY`` automatically.
# Defaults apply when neither source sets a value.  An empty API key
# means "not configured": the matching provider reports is_available()
# False and the gateway skips it.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """career-intel application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM / Embeddings ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (OpenRouter, TogetherAI, ...)
    openai_text_model: str = ""  # Defaults to gpt-4.1-mini when empty
    openai_embedding_model: str = ""  # Defaults to text-embedding-3-small when empty

    # === Data Providers ===
    exa_api_key: str = ""
    exa_base_url: str = "https://api.exa.ai"
    serpapi_api_key: str = ""
    scrapingdog_api_key: str = ""

    # === Record Store ===
    store_backend: str = "sqlite"  # "sqlite" or "memory"
    store_db_path: str = "data/career_intel.db"

    # === Lifecycle ===
    # Staleness windows differ per domain; kept as configuration.
    research_staleness_hours: float = 24 * 7
    profile_search_staleness_hours: float = 24
    job_search_staleness_hours: float = 24
    pending_timeout_minutes: float = 5
    enrichment_timeout_seconds: float = 300

    # === Scheduler ===
    scheduler_enabled: bool = True
    scheduler_concurrency: int = 3
    record_stale_after_days: int = 90

    # === Location matching ===
    location_cache_ttl_seconds: int = 3600

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_providers(self) -> list[str]:
        """Return the external provider names that have credentials configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.exa_api_key:
            providers.append("exa")
        if self.serpapi_api_key:
            providers.append("serpapi")
        if self.scrapingdog_api_key:
            providers.append("scrapingdog")
        return providers
