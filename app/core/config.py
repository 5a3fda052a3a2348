"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for wiring (routers, lifespan,
dependencies).  Service classes receive the values they need through their
constructors instead of importing this module.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # OpenAI-compatible provider (embeddings + chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 1536
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Airtable (external candidate source)
    AIRTABLE_API_KEY: str = ""
    AIRTABLE_BASE_ID: str = ""
    AIRTABLE_TABLE_NAME: str = "Candidates"

    # Search
    SEARCH_DEFAULT_PAGE_SIZE: int = 20
    SEARCH_MAX_PAGE_SIZE: int = 100

    # Ingestion
    INGEST_BATCH_SIZE: int = 25
    INGEST_BATCH_DELAY_SECONDS: float = 0.5
    ENRICH_ITEM_DELAY_SECONDS: float = 1.0

    # Scheduler (0 disables the periodic embedding backfill)
    EMBEDDING_BACKFILL_INTERVAL_MINUTES: int = 0
    EMBEDDING_BACKFILL_BATCH_SIZE: int = 10

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
