"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase (database + auth)
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # Redis cache -- empty URL disables caching
    REDIS_URL: str = ""

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Realtime
    SUBSCRIPTION_FIRST_EVENT_TIMEOUT: float = 5.0

    # Note posting rate limit (per user, fixed window)
    NOTE_RATE_LIMIT: int = 30
    NOTE_RATE_WINDOW_SECONDS: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
