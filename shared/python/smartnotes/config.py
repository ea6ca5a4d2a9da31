"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Generation service settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "smartnotes"
    environment: str = "development"
    log_level: str = "INFO"

    llm_provider: str = "openai"
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "o4-mini"
    mistral_api_key: str | None = None
    mistral_base_url: str = "https://api.mistral.ai/v1"
    mistral_model: str = "mistral-small-latest"
    local_vllm_base_url: str = "http://vllm:8000"

    request_timeout_seconds: int = Field(default=60, ge=1)
    llm_max_attempts: int = Field(default=3, ge=1)

    max_source_chars: int = Field(default=60_000, ge=2)
    default_locale: str = "en"
    rate_limit_per_minute: int = Field(default=30, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
