from __future__ import annotations

from typing import Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

KURLY_SEARCH_URL = "https://api.kurly.com/search/v4/sites/market/normal-search"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    FRONTEND_CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    # Enrichment hand-off (ingestion -> producer -> callback receiver)
    ENRICHMENT_START_URL: str = "http://localhost:8000/aimock"
    ENRICHMENT_CALLBACK_URL: str = "http://localhost:8000/recipe/process"
    ENRICHMENT_DELAY_SECONDS: float = Field(default=10.0, ge=0)
    ENRICHMENT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    ENRICHMENT_CALLBACK_SECRET: Optional[str] = None

    # Grocery search
    GROCERY_SEARCH_URL: str = KURLY_SEARCH_URL
    GROCERY_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)


def get_settings() -> Settings:
    """Read settings from the environment at call time."""
    return Settings()
