"""
Application Configuration
=========================
Centralized configuration management using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/latagaw.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"
    log_dir: str = "logs"

    # Metrics
    metrics_enabled: bool = True

    # Pricing
    pricing_config_path: str = "config/pricing.yaml"
    default_pricing_model: str = "gpt-4o-mini"

    # Cost guardrail
    daily_budget_usd: float = Field(
        default=5.00,
        ge=0,
        validation_alias=AliasChoices("daily_budget_usd", "openai_daily_budget_usd"),
    )

    # OpenAI
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.6
    openai_max_tokens: int = 4096
    openai_timeout_seconds: float = 60.0
    spot_count: int = Field(default=8, ge=1, le=20)

    # Wikipedia image lookup
    wikipedia_base_url: str = "https://en.wikipedia.org"
    image_width: int = 800
    image_lookup_timeout_seconds: float = 10.0
    enrichment_concurrency: int = Field(default=4, ge=1)
    http_user_agent: str = "LatagawTravelApp/1.0 (educational project; contact@example.com)"

    # Image proxy
    image_proxy_allowed_host: str = "upload.wikimedia.org"
    image_proxy_timeout_seconds: float = 8.0
    image_proxy_path: str = "/api/image-proxy"
    image_cache_max_age: int = 604800
    image_cache_swr: int = 86400

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
