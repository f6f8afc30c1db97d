from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can include frontend settings.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "SalesTrack Targets Backend"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")

    reporting_currency: str = Field(default="INR", alias="REPORTING_CURRENCY")
    default_target_currency: str = Field(default="INR", alias="DEFAULT_TARGET_CURRENCY")
    # Units of the base currency per one unit of each code.
    currency_rates: str = Field(default="INR:1,USD:83", alias="CURRENCY_RATES")
    won_lead_statuses: str = Field(default="WON,Won", alias="WON_LEAD_STATUSES")
    achievements_cache_seconds: int = Field(default=300, alias="ACHIEVEMENTS_CACHE_SECONDS")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]


def get_won_lead_statuses() -> list[str]:
    settings = get_settings()
    return [status.strip() for status in settings.won_lead_statuses.split(",") if status.strip()]
