from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=('.env', '.env.local'), env_file_encoding='utf-8', case_sensitive=False)

    project_name: str = Field(default="Loudim Storefront")
    environment: Literal['local', 'test', 'development', 'staging', 'production'] = Field(default='local')
    api_v1_str: str = Field(default="/api/v1")
    database_url: str = Field(default="postgresql+asyncpg:///loudim")
    secret_key: str = Field(default="changeme")
    access_token_expire_minutes: int = Field(default=60 * 12)

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    log_to_stdout: bool = Field(default=True)

    yalidine_api_id: str | None = Field(default=None)
    yalidine_api_token: str | None = Field(default=None)
    yalidine_base_url: str = Field(default="https://api.yalidine.app/v1")
    yalidine_timeout_seconds: float = Field(default=30.0)
    yalidine_max_retries: int = Field(default=3, ge=1)
    yalidine_retry_backoff_seconds: float = Field(default=1.0, ge=0)
    yalidine_cache_ttl_seconds: int = Field(default=300, ge=0)

    carrier_name: str = Field(default="Yalidine")
    origin_wilaya_id: int = Field(default=5, ge=1, le=58)
    default_home_delivery_fee: int = Field(default=500, ge=0)
    restock_on_cancel: bool = Field(default=True)

    default_parcel_weight_kg: float = Field(default=1.0, gt=0)
    default_parcel_length_cm: float = Field(default=10.0, gt=0)
    default_parcel_width_cm: float = Field(default=10.0, gt=0)
    default_parcel_height_cm: float = Field(default=10.0, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


settings = get_settings()
