# app/config.py
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process configuration read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # memory:// or any SQLAlchemy URL (sqlite:///./inventory.db, postgresql://...)
    store_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    api_prefix: str = ""
    service_name: str = "inventory-api"


@lru_cache
def get_settings() -> Settings:
    return Settings()
