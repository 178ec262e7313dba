"""
Configuration settings for the contract ledger.

Uses Pydantic Settings to load environment variables for database connections,
logging, aggregation strategy selection and the projection refresh cadence.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("contract_ledger", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE", ge=1)
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE", ge=1)

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Aggregation
    aggregation_strategy: Literal["direct", "cached"] = Field(
        "direct", alias="AGGREGATION_STRATEGY"
    )
    refresh_interval_minutes: int = Field(5, alias="REFRESH_INTERVAL_MINUTES", ge=1)

    # Pagination
    default_page_size: int = Field(20, alias="DEFAULT_PAGE_SIZE", ge=1, le=100)
    max_page_size: int = Field(100, alias="MAX_PAGE_SIZE", ge=1, le=1000)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot be greater than "
                f"max_page_size ({self.max_page_size})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
