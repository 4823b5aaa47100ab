"""
Configuration settings for Customer Ingest.

Uses Pydantic Settings to load environment variables for the persistence
database, logging, rate limiting and batch processing defaults.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("customer_ingest", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)
    db_pool_timeout_seconds: float = Field(5.0, alias="DB_POOL_TIMEOUT_SECONDS", gt=0)

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="JSON_LOGS")

    # Rate limiting
    rate_limit_per_minute: int = Field(5, alias="RATE_LIMIT_PER_MINUTE", ge=1)
    rate_window_seconds: int = Field(60, alias="RATE_WINDOW_SECONDS", ge=1)

    # Batch processing
    error_log_path: str = Field("error.log", alias="ERROR_LOG_PATH")
    batch_file: str = Field("samples.json", alias="BATCH_FILE")
    dispatch_workers: int = Field(4, alias="DISPATCH_WORKERS", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
