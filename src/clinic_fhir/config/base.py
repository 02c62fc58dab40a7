"""Base configuration settings."""

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are read from the environment (case insensitive) and from an
    optional ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Clinic FHIR API"
    app_version: str = "0.1.0"
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    fhir_base_path: str = "/ws/fhir2/R4"

    # Database
    database_url: str = "sqlite:///./clinic_fhir.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Paging
    default_page_size: int = 10
    max_page_size: int = 100

    # Monitoring
    metrics_enabled: bool = True

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only console and json renderers are supported."""
        if v not in ("console", "json"):
            raise ValueError(f"log_format must be 'console' or 'json', got {v!r}")
        return v

    @field_validator("fhir_base_path")
    @classmethod
    def validate_fhir_base_path(cls, v: str) -> str:
        """Normalize the base path to a leading slash and no trailing slash."""
        v = "/" + v.strip("/")
        return "" if v == "/" else v

    @field_validator("default_page_size", "max_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Page sizes must be positive."""
        if v < 1:
            raise ValueError("page sizes must be at least 1")
        return v
