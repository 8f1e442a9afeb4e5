"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Secrets (the connection string carries credentials) should never be
    committed to code - use .env file (gitignored).
    """

    # MongoDB Configuration
    mongo_uri: str = Field(
        ...,
        description="MongoDB connection string (mongodb:// or mongodb+srv://)"
    )
    mongo_db_name: str = Field(
        default="portfolio_builder",
        description="Database name used when the URI does not select one"
    )
    max_pool_size: int = Field(
        default=10,
        ge=1,
        description="Maximum number of pooled connections"
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="Time to wait for server selection before failing"
    )
    socket_timeout_ms: int = Field(
        default=45000,
        ge=0,
        description="Socket idle timeout"
    )

    # Template duplication
    unique_template_titles: bool = Field(
        default=False,
        description="Create a unique index on templates.title"
    )
    max_duplicate_attempts: int = Field(
        default=100,
        ge=1,
        description="Upper bound on title probes when duplicating a template"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=True,
        description="Emit JSON log lines (False for plain text during development)"
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @field_validator("mongo_uri")
    @classmethod
    def validate_mongo_uri(cls, v: str) -> str:
        """
        Validate MongoDB connection string.

        A missing or malformed URI is fatal in every environment.
        """
        if not v or v.strip() == "":
            raise ValueError(
                "MONGO_URI is required and cannot be empty. "
                "Example: mongodb://localhost:27017/portfolio_builder"
            )

        v = v.strip()
        valid_schemes = ["mongodb", "mongodb+srv"]
        if not any(v.startswith(scheme + "://") for scheme in valid_schemes):
            raise ValueError(
                f"MONGO_URI must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )

        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard level name, got {v!r}")
        return level


def get_settings() -> Settings:
    """
    Build a fresh Settings instance from the current environment.

    Use this when constructing a connection manager explicitly (scripts,
    tests) instead of relying on the module-level instance.
    """
    return Settings()
