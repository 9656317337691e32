"""
Configuration management for Gradely.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """
    Application settings loaded from ``GRADELY_*`` environment variables.

    All settings are validated at startup. Invalid values
    will raise clear validation errors.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Storage Configuration
    # ==========================================================================
    database_url: str = Field(
        default="sqlite:///./gradely.db",
        description="SQLAlchemy URL of the mark store, or 'memory://' for a volatile store",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    passing_threshold: Decimal = Field(
        default=Decimal("60"),
        ge=0,
        le=100,
        description="Minimum total required to pass, independent of the letter grade",
    )

    total_cap: Decimal = Field(
        default=Decimal("100"),
        gt=0,
        description="Upper bound applied to every student total",
    )

    # ==========================================================================
    # Output Configuration
    # ==========================================================================
    log_level: str = Field(
        default="WARNING",
        description="Logging level name (DEBUG, INFO, WARNING, ERROR)",
    )

    output_directory: Path = Field(
        default=Path("./output"),
        description="Directory for exported reports",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject blank URLs."""
        v = v.strip()
        if not v:
            raise ValueError("database_url must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and check the logging level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("output_directory")
    @classmethod
    def validate_output_directory(cls, v: Path) -> Path:
        """Ensure output directory exists or can be created."""
        v.mkdir(parents=True, exist_ok=True)
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
