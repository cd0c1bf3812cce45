# src/showback/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Supports environment variables with validation and an optional .env file.

Files that USE this module:
- showback.app (loads settings for the rating run)
- showback.application.pool_service (currency, pool period and naming)
- showback.adapters.persistence.file_store (data file paths)

Files that this module USES:
- showback.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from pathlib import Path  # Object-oriented filesystem paths
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from showback.shared.validators import validate_currency_code  # Validate ISO 4217 codes


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Money ---
    currency: str = Field(default="USD", alias="SHOWBACK_CURRENCY")

    # --- Pools ---
    pool_period_days: int = Field(default=30, alias="SHOWBACK_POOL_PERIOD_DAYS", ge=1, le=366)
    pool_name_template: str = Field(
        default="Pool for {resource}", alias="SHOWBACK_POOL_NAME_TEMPLATE"
    )
    pool_description_template: str = Field(
        default="Showback pool for {resource} starting {start:%Y-%m-%d}",
        alias="SHOWBACK_POOL_DESCRIPTION_TEMPLATE",
    )
    # Attempts to resolve a conflicting OPEN pool before giving up
    open_pool_retries: int = Field(default=3, alias="SHOWBACK_OPEN_POOL_RETRIES", ge=1, le=10)

    # --- Data files ---
    rate_plans_file: Path = Field(
        default=Path("./data/rate_plans.json"), alias="SHOWBACK_RATE_PLANS_FILE"
    )
    resources_file: Path = Field(
        default=Path("./data/resources.json"), alias="SHOWBACK_RESOURCES_FILE"
    )
    events_file: Path = Field(
        default=Path("./data/events.json"), alias="SHOWBACK_EVENTS_FILE"
    )

    # --- Logging ---
    log_level: str = Field(default="INFO", alias="SHOWBACK_LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="SHOWBACK_LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="SHOWBACK_LOG_DIR")
    log_stdout: bool = Field(default=True, alias="SHOWBACK_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="SHOWBACK_LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="SHOWBACK_LOG_BACKUP_COUNT")

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate currency code."""
        v = v.upper()
        if not validate_currency_code(v):
            raise ValueError("SHOWBACK_CURRENCY must be a 3-letter ISO 4217 code")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level name."""
        v = v.upper()
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("SHOWBACK_LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return v

    @field_validator("pool_name_template")
    @classmethod
    def validate_name_template(cls, v: str) -> str:
        """Pool names are required, so the template can't be blank."""
        if not v.strip():
            raise ValueError("SHOWBACK_POOL_NAME_TEMPLATE can't be blank")
        return v


# Global settings instance
settings = Settings()
