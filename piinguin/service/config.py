# piinguin/service/config.py

"""Application configuration using Pydantic Settings.

Manages environment variables, defaults, and validation rules.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings.

    Loads values from environment variables (prefix 'PIINGUIN_') or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIINGUIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Root logging level.")

    max_candidates: Optional[int] = Field(
        default=None,
        ge=1,
        description=(
            "Upper bound on candidate configs evaluated per suggestion request. "
            "Unset means every candidate is evaluated."
        ),
    )

    hash_key: str = Field(
        default="",
        description="HMAC key used by hash redactions that do not set their own.",
    )

    default_hash_algorithm: Literal["HMAC-SHA1", "HMAC-SHA256", "HMAC-SHA512"] = Field(
        default="HMAC-SHA1",
        description="HMAC algorithm used by hash redactions that do not set one.",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# Singleton settings instance
settings = Settings()
