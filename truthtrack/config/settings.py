"""
Application settings and configuration management.

This module handles all environment variables, API keys, and application
configuration using Pydantic settings management for type safety and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are stored as SecretStr to prevent accidental logging.
    The Anthropic key is optional: without it the question generator reports
    itself as not configured and the category fallback questions are used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # API Keys
    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")

    # Application Configuration
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="APP_ENV"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL"
    )
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Question generation
    claude_model: str = Field(
        default="claude-sonnet-4-20250514",
        alias="CLAUDE_MODEL"
    )
    claude_max_tokens: int = Field(default=1500, alias="CLAUDE_MAX_TOKENS")
    question_temperature: float = Field(default=0.7, alias="QUESTION_TEMPERATURE")
    question_timeout_seconds: float = Field(default=30.0, alias="QUESTION_TIMEOUT_SECONDS")

    # Score enhancement (display only)
    score_enhancer_url: Optional[str] = Field(default=None, alias="SCORE_ENHANCER_URL")
    enhancer_timeout_seconds: float = Field(default=10.0, alias="ENHANCER_TIMEOUT_SECONDS")

    # Storage and output
    data_dir: Path = Field(default=Path("data/products"), alias="DATA_DIR")
    output_dir: Path = Field(default=Path("outputs/reports"), alias="OUTPUT_DIR")
    report_format: Literal["json", "markdown", "html"] = Field(
        default="markdown",
        alias="REPORT_FORMAT"
    )

    @field_validator("anthropic_api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v):
        """Treat an empty key the same as an absent one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def has_ai_credentials(self) -> bool:
        """Whether the AI question service can be used at all."""
        if self.anthropic_api_key is None:
            return False
        return bool(self.anthropic_api_key.get_secret_value().strip())

    def get_question_provider(self) -> str:
        """Name of the question source that will be tried first."""
        return "claude" if self.has_ai_credentials() else "fallback"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
