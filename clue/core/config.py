"""
clue/core/config.py

Application settings loaded from environment variables / .env file.
Uses Pydantic Settings v2 for type-safe config. Every credential is optional:
a missing API key surfaces as a failed Help request, never as a failed startup.

Usage:
    from clue.core.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM APIs ──────────────────────────────────────────────────────────────
    openai_api_key: str | None = Field(default=None, description="OpenAI API key (preferred provider)")
    gemini_api_key: str | None = Field(default=None, description="Google Gemini API key (alternative)")

    llm_model: str | None = Field(
        default=None,
        description="Override default LLM model name (e.g. 'gpt-4o-mini', 'gemini-2.0-flash')",
    )

    # ── Prompt ────────────────────────────────────────────────────────────────
    code_char_limit: int = Field(
        default=8000,
        gt=0,
        description="Only the first N characters of the student's code are forwarded",
    )

    # ── Application ───────────────────────────────────────────────────────────
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Runtime environment — controls log format and debug features",
    )
    app_version: str = Field(default="1.2.7")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )

    # ── Validators ────────────────────────────────────────────────────────────
    @field_validator("openai_api_key", "gemini_api_key", "llm_model", mode="before")
    @classmethod
    def blank_means_unset(cls, v: str | None) -> str | None:
        # `OPENAI_API_KEY=` in a .env file must not count as a configured key.
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_llm_key(self) -> bool:
        return bool(self.openai_api_key or self.gemini_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return (and cache) the application settings singleton.

    Use `get_settings.cache_clear()` in tests to reload from a fresh environment.
    """
    return Settings()
