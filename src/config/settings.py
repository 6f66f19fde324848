"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file). Settings are read once at startup and passed explicitly to
whatever needs them; resolvers never read the environment themselves.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The presence of `LLM_API_KEY` selects the LLM resolver; without it the deterministic rules
    resolver is used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: str = Field(alias="TELEGRAM_BOT_TOKEN")

    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_api_version: str | None = Field(default=None, alias="LLM_API_VERSION")
    llm_timeout_s: float = Field(default=30.0, alias="LLM_TIMEOUT_S")

    @field_validator("llm_api_key", "llm_api_version")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        """Treat empty strings (e.g. `LLM_API_KEY=` in `.env`) as unset."""

        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("llm_timeout_s")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Validate that the LLM timeout is positive."""

        if value <= 0:
            raise ValueError("LLM_TIMEOUT_S must be > 0")
        return value


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        # Raising here is fine: caller can decide how to handle startup errors.
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
