"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    request_timeout_seconds: float = 120.0
    listing_language: str = "Czech"
    price_currency: str = "CZK"
    staging_max_concurrency: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_concurrency_limit(raw: str | None) -> int | None:
    """Parse the optional staging concurrency cap from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "0", "*"}:
        return None
    if cleaned.isdigit():
        return int(cleaned)
    return None
