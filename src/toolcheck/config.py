"""Configuration management for toolcheck."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolcheck.adapters.urls import normalize_api_url
from toolcheck.errors import ApiKeyNotConfiguredError, ApiUrlNotConfiguredError
from toolcheck.types import ConnectionConfig

DEFAULT_API_URL = "https://api.openai.com"
DEFAULT_MODEL = "gemini-2.5-pro"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHECK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoint defaults, used when no saved config or flag overrides them
    api_url: str = Field(default=DEFAULT_API_URL, description="API base URL")
    api_key: Optional[str] = Field(None, description="API key for the endpoint")
    model: str = Field(default=DEFAULT_MODEL, description="Model name")

    # Loop
    timeout_seconds: float = Field(default=120.0, description="HTTP timeout per request in seconds")
    max_turns: int = Field(default=8, ge=1, description="Maximum request/response round trips")
    continue_after_submit: bool = Field(
        default=False, description="Keep the conversation going after submit_answer settles the verdict"
    )
    anthropic_max_tokens: int = Field(default=4096, ge=1, description="max_tokens sent to the Messages API")
    anthropic_version: str = Field(default="2023-06-01", description="anthropic-version header")

    # Storage and logging
    home: Path = Field(default=Path.home() / ".toolcheck", description="Directory holding saved configs")
    log_level: str = Field(default="INFO", description="Log level")

    @property
    def store_path(self) -> Path:
        return self.home / "configs.json"


def get_settings() -> Settings:
    """Get application settings from the environment and ``.env``."""
    return Settings()


def resolve_connection(
    settings: Settings,
    *,
    url: str | None = None,
    key: str | None = None,
    model: str | None = None,
    saved: ConnectionConfig | None = None,
) -> ConnectionConfig:
    """Merge explicit values over a saved config over settings.

    Raises:
        ApiUrlNotConfiguredError: If no URL is available.
        ApiKeyNotConfiguredError: If no key is available.
    """
    resolved_url = normalize_api_url(url or (saved.url if saved else None) or settings.api_url)
    resolved_key = (key or (saved.key if saved else None) or settings.api_key or "").strip()
    resolved_model = (model or (saved.model if saved else None) or settings.model).strip()
    if not resolved_url:
        raise ApiUrlNotConfiguredError("API URL is not configured. Pass --url or set TOOLCHECK_API_URL.")
    if not resolved_key:
        raise ApiKeyNotConfiguredError("API key is not configured. Pass --key or set TOOLCHECK_API_KEY.")
    return ConnectionConfig(url=resolved_url, key=resolved_key, model=resolved_model or DEFAULT_MODEL)
