"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SAFEJOURNEY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "SafeJourney Safety Scoring API"
    api_prefix: str = "/api"
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Gemini API key. AI scoring is disabled when unset.",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used for route scoring and explanations.",
    )
    gemini_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Per-request timeout forwarded to the Gemini client.",
    )
    ai_max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum in-flight model calls when routes are scored one by one.",
    )
    prefer_ai: bool = Field(
        default=True,
        description="Use the AI scorer when a client is configured.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
