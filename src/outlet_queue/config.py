"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="OQ_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Outlet Queue Service API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    persistence_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Repository implementation used by the queue core.",
    )
    outlets_file: Path = Field(
        default=Path("data/outlets.json"),
        description="Outlet directory and service-type catalog for the in-memory backend.",
    )
    timezone: str = Field(default="UTC", description="IANA zone defining the business calendar day.")
    token_prefix: str = Field(default="T", min_length=1)
    token_digits: int = Field(default=3, ge=1)
    default_average_service_minutes: float = Field(default=15.0, gt=0.0)
    default_minimum_wait_minutes: float = Field(default=5.0, ge=0.0)
    capacity_policy: Literal["reject", "allow"] = Field(
        default="reject",
        description="Whether registrations beyond an outlet's capacity are refused.",
    )
    enforce_operating_hours: bool = False
    next_tokens_limit: int = Field(default=12, ge=1)
    lock_timeout_seconds: float = Field(default=5.0, gt=0.0)
    write_max_retries: int = Field(default=3, ge=0)
    write_backoff_seconds: float = Field(default=0.05, ge=0.0)
    repository_timeout_seconds: float = Field(default=10.0, gt=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:5174",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("outlets_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
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
