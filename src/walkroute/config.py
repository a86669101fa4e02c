"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="WALKROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Walking Route Explorer API"
    api_prefix: str = "/api"
    geometry_root: Path = Field(
        default=Path("data"),
        description="Root directory holding geometry categories (route segments, interpolation snapshots).",
    )
    geometry_base_url: Optional[str] = Field(
        default=None,
        description="When set, geometry resources are fetched over HTTP from this base URL instead of disk.",
    )
    route_category: str = Field(
        default="oomiya_line",
        description="Category (directory) holding the per-segment route geometries.",
    )
    fetch_timeout_seconds: float = Field(default=10.0, gt=0.0)
    fetch_max_retries: int = Field(default=2, ge=0)
    fetch_backoff_seconds: float = Field(default=0.5, ge=0.0)
    max_parallel_fetches: int = Field(default=16, ge=1)
    search_workdir: Path = Field(
        default=Path("."),
        description="Working directory for the cost and path-search binaries.",
    )
    cost_binary: str = Field(default="up44", description="Edge-cost generator, run once per search.")
    search_binary: str = Field(default="yens_algorithm", description="Ranked path search binary.")
    search_timeout_seconds: float = Field(default=120.0, gt=0.0)
    default_walking_speed: float = Field(default=80.0, gt=0.0, description="Walking speed in metres per minute.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("geometry_root", "search_workdir", mode="before")
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
