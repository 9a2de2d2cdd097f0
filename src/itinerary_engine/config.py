"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ITIN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Itinerary Route Optimization API"
    api_prefix: str = "/api"
    distance_source: Literal["google", "osrm", "none"] = Field(
        default="google",
        description="External source for pairwise travel times. 'none' uses the haversine estimate only.",
    )
    google_maps_api_key: Optional[str] = Field(default=None, description="Google Maps Distance Matrix API key.")
    google_maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    google_maps_language: Optional[str] = Field(
        default=None,
        description="Optional language code passed to the Distance Matrix API.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    distance_request_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        description="Upper bound for the batched distance lookup before falling back to haversine.",
    )
    distance_cache_backend: Literal["memory", "supabase"] = Field(default="memory")
    distance_cache_ttl_seconds: int = Field(default=86400, ge=1)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
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
    supabase_distance_cache_table: str = Field(default="distance_cache")

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
