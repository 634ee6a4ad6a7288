"""
Configuration module for the booking core.

All settings are read from environment variables prefixed with ``BOOKING_``.
"""
from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .scheduling.base import TimeSlotConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    docs_enabled: bool = True
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "pretty"] = "pretty"

    # Persistence
    repository_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./booking.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Authorization: "permissive" allows every mutation (development only)
    authz_mode: Literal["permissive", "role"] = "permissive"

    # Global default slot configuration
    default_slot_duration_minutes: int = 30
    default_buffer_time_minutes: int = 0
    default_booking_lead_days: int = 0
    default_booking_ahead_days: int = 30

    @property
    def cors_origin_list(self) -> List[str]:
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def default_time_slot_config(self) -> TimeSlotConfig:
        """Global fallback used for providers without their own config."""
        return TimeSlotConfig(
            slot_duration_minutes=self.default_slot_duration_minutes,
            buffer_time_minutes=self.default_buffer_time_minutes,
            booking_lead_days=self.default_booking_lead_days,
            booking_ahead_days=self.default_booking_ahead_days,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
