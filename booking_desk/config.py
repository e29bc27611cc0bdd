"""Application configuration using Pydantic settings."""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RevalidatePolicy(StrEnum):
    """When an update re-runs the conflict check.

    ``fields-complete-only`` re-checks only when the update carries every
    scheduling field, so metadata-only edits (notes, status) are never
    blocked. ``always`` merges the update onto the stored record and
    re-checks on every update.
    """

    FIELDS_COMPLETE_ONLY = "fields-complete-only"
    ALWAYS = "always"


class Settings(BaseSettings):
    """Environment-driven configuration (``BOOKING_DESK_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_DESK_", env_file=".env", env_file_encoding="utf-8"
    )

    app_name: str = Field(default="Booking Desk", description="Title shown in the API docs")
    log_level: str = Field(default="INFO", description="Root level for booking_desk loggers")
    log_format: str = Field(
        default="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        description="logging.Formatter format string",
    )
    revalidate_on_update: RevalidatePolicy = Field(
        default=RevalidatePolicy.FIELDS_COMPLETE_ONLY,
        description="Whether partial updates re-run the conflict check",
    )
    seed_sample_data: bool = Field(
        default=False, description="Load a few venues, items and bookings on startup"
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
