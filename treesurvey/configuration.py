"""Mini README: Centralised configuration models and helpers for treesurvey.

Structure:
    * TreeSurveySettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read ``TREESURVEY_*`` environment variables (or
    a local ``.env`` file). The configuration is cached so validation happens
    once per process.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TreeSurveySettings(BaseSettings):
    """Runtime configuration for the tree survey toolkit."""

    model_config = SettingsConfigDict(
        env_prefix="TREESURVEY_",
        env_file=".env",
        case_sensitive=False,
    )

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: str = Field(
        "INFO",
        description="Root logging level name (DEBUG, INFO, WARNING, ...).",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the capture service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the capture service exposes.",
        ge=1,
        le=65535,
    )
    export_basename: str = Field(
        "tree_survey",
        description="Prefix used for suggested export file names.",
    )
    geo_container_embed_photos: bool = Field(
        False,
        description="Pack entry photos into KMZ exports and reference them from placemarks.",
    )
    default_species: str = Field(
        "Acacia",
        description="Species pre-filled on the capture form.",
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        """Upper-case level names so ``debug`` and ``DEBUG`` behave alike."""

        return value.strip().upper()

    @field_validator("export_basename")
    @classmethod
    def _reject_path_separators(cls, value: str) -> str:
        """Suggested file names must not smuggle in directories."""

        cleaned = value.strip()
        if not cleaned or "/" in cleaned or "\\" in cleaned:
            raise ValueError("export_basename must be a bare, non-empty file name prefix")
        return cleaned


@lru_cache()
def get_settings() -> TreeSurveySettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return TreeSurveySettings()
