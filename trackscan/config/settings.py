"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

The settings object is created once and cached, so every component of the
scanner sees the same decode and live-mode parameters.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Live Scanning Parameters:
------------------------
- STABLE_FRAMES: consecutive identical reads required before emitting
- COOLDOWN_MS: suppression window for re-emitting the same number
- LIVE_INTERVAL_MS: polling interval for camera frames

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        cors_origins: Allowed CORS origins (JSON array string)
        stable_frames: Consecutive identical reads required to emit
        cooldown_ms: Milliseconds before the same number may emit again
        live_interval_ms: Camera polling interval in live mode
        band_fraction: Fraction of image height used by the band detector
        native_enabled: Use the native (ZBar) detector when available
        fallback_enabled: Use the fallback (ZXing) decoder
        max_image_bytes: Upper bound for a decoded upload
        max_image_pixels: Upper bound for width x height of a decoded upload
        camera_index: Default camera device for local live scanning

    Example:
        >>> settings = Settings()
        >>> print(settings.stable_frames)
        3
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Tracking Number Scanner",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # LIVE SCANNING SETTINGS
    # =========================================================================
    stable_frames: int = Field(
        default=3,
        ge=1,
        le=30,
        description="Same candidate must be read on this many consecutive frames"
    )

    cooldown_ms: int = Field(
        default=900,
        ge=0,
        le=60000,
        description="Suppress re-emitting the same number for this long"
    )

    live_interval_ms: int = Field(
        default=400,
        ge=0,
        le=10000,
        description="Polling interval between live decode attempts"
    )

    camera_index: int = Field(
        default=0,
        ge=0,
        description="Camera device index for local live scanning"
    )

    # =========================================================================
    # DECODE PIPELINE SETTINGS
    # =========================================================================
    band_fraction: float = Field(
        default=0.35,
        gt=0.0,
        lt=1.0,
        description="Band height as a fraction of image height"
    )

    native_enabled: bool = Field(
        default=True,
        description="Try the native ZBar detector first"
    )

    fallback_enabled: bool = Field(
        default=True,
        description="Use the ZXing fallback decoder"
    )

    max_image_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Maximum size of an encoded image upload"
    )

    max_image_pixels: int = Field(
        default=16_000_000,
        ge=1,
        description="Maximum width x height of a decoded image upload"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to 'development' with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    @property
    def live_interval_seconds(self) -> float:
        """Get the live polling interval in seconds."""
        return self.live_interval_ms / 1000.0

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug}, "
            f"stable_frames={self.stable_frames}, "
            f"cooldown_ms={self.cooldown_ms})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Uses lru_cache so only one Settings instance is created for the
    application lifecycle.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
