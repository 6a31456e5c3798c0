"""Configuration management for xlsx cell extraction.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XCE_ prefix, or via a .env file in the working directory.

Environment Variables:
    XCE_MAX_WORKERS: Upper bound on concurrent sheet tasks (default: one per sheet)
    XCE_READ_CHUNK_SIZE: Bytes fed to the XML pull parser per read (default: 65536)
    XCE_SHARED_STRINGS_WARNING_THRESHOLD: Entry count that triggers a
        large-dataset warning (default: 1000000)
    XCE_SHARED_STRINGS_HARD_LIMIT: Entry count that aborts the run (default: unset)
    XCE_MERGE_EXPANSION_LIMIT: Largest merged range, in cells, expanded into
        the coordinate lookup (default: 1000000)
    XCE_MERGE_AREA_HARD_LIMIT: Total merged area per sheet that fails the
        sheet (default: unset)
    XCE_PARQUET_COMPRESSION: Parquet codec (default: zstd)
    XCE_LOG_LEVEL: Logging level (default: INFO)
    XCE_DEBUG: Enable debug mode (default: false)
"""

import logging
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PARQUET_CODECS = {"zstd", "snappy", "gzip", "brotli", "none"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables prefixed with
    XCE_ or via a .env file.

    Example .env file:
        XCE_MAX_WORKERS=4
        XCE_LOG_LEVEL=DEBUG
        XCE_SHARED_STRINGS_HARD_LIMIT=5000000
    """

    model_config = SettingsConfigDict(
        env_prefix="XCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Concurrency Settings
    # =========================================================================

    max_workers: int | None = None
    """Maximum concurrent sheet tasks. None runs one task per sheet."""

    # =========================================================================
    # Streaming Settings
    # =========================================================================

    read_chunk_size: int = 64 * 1024
    """Bytes read from an archive member per parser feed."""

    # =========================================================================
    # Resource Limit Settings
    # =========================================================================

    shared_strings_warning_threshold: int = 1_000_000
    """Shared-string count above which a large-dataset warning is logged."""

    shared_strings_hard_limit: int | None = None
    """Shared-string count above which the run is aborted. None disables."""

    merge_expansion_limit: int = 1_000_000
    """Largest merged range (in cells) expanded into the coordinate map.

    Larger ranges are resolved by rectangle containment instead.
    """

    merge_area_hard_limit: int | None = None
    """Total merged area per sheet above which the sheet fails. None disables."""

    # =========================================================================
    # Output Settings
    # =========================================================================

    parquet_compression: str = "zstd"
    """Parquet compression codec: zstd, snappy, gzip, brotli, or none."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with tracebacks on sheet failures."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        """Validate worker count is reasonable."""
        if v is not None and not 1 <= v <= 256:
            raise ValueError(f"max_workers must be between 1 and 256, got {v}")
        return v

    @field_validator("read_chunk_size")
    @classmethod
    def validate_read_chunk_size(cls, v: int) -> int:
        """Validate the parser feed size is at least 1 KiB."""
        if v < 1024:
            raise ValueError(f"read_chunk_size must be at least 1024, got {v}")
        return v

    @field_validator(
        "shared_strings_warning_threshold",
        "shared_strings_hard_limit",
        "merge_expansion_limit",
        "merge_area_hard_limit",
    )
    @classmethod
    def validate_positive_limit(cls, v: int | None) -> int | None:
        """Validate limits are positive when set."""
        if v is not None and v < 1:
            raise ValueError(f"Limit must be at least 1, got {v}")
        return v

    @field_validator("parquet_compression")
    @classmethod
    def validate_parquet_compression(cls, v: str) -> str:
        """Validate the parquet codec name."""
        lower_v = v.strip().lower()
        if lower_v not in PARQUET_CODECS:
            raise ValueError(
                f"Invalid parquet compression: {v}. "
                f"Must be one of: {', '.join(sorted(PARQUET_CODECS))}"
            )
        return lower_v

    @model_validator(mode="after")
    def validate_shared_string_limits(self) -> "Settings":
        """Validate the hard limit is not below the warning threshold."""
        if (
            self.shared_strings_hard_limit is not None
            and self.shared_strings_hard_limit < self.shared_strings_warning_threshold
        ):
            raise ValueError(
                f"shared_strings_hard_limit ({self.shared_strings_hard_limit}) "
                f"must not be less than shared_strings_warning_threshold "
                f"({self.shared_strings_warning_threshold})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    @property
    def parquet_codec(self) -> str | None:
        """Get the codec name as pandas expects it (None for no compression)."""
        return None if self.parquet_compression == "none" else self.parquet_compression

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary for logging.

        Returns:
            Dictionary representation of all settings.
        """
        return {
            "max_workers": self.max_workers,
            "read_chunk_size": self.read_chunk_size,
            "shared_strings_warning_threshold": self.shared_strings_warning_threshold,
            "shared_strings_hard_limit": self.shared_strings_hard_limit,
            "merge_expansion_limit": self.merge_expansion_limit,
            "merge_area_hard_limit": self.merge_area_hard_limit,
            "parquet_compression": self.parquet_compression,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on startup and log a configuration summary.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.shared_strings_hard_limit is None and s.merge_area_hard_limit is None:
        logger.debug(
            "No hard resource limits configured; oversized workbooks only "
            "produce warnings."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_workers={s.max_workers}, "
        f"parquet_compression={s.parquet_compression}"
    )


# Create the global settings instance
settings = Settings()
