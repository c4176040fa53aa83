"""
Configuration settings for ppcalc.

This module provides a settings class for ppcalc, with support for loading
configuration from TOML files and environment variables.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class Settings(BaseSettings):
    """Main settings class for ppcalc.

    This class handles loading configuration from TOML files and environment variables,
    with support for custom settings sources.
    """

    model_config = SettingsConfigDict(
        toml_file=["settings.toml", "settings.custom.toml"], env_prefix="PPCALC_", extra="ignore"
    )

    # Storage settings
    storage_path: str = str(Path.home() / "ppcalc")

    # Beatmap download settings
    beatmap_download_url: str = "https://osu.ppy.sh/osu/"
    beatmap_cache_dir: str | None = None  # If None, will use {storage_path}/beatmaps
    beatmap_cache_days: int = 7
    beatmap_min_size: int = 30
    fetch_timeout: float = 30.0
    fetch_attempts: int = 3
    fetch_retry_delay: float = 3.0

    # In-memory beatmap tier
    memory_cache_ttl_minutes: int = 30
    memory_cache_max_entries: int = 256

    # Derived artifact memoization
    memoize_artifacts: bool = True
    memoize_max_entries: int | None = None  # None keeps every artifact for the process lifetime
    memoize_single_flight: bool = False

    # Calculation settings
    calculation_timeout: float = 30.0

    # Logging settings
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str | None = None  # If None, will use {storage_path}/logs
    log_rotation: str = "20 MB"
    log_retention: str = "1 week"
    log_format: str | None = None  # Use default if None

    @property
    def beatmap_cache_ttl_seconds(self) -> int:
        """Get beatmap file retention window in seconds."""
        return self.beatmap_cache_days * 24 * 3600

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the sources for settings.

        Priority order: init arguments, environment variables, then TOML config files
        """
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    def get_beatmap_cache_dir(self) -> Path:
        """Get the beatmap cache directory path.

        Returns:
            Path to the beatmap cache directory. Uses beatmap_cache_dir if specified,
            otherwise a beatmaps directory in storage_path.
        """
        if self.beatmap_cache_dir:
            return Path(self.beatmap_cache_dir)
        return Path(self.storage_path) / "beatmaps"

    def get_log_dir(self) -> Path:
        """Get the log directory path.

        Returns:
            Path to the log directory. Uses log_dir if specified,
            otherwise creates logs directory in storage_path.
        """
        if self.log_dir:
            return Path(self.log_dir)
        return Path(self.storage_path) / "logs"


@lru_cache
def get_settings() -> Settings:
    """Get the settings instance, with caching.

    Returns:
        Cached Settings instance
    """
    return Settings()


# Create a global settings instance for easy imports
settings = get_settings()
