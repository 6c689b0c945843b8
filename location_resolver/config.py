"""Centralized configuration using Pydantic Settings.

This module provides a single source of truth for all resolver tunables:
confidence thresholds, cache sizes and lifetimes, store timeouts and the
dataset location.

Configuration can be overridden via environment variables:
- LOCRES_LOOKUP_MIN_CONFIDENCE=0.6
- LOCRES_MEMORY_MAX_SIZE=5000
- LOCRES_CACHE_URL=postgresql+psycopg://user@host/db
- LOCRES_DATA_DATA_DIR=/path/to/data
- etc.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LookupConfig(BaseSettings):
    """Matching, scoring and timeout settings.

    Environment variables prefixed with LOCRES_LOOKUP_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_LOOKUP_")

    min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    ambiguity_window: float = Field(default=0.1, ge=0.0, le=1.0)
    max_alternatives: int = Field(default=5, ge=0)
    fuzzy_similarity_floor: float = Field(default=0.3, ge=0.0, le=1.0)
    fuzzy_exponent: float = Field(default=0.8, gt=0.0)
    metro_promotion_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    exact_name_airport_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    alias_default_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    fallback_confidence: float = Field(default=0.9, ge=0.8, le=0.9)
    fallback_code_confidence: float = Field(default=0.8, ge=0.8, le=0.9)
    exact_name_limit: int = Field(default=5, ge=1)
    repository_timeout_seconds: Optional[float] = 2.0
    io_workers: int = Field(default=8, ge=1)
    batch_limit: int = Field(default=50, ge=1)


class MemoryCacheConfig(BaseSettings):
    """In-process LRU settings.

    Environment variables prefixed with LOCRES_MEMORY_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_MEMORY_")

    max_size: int = Field(default=1000, ge=1)
    ttl_seconds: Optional[float] = None


class DurableCacheConfig(BaseSettings):
    """Durable lookup cache settings.

    Environment variables prefixed with LOCRES_CACHE_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_CACHE_")

    enabled: bool = True
    url: str = Field(
        default_factory=lambda: "sqlite:///"
        + str(Path.cwd() / ".location_resolver" / "lookup_cache.db")
    )
    ttl_days: int = Field(default=7, ge=1)
    retention_days: int = Field(default=30, ge=1)
    timeout_seconds: Optional[float] = 1.0
    echo_sql: bool = False


class DatasetConfig(BaseSettings):
    """Location dataset configuration.

    Environment variables prefixed with LOCRES_DATA_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_DATA_")

    data_dir: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent / "data"
    )
    airports_file: str = "airports.csv"
    metros_file: str = "metro_areas.csv"
    aliases_file: str = "airport_aliases.csv"

    @property
    def airports_path(self) -> Path:
        """Full path to airports CSV file."""
        return self.data_dir / self.airports_file

    @property
    def metros_path(self) -> Path:
        """Full path to metro areas CSV file."""
        return self.data_dir / self.metros_file

    @property
    def aliases_path(self) -> Path:
        """Full path to aliases CSV file."""
        return self.data_dir / self.aliases_file


class ObservabilityConfig(BaseSettings):
    """Logging and observability configuration.

    Environment variables prefixed with LOCRES_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False  # Set True for JSON logging


class AppConfig(BaseSettings):
    """Main application configuration aggregating all sub-configs.

    Sub-configurations can be accessed via attributes:

        config = get_config()
        print(config.lookup.min_confidence)
        print(config.dataset.airports_path)

    Environment variables prefixed with LOCRES_.
    """

    model_config = SettingsConfigDict(env_prefix="LOCRES_")

    lookup: LookupConfig = Field(default_factory=LookupConfig)
    memory_cache: MemoryCacheConfig = Field(default_factory=MemoryCacheConfig)
    durable_cache: DurableCacheConfig = Field(default_factory=DurableCacheConfig)
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton application configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.

    Returns:
        The application configuration instance.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache.

    Call this in tests to ensure a fresh configuration is loaded.
    """
    get_config.cache_clear()
