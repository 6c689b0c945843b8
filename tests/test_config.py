"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from location_resolver.config import (
    DatasetConfig,
    LookupConfig,
    get_config,
    reset_config,
)


def test_defaults():
    config = get_config()

    assert config.lookup.min_confidence == 0.5
    assert config.lookup.ambiguity_window == 0.1
    assert config.lookup.max_alternatives == 5
    assert config.memory_cache.max_size == 1000
    assert config.durable_cache.ttl_days == 7
    assert config.durable_cache.retention_days == 30
    assert config.durable_cache.url.startswith("sqlite:///")
    assert config.dataset.airports_path.name == "airports.csv"


def test_config_is_cached_until_reset(monkeypatch):
    first = get_config()
    monkeypatch.setenv("LOCRES_LOOKUP_MIN_CONFIDENCE", "0.7")

    assert get_config() is first

    reset_config()
    assert get_config().lookup.min_confidence == 0.7


@pytest.mark.parametrize(
    "variable, value, read",
    [
        ("LOCRES_MEMORY_MAX_SIZE", "50", lambda c: c.memory_cache.max_size == 50),
        ("LOCRES_CACHE_ENABLED", "false", lambda c: c.durable_cache.enabled is False),
        ("LOCRES_CACHE_TTL_DAYS", "3", lambda c: c.durable_cache.ttl_days == 3),
        ("LOCRES_LOG_STRUCTURED", "true", lambda c: c.observability.structured),
        ("LOCRES_DATA_DATA_DIR", "/srv/data", lambda c: str(c.dataset.data_dir) == "/srv/data"),
    ],
)
def test_environment_overrides(monkeypatch, variable, value, read):
    monkeypatch.setenv(variable, value)
    assert read(get_config())


def test_fallback_confidence_is_bounded():
    with pytest.raises(ValidationError):
        LookupConfig(fallback_confidence=0.95)


def test_min_confidence_is_bounded():
    with pytest.raises(ValidationError):
        LookupConfig(min_confidence=1.5)


def test_dataset_paths_follow_data_dir(tmp_path):
    config = DatasetConfig(data_dir=tmp_path, aliases_file="aliases.csv")
    assert config.aliases_path == tmp_path / "aliases.csv"
