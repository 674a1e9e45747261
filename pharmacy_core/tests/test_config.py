"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from pharmacy_core.config import (
    DEFAULT_TTL_MINUTES,
    get_settings,
    load_settings_from_env,
    reset_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PMACS_DATA_DIR", raising=False)
        monkeypatch.delenv("PMACS_CACHE_TTL_TRANSACTIONS_MINUTES", raising=False)
        settings = load_settings_from_env()
        assert settings.store.inventory_path == Path("./data") / "inventory_master.csv"
        assert settings.cache.ttl_seconds("transactions") == DEFAULT_TTL_MINUTES["transactions"] * 60

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PMACS_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("PMACS_CACHE_TTL_INVENTORY_MINUTES", "1")
        monkeypatch.setenv("PMACS_CACHE_SWEEP_SECONDS", "15")
        settings = load_settings_from_env()
        assert settings.store.users_path == tmp_path / "user_access.csv"
        assert settings.cache.ttl_seconds("inventory") == 60.0
        assert settings.cache.sweep_interval_seconds == 15.0

    def test_invalid_number_falls_back(self, monkeypatch):
        monkeypatch.setenv("PMACS_CACHE_SWEEP_SECONDS", "soon")
        assert load_settings_from_env().cache.sweep_interval_seconds == 60.0

    def test_get_settings_is_cached_until_reset(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PMACS_DATA_DIR", str(tmp_path))
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
