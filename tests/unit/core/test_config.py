"""Unit tests for settings."""

import pytest
from pydantic import ValidationError

from policy_rating.core.config import Settings, clear_settings_cache, get_settings
from policy_rating.core.logging_utils import level_from_name


class TestSettings:
    """Test settings validation."""

    def test_defaults(self):
        settings = Settings()

        assert settings.database_pool_min == 5
        assert settings.database_pool_max == 20
        assert settings.catalog_cache_enabled is False
        assert settings.default_currency == "USD"
        assert settings.is_development

    def test_pool_max_below_min_rejected(self):
        with pytest.raises(ValidationError, match="database_pool_max"):
            Settings(database_pool_min=10, database_pool_max=6)

    def test_currency_normalized(self):
        assert Settings(default_currency="zwg").default_currency == "ZWG"

    @pytest.mark.parametrize(
        "overrides", [{"api_env": "qa"}, {"log_level": "verbose"}, {"unknown": 1}]
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_settings_are_immutable(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.api_env = "production"

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://db:5432/rating")
        monkeypatch.setenv("CATALOG_CACHE_ENABLED", "true")

        settings = Settings()

        assert settings.database_url == "postgresql://db:5432/rating"
        assert settings.catalog_cache_enabled is True


class TestSettingsCache:
    """Test the process-wide settings accessor."""

    def test_cached_until_cleared(self, monkeypatch):
        clear_settings_cache()
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("API_ENV", "production")
        clear_settings_cache()
        try:
            assert get_settings().is_production
        finally:
            clear_settings_cache()


class TestLogLevels:
    """Test log level names from settings."""

    def test_known_level(self):
        assert level_from_name("warning") == 30

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            level_from_name("LOUD")
