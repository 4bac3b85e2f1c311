"""Unit tests for engine settings."""

import pytest
from pydantic import ValidationError

from nutriplan.config import Settings, get_settings


class TestSettings:
    """Tests for Settings and get_settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.planner_max_passes == 80
        assert settings.planner_min_improvement == 0.0001
        assert settings.macro_tolerance_pct == 5.0
        assert settings.environment == "development"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PLANNER_MAX_PASSES", "12")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = Settings(_env_file=None)

        assert settings.planner_max_passes == 12
        assert settings.environment == "production"

    def test_negative_passes_rejected(self, monkeypatch):
        monkeypatch.setenv("PLANNER_MAX_PASSES", "-1")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
