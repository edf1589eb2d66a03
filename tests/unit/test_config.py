"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from app.config import Settings


def _settings(**overrides):
    values = {"database_url": "sqlite:///:memory:"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Tests for Settings validation and helpers."""

    def test_queue_defaults(self):
        settings = _settings()

        assert settings.pending_queue_key == "offlineAnswers"
        assert settings.last_sync_key == "lastSyncTime"

    def test_environment_normalized(self):
        settings = _settings(environment="PRODUCTION")

        assert settings.environment == "production"
        assert settings.is_production is True
        assert settings.is_development is False

    def test_unknown_environment_invalid(self):
        with pytest.raises(ValidationError):
            _settings(environment="qa")

    def test_log_level_normalized(self):
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_invalid(self):
        with pytest.raises(ValidationError):
            _settings(log_level="LOUD")

    @pytest.mark.parametrize("key", ["", "queue/answers", "..\\answers"])
    def test_storage_key_with_path_separator_invalid(self, key):
        with pytest.raises(ValidationError):
            _settings(pending_queue_key=key)

    def test_allowed_origins_list(self):
        settings = _settings(allowed_origins="http://a.test, http://b.test,")

        assert settings.get_allowed_origins_list() == ["http://a.test", "http://b.test"]
