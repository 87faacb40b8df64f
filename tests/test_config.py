"""Tests for config.py environment parsing."""

from datetime import timezone

from config import DEFAULT_DATABASE_URL, Settings


class TestSettingsFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "SQL_ECHO", "CORS_ORIGINS", "STATS_TIMEZONE", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.sql_echo is False
        assert settings.cors_origins == ["http://localhost:3000"]
        assert settings.tz is timezone.utc
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
        monkeypatch.setenv("SQL_ECHO", "true")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite:///other.db"
        assert settings.sql_echo is True
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"
