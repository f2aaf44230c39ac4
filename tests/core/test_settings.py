"""Tests for SqlSpineSettings (pydantic-settings, SQLSPINE_* env vars)."""

import pytest
from pydantic import ValidationError

from sqlspine.core.settings import DEFAULT_TIMEOUT, SqlSpineSettings, get_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray SQLSPINE_* variables or .env file."""
    monkeypatch.chdir(tmp_path)
    for key in ("URL", "DEBUG", "DEFAULT_TIMEOUT", "POOL_SIZE", "LOAD_SCHEMA", "JSON_LOGS"):
        monkeypatch.delenv(f"SQLSPINE_{key}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:
    def test_defaults(self):
        settings = SqlSpineSettings()
        assert settings.url == "sqlite:///:memory:"
        assert settings.default_timeout == DEFAULT_TIMEOUT == 5.0
        assert settings.debug is False
        assert settings.load_schema is True
        assert settings.pool_size == 5
        assert settings.json_logs is None


class TestEnvironment:
    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("SQLSPINE_URL", "mysql://app:secret@db:3306/shop")
        monkeypatch.setenv("SQLSPINE_DEBUG", "true")
        monkeypatch.setenv("SQLSPINE_DEFAULT_TIMEOUT", "12.5")
        settings = SqlSpineSettings()
        assert settings.url == "mysql://app:secret@db:3306/shop"
        assert settings.debug is True
        assert settings.default_timeout == 12.5

    def test_reads_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text("SQLSPINE_POOL_SIZE=9\n")
        assert SqlSpineSettings().pool_size == 9

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SQLSPINE_DEBUG", "true")
        assert get_settings() is first


class TestValidation:
    def test_timeout_below_one_second_rejected(self):
        with pytest.raises(ValidationError):
            SqlSpineSettings(default_timeout=0.5)

    def test_pool_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            SqlSpineSettings(pool_size=0)
