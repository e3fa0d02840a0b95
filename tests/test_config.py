"""Tests for configuration adapter."""

import pytest
from pydantic import ValidationError

from memoryscape.adapters.config import AppConfig


def test_config_loads_defaults() -> None:
    """Given no environment variables, when loading config, then defaults are used."""
    config = AppConfig(_env_file=None)

    assert config.host == "0.0.0.0"
    assert config.port == 5000
    assert config.reload is False
    assert config.store_backend == "memory"
    assert config.jwt_expires_days == 7
    assert config.rate_limit_per_minute == 100
    assert config.ai_rate_limit_per_minute == 10
    assert config.admin_command_token is None
    assert config.ai_enabled is False
    assert config.media_enabled is False


def test_config_loads_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given environment variables, when loading config, then they are used."""
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("STORE_BACKEND", "MONGO")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("CORS_ORIGINS", '["https://memoryscape.example.com"]')
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    config = AppConfig(_env_file=None)

    assert config.host == "127.0.0.1"
    assert config.port == 9000
    assert config.store_backend == "mongo"
    assert config.log_level == "debug"
    assert config.cors_origins == ["https://memoryscape.example.com"]
    assert config.ai_enabled is True


def test_media_needs_all_cloudinary_credentials() -> None:
    """Given partial Cloudinary credentials, when checking media, then it stays disabled."""
    partial = AppConfig(_env_file=None, cloudinary_cloud_name="demo", cloudinary_api_key="k")
    complete = AppConfig(
        _env_file=None,
        cloudinary_cloud_name="demo",
        cloudinary_api_key="k",
        cloudinary_api_secret="s",
    )

    assert partial.media_enabled is False
    assert complete.media_enabled is True


def test_config_validates_store_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given an unknown store backend, when loading config, then validation error is raised."""
    monkeypatch.setenv("STORE_BACKEND", "redis")

    with pytest.raises(ValidationError, match="store_backend must be either"):
        AppConfig(_env_file=None)


def test_config_validates_log_level() -> None:
    """Given an unknown log level, when loading config, then validation error is raised."""
    with pytest.raises(ValidationError, match="log_level must be one of"):
        AppConfig(_env_file=None, log_level="verbose")


@pytest.mark.parametrize(
    "field",
    ["rate_limit_per_minute", "presence_stale_after_seconds", "connection_queue_size"],
)
def test_config_rejects_non_positive_limits(field: str) -> None:
    """Given a zero limit, when loading config, then validation error is raised."""
    with pytest.raises(ValidationError, match="value must be positive"):
        AppConfig(_env_file=None, **{field: 0})
