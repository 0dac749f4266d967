"""Unit tests for environment-driven configuration helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest
from shortlink.core.config import (
    INSECURE_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
    parse_duration,
    validate_config,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("15m", timedelta(minutes=15)),
        ("168h", timedelta(hours=168)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("90", timedelta(seconds=90)),
        (" 45S ", timedelta(seconds=45)),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "15x", "m15", "1h 30m", "-5m"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_env_bool(monkeypatch):
    monkeypatch.setenv("FLAG_ON", "Yes")
    monkeypatch.setenv("FLAG_OFF", "0")
    monkeypatch.delenv("FLAG_MISSING", raising=False)

    assert env_bool("FLAG_ON") is True
    assert env_bool("FLAG_OFF", default=True) is False
    assert env_bool("FLAG_MISSING", default=True) is True


def test_env_int(monkeypatch):
    monkeypatch.setenv("SOME_INT", " 42 ")
    monkeypatch.setenv("BAD_INT", "forty")

    assert env_int("SOME_INT", 1) == 42
    assert env_int("UNSET_INT_FOR_TEST", 7) == 7
    with pytest.raises(ValueError, match="BAD_INT"):
        env_int("BAD_INT", 1)


@pytest.mark.parametrize(
    ("name", "cls"),
    [
        ("production", ProductionConfig),
        ("Testing", TestingConfig),
        ("nonsense", DevelopmentConfig),
    ],
)
def test_get_config(monkeypatch, name, cls):
    monkeypatch.setenv("APP_ENV", name)

    assert get_config() is cls


def test_validate_config_refuses_placeholder_secret_in_production(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        validate_config({"JWT_SECRET_KEY": INSECURE_JWT_SECRET})
    validate_config({"JWT_SECRET_KEY": "a-real-secret"})


def test_validate_config_backend_checks(monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")

    with pytest.raises(RuntimeError, match="Unknown"):
        validate_config({"REFRESH_TOKEN_BACKEND": "memcached"})
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        validate_config({"REFRESH_TOKEN_BACKEND": "redis"})
    validate_config({"REFRESH_TOKEN_BACKEND": "redis", "REDIS_URL": "redis://localhost:6379/0"})


def test_testing_defaults():
    assert TestingConfig.TESTING is True
    assert TestingConfig.SCHEDULER_ENABLED is False
    assert TestingConfig.RATE_LIMIT_AUTH == 5
