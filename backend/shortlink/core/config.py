"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder secrets refused when running in production
INSECURE_JWT_SECRET: Final[str] = "CHANGE_ME_JWT"

_DURATION_PART = re.compile(r"(\d+)(h|m|s)")

# Loads .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer environment variable.

    :raises ValueError: When the variable is set but not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        raise ValueError(f"Invalid integer value for {name}: {val!r}") from None


def parse_duration(raw: str) -> timedelta:
    """Parse durations such as ``"15m"``, ``"168h"``, ``"1h30m"`` or ``"90"``.

    Bare numbers are read as seconds.

    :param raw: Duration literal.
    :type raw: str
    :returns: Parsed duration.
    :rtype: datetime.timedelta
    :raises ValueError: If the literal cannot be parsed.
    """
    value = raw.strip().lower()
    if value.isdigit():
        return timedelta(seconds=int(value))
    parts = _DURATION_PART.findall(value)
    if not parts or "".join(n + u for n, u in parts) != value:
        raise ValueError(f"Invalid duration value: {raw!r}")
    units = {"h": "hours", "m": "minutes", "s": "seconds"}
    total = timedelta()
    for number, unit in parts:
        total += timedelta(**{units[unit]: int(number)})
    return total


def env_duration(name: str, default: str) -> timedelta:
    """Read a duration environment variable (see :func:`parse_duration`)."""
    return parse_duration(os.getenv(name) or default)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    BASE_URL: str
        Public origin used to render ``short_url`` values.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        HMAC secret used by ``flask-jwt-extended`` to sign access tokens.
    JWT_ACCESS_TTL / JWT_REFRESH_TTL: timedelta
        Lifetimes of access tokens and refresh tokens.
    RATE_LIMIT_AUTH / RATE_LIMIT_REDIRECT: int
        Requests admitted per caller address per window on the auth and
        redirect gates.
    RATE_LIMIT_WINDOW: timedelta
        Length of the sliding admission window.
    RATE_LIMIT_SWEEP_INTERVAL: timedelta
        Period of the background pruning of idle limiter keys.
    RATE_LIMIT_SHARDS: int
        Number of independently locked shards in each limiter table.
    REFRESH_TOKEN_BACKEND: str
        ``"database"`` (default) or ``"redis"``.
    REFRESH_TOKEN_ROTATION: bool
        Issue a new refresh token on every refresh and revoke the old one.
    REFRESH_TOKEN_SWEEP_INTERVAL: timedelta
        Period of the expired refresh-token cleanup.
    SHORT_CODE_LENGTH / SHORT_CODE_MAX_ATTEMPTS: int
        Generated code length and attempt budget of the allocator.
    SCHEDULER_ENABLED: bool
        Starts the background sweep jobs when ``True``.
    CLICK_QUEUE_SIZE: int
        Capacity of the asynchronous click-recording queue.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:8000").rstrip("/")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", INSECURE_JWT_SECRET)
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_TTL = env_duration("JWT_ACCESS_TTL", "15m")
    JWT_REFRESH_TTL = env_duration("JWT_REFRESH_TTL", "168h")
    JWT_ACCESS_TOKEN_EXPIRES = JWT_ACCESS_TTL

    # Admission control
    RATE_LIMIT_AUTH = env_int("RATE_LIMIT_AUTH", 5)
    RATE_LIMIT_REDIRECT = env_int("RATE_LIMIT_REDIRECT", 200)
    RATE_LIMIT_WINDOW = env_duration("RATE_LIMIT_WINDOW", "60s")
    RATE_LIMIT_SWEEP_INTERVAL = env_duration("RATE_LIMIT_SWEEP_INTERVAL", "60s")
    RATE_LIMIT_SHARDS = env_int("RATE_LIMIT_SHARDS", 16)

    # Sessions
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "database").strip().lower()
    REFRESH_TOKEN_ROTATION = env_bool("REFRESH_TOKEN_ROTATION", False)
    REFRESH_TOKEN_SWEEP_INTERVAL = env_duration("REFRESH_TOKEN_SWEEP_INTERVAL", "24h")
    REDIS_URL = os.getenv("REDIS_URL")

    # Links
    SHORT_CODE_LENGTH = env_int("SHORT_CODE_LENGTH", 8)
    SHORT_CODE_MAX_ATTEMPTS = env_int("SHORT_CODE_MAX_ATTEMPTS", 10)
    CLICK_QUEUE_SIZE = env_int("CLICK_QUEUE_SIZE", 10_000)

    # Background jobs
    SCHEDULER_ENABLED = env_bool("SCHEDULER_ENABLED", True)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, proxy & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXY_TRUSTED_HOPS = env_int("PROXY_TRUSTED_HOPS", 1)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables the background scheduler.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Always uses the database refresh-token backend.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    SCHEDULER_ENABLED = False
    REFRESH_TOKEN_BACKEND = "database"
    REFRESH_TOKEN_ROTATION = False
    REDIS_URL = None
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length-for-hs256"
    RATE_LIMIT_AUTH = 5
    RATE_LIMIT_REDIRECT = 200
    BASE_URL = "http://sho.rt"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. :func:`validate_config` refuses to
    start with the placeholder JWT secret.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, object]) -> None:
    """Fail fast on settings that must never reach a running server.

    :param config: Loaded Flask configuration mapping.
    :raises RuntimeError: On an insecure or inconsistent configuration.
    """
    env = os.getenv(ENV_VAR, "development").strip().lower()
    if env == "production" and config.get("JWT_SECRET_KEY") == INSECURE_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")
    backend = config.get("REFRESH_TOKEN_BACKEND", "database")
    if backend not in {"database", "redis"}:
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND: {backend!r}")
    if backend == "redis" and not config.get("REDIS_URL"):
        raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL")
