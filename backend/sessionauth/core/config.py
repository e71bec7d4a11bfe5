"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is missing)
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
    """Parse an integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or blank.

    Returns
    -------
    int
        Parsed value.

    Raises
    ------
    ValueError
        If the variable is set to something that is not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Not used for tokens.
    ACCESS_TOKEN_SECRET: str
        HMAC key for access tokens.
    REFRESH_TOKEN_SECRET: str
        HMAC key for refresh tokens. Must differ from ``ACCESS_TOKEN_SECRET``.
    ACCESS_TOKEN_TTL: int
        Access token lifetime in seconds (15 minutes by default).
    REFRESH_TOKEN_TTL: int
        Refresh token lifetime in seconds (7 days by default).
    TOKEN_ALGORITHM: str
        HMAC variant used by the signer.
    PASSWORD_HASH_METHOD: str
        Werkzeug hash method for new passwords.
    REDIS_URL: str | None
        Backing store for refresh tokens; in-process store when unset.
    SQLALCHEMY_DATABASE_URI: str
        Database holding user records.
    AUTO_CREATE_TABLES: bool
        Run ``create_all`` at startup (no migration tooling is shipped).
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "CHANGE_ME_ACCESS_TOKEN_SECRET_0000")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "CHANGE_ME_REFRESH_TOKEN_SECRET_000")

    # Token lifetimes (seconds)
    ACCESS_TOKEN_TTL = env_int("ACCESS_TOKEN_TTL", 15 * 60)
    REFRESH_TOKEN_TTL = env_int("REFRESH_TOKEN_TTL", 7 * 24 * 60 * 60)
    TOKEN_ALGORITHM = os.getenv("TOKEN_ALGORITHM", "HS256")

    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # Stores
    REDIS_URL = os.getenv("REDIS_URL") or None
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    AUTO_CREATE_TABLES = env_bool("AUTO_CREATE_TABLES", True)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database and the in-process refresh store.
    - Uses a cheap password hash so suites stay fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    REDIS_URL = None
    ACCESS_TOKEN_SECRET = "testing-access-secret-0123456789abcdef"
    REFRESH_TOKEN_SECRET = "testing-refresh-secret-0123456789abcdef"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Secrets must come from the environment; :func:`sessionauth.core.extensions.init_app`
    refuses to start with the placeholder values.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False


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
