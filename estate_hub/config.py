"""Application configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Type


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    PROJECT_ROOT = Path(__file__).resolve().parent.parent
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")
    DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{PROJECT_ROOT / 'estate_hub.db'}"
    WTF_CSRF_ENABLED = False

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL = int(os.getenv("ACCESS_TOKEN_TTL", str(7 * 24 * 3600)))  # 0 disables expiry
    ACCESS_COOKIE_NAME = "access_token"
    ACCESS_COOKIE_SECURE = _env_bool("ACCESS_COOKIE_SECURE", False)

    DEFAULT_AVATAR = os.getenv(
        "DEFAULT_AVATAR",
        "https://pixabay.com/illustrations/icon-profile-user-clip-art-7797704/",
    )
    SEARCH_DEFAULT_LIMIT = 9
    SEARCH_MAX_LIMIT = 100


class DevelopmentConfig(BaseConfig):
    """Configuration tweaks for local development."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """In-memory database configuration for pytest."""

    DEBUG = False
    TESTING = True
    DATABASE_URL = "sqlite:///:memory:"
    JWT_SECRET = "testing-jwt-secret"


class ProductionConfig(BaseConfig):
    """Production hardened configuration."""

    DEBUG = False
    TESTING = False
    ACCESS_COOKIE_SECURE = _env_bool("ACCESS_COOKIE_SECURE", True)


def get_config() -> Type[BaseConfig]:
    """Return the configuration class based on FLASK_ENV."""

    env = os.getenv("FLASK_ENV", "development").lower()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
