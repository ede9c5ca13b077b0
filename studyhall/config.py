"""
Environment-specific settings for the admissions service.

    app.config.from_object(config[os.getenv("APP_ENV", "development")]())
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'studyhall_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Per-process key; sessions do not survive a dev restart.
_DEV_SECRET = secrets.token_hex(32)

_POOL = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_recycle": 300,
    "pool_timeout": 20,
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def _database_url() -> str:
    # SQLAlchemy 2 only understands the postgresql:// scheme
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else ""


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = dict(_POOL)

    # Tokens are minted by the login service; this app only verifies them.
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_EXPIRES = int(os.getenv("JWT_ACCESS_EXPIRES", "900"))

    # Flask-Limiter storage URI
    REDIS_URL = os.getenv("REDIS_URL", "memory://")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Off: accept trusts the seat / shift / locker ids on the request.
    ADMISSION_STRICT_ALLOCATION = _env_flag("ADMISSION_STRICT_ALLOCATION")
    ADMISSION_PAGE_SIZE_MAX = 100
    PUBLIC_REGISTRATION_RATE_LIMIT = os.getenv("PUBLIC_REGISTRATION_RATE_LIMIT", "10/minute")

    MAX_CONTENT_LENGTH = 2 * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url() or _SQLITE_DEV


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-with-32-bytes!!"
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """PostgreSQL with a 30s statement timeout; secrets must come from the environment."""

    SQLALCHEMY_DATABASE_URI = _database_url() or None
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SQLALCHEMY_ENGINE_OPTIONS = {
        **_POOL,
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
