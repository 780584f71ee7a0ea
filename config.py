"""
Application configuration loaded from environment variables.

A local .env file is honoured in development; in production the process
environment is the only source.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger("fitness_app")

PLACEHOLDER_SECRETS = {"", "your-super-secret-jwt-key", "change-me"}
MIN_BCRYPT_ROUNDS = 10


class ConfigError(Exception):
    """Raised when required configuration is missing or unsafe."""


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _get_list(key: str, default: List[str]) -> List[str]:
    value = os.getenv(key, "").strip()
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def normalize_database_url(url: str) -> str:
    # SQLAlchemy requires postgresql://, but Render/Heroku hand out postgres://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass
class Settings:
    app_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 8080

    database_url: str = "sqlite:///./fitness_training.db"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_recycle: int = 1800

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    cookie_name: str = "auth_token"
    cookie_domain: str = ""
    cookie_secure: bool = False
    cookie_samesite: str = "lax"

    cors_allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"
    bcrypt_rounds: int = 12

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_postgres(self) -> bool:
        return self.database_url.startswith("postgresql")

    def validate(self) -> "Settings":
        """Reject unusable settings; warn about insecure production ones."""
        if self.jwt_secret in PLACEHOLDER_SECRETS:
            raise ConfigError("JWT_SECRET must be set and changed from the default")
        if self.bcrypt_rounds < MIN_BCRYPT_ROUNDS:
            raise ConfigError(f"BCRYPT_ROUNDS must be at least {MIN_BCRYPT_ROUNDS}")
        if self.access_token_expire_minutes <= 0 or self.refresh_token_expire_days <= 0:
            raise ConfigError("Token lifetimes must be positive")
        if self.cookie_samesite.lower() not in ("lax", "strict", "none"):
            raise ConfigError(f"Invalid COOKIE_SAMESITE: {self.cookie_samesite}")

        if self.is_production:
            if not self.cookie_secure:
                logger.warning("COOKIE_SECURE should be true in production")
            if "sslmode=disable" in self.database_url:
                logger.warning("Database SSL should not be disabled in production")
        return self


def load_settings() -> Settings:
    """Build Settings from the environment (and .env when present)."""
    load_dotenv()

    settings = Settings(
        app_env=os.getenv("APP_ENV", "development"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_get_int("PORT", 8080),
        database_url=normalize_database_url(
            os.getenv("DATABASE_URL", "sqlite:///./fitness_training.db")
        ),
        db_pool_size=_get_int("DB_POOL_SIZE", 20),
        db_max_overflow=_get_int("DB_MAX_OVERFLOW", 10),
        db_pool_recycle=_get_int("DB_POOL_RECYCLE", 1800),
        jwt_secret=os.getenv("JWT_SECRET", ""),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=_get_int("ACCESS_TOKEN_EXPIRE_MINUTES", 15),
        refresh_token_expire_days=_get_int("REFRESH_TOKEN_EXPIRE_DAYS", 7),
        cookie_name=os.getenv("COOKIE_NAME", "auth_token"),
        cookie_domain=os.getenv("COOKIE_DOMAIN", ""),
        cookie_secure=_get_bool("COOKIE_SECURE", False),
        cookie_samesite=os.getenv("COOKIE_SAMESITE", "lax"),
        cors_allowed_origins=_get_list("CORS_ALLOWED_ORIGINS", ["http://localhost:5173"]),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        bcrypt_rounds=_get_int("BCRYPT_ROUNDS", 12),
    )
    return settings.validate()
