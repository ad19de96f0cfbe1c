# jobboard/config.py

from __future__ import annotations
import re
from datetime import timedelta
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "fallback-secret-key-for-development-only"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value) -> timedelta:
    """Parse ``30s`` / ``15m`` / ``24h`` / ``7d`` or plain seconds into a timedelta."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit.lower()])


class Settings(BaseSettings):
    # --- Core ---
    ENVIRONMENT: str = Field("development", description="'production' hides stack traces")
    HOST: str = "0.0.0.0"
    PORT: int = 5008
    APP_NAME: str = "Job Board"
    CLIENT_URL: str = "http://localhost:5174"
    CORS_ORIGIN: str = "http://localhost:5174"
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./jobboard.db")

    # --- Tokens ---
    JWT_SECRET: str = Field(DEV_JWT_SECRET, description="JWT signing key")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRY: timedelta = Field(timedelta(hours=24))
    JWT_REFRESH_EXPIRY: timedelta = Field(timedelta(days=7))
    PASSWORD_RESET_EXPIRY: timedelta = Field(timedelta(hours=1))
    EMAIL_VERIFICATION_EXPIRY: timedelta = Field(timedelta(hours=24))
    # Tolerated clock drift between issuer and verifier
    JWT_LEEWAY_SECONDS: int = Field(30, ge=0, le=300)

    # Shared revocation store; in-memory when unset
    REDIS_URL: Optional[str] = None

    # --- Auth route rate limiting (fixed window per client IP) ---
    RATE_LIMIT_MAX: int = Field(100, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: int = Field(15 * 60, ge=1)

    # --- Uploads ---
    UPLOAD_DIR: str = "uploads"
    MAX_RESUME_BYTES: int = 5 * 1024 * 1024

    # --- Jobs ---
    DEFAULT_DEADLINE_DAYS: int = Field(30, ge=1)

    # --- Email (SMTP); messages are only logged when EMAIL_HOST is unset ---
    EMAIL_HOST: Optional[str] = None
    EMAIL_PORT: int = 587
    EMAIL_SECURE: bool = False
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_FROM: str = "no-reply@jobboard.local"
    EMAIL_VERIFICATION_REQUIRED: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator(
        "JWT_ACCESS_EXPIRY",
        "JWT_REFRESH_EXPIRY",
        "PASSWORD_RESET_EXPIRY",
        "EMAIL_VERIFICATION_EXPIRY",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value):
        return parse_duration(value)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def uses_default_secret(self) -> bool:
        return self.JWT_SECRET == DEV_JWT_SECRET

settings = Settings()
