# titletrack/core/config.py
from __future__ import annotations

"""
# TitleTrack — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; the JWT secret is the only required value.
- MongoDB connection assembled from either a full URI or host/credentials.
- Sync routine knobs (batch size, workers, retry cooldown) live here so the
  CLI and tests share one source.

## Usage
    from titletrack.core.config import settings
"""

import logging
from typing import Annotated, List, Literal, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Storage:
        - `MONGODB_URI` wins when set; otherwise the URI is built from
          `MONGO_HOST`/`MONGO_PORT` and optional credentials
          (`authSource=admin` when a user is given).

    Sync:
        - Batch size, worker count and the rate-limit retry policy of the
          background title refresh.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "TitleTrack API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=24 * 60)
    BCRYPT_ROUNDS: int = Field(12, ge=4, le=16)

    # ── Database (MongoDB) ────────────────────────────────────
    MONGODB_URI: Optional[str] = None
    MONGO_USER: Optional[str] = None
    MONGO_PASSWORD: Optional[SecretStr] = None
    MONGO_HOST: str = "localhost"
    MONGO_PORT: int = 27017
    MONGODB_DB: str = "titletrack"
    MONGO_TIMEOUT_MS: int = Field(5000, ge=100, le=60_000)
    ENSURE_INDEXES_ON_STARTUP: bool = True

    # ── External metadata API ─────────────────────────────────
    IMDB_API_BASE_URL: str = "https://api.imdbapi.dev"
    IMDB_TIMEOUT_SECONDS: float = Field(15.0, gt=0, le=120)

    # ── Sync routine ──────────────────────────────────────────
    SYNC_BATCH_SIZE: int = Field(5, ge=1, le=50)
    SYNC_WORKERS: int = Field(5, ge=1, le=32)
    SYNC_MAX_RETRIES: int = Field(3, ge=1, le=10)
    SYNC_RATE_LIMIT_COOLDOWN_SECONDS: float = Field(60.0, ge=0)
    SYNC_EPISODES_PAGE_SIZE: int = Field(50, ge=1, le=250)

    # ── CORS ──────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://localhost:5173"]
    )

    # ── Superuser bootstrap (scripts/create_superuser.py) ─────
    SUPERUSER_NAME: str = "Admin"
    SUPERUSER_USERNAME: Optional[str] = None
    SUPERUSER_EMAIL: Optional[str] = None
    SUPERUSER_PASSWORD: Optional[SecretStr] = None

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("IMDB_API_BASE_URL", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return str(v or "").strip().rstrip("/")

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def mongo_uri(self) -> str:
        """Connection string for the motor client."""
        if self.MONGODB_URI:
            return self.MONGODB_URI
        if self.MONGO_USER:
            password = self.MONGO_PASSWORD.get_secret_value() if self.MONGO_PASSWORD else ""
            return (
                f"mongodb://{quote_plus(self.MONGO_USER)}:{quote_plus(password)}"
                f"@{self.MONGO_HOST}:{self.MONGO_PORT}/?authSource=admin"
            )
        return f"mongodb://{self.MONGO_HOST}:{self.MONGO_PORT}"


# Singleton instance
settings = Settings()
