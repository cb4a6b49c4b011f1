"""
Application configuration: loads from environment variables or a .env file.
DATABASE_URL is required; everything else has a default.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Environment ──
    environment: str = "development"

    # ── HTTP ──
    host: str = "0.0.0.0"
    port: int = 8080

    # ── Postgres ──
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 10
    query_timeout_seconds: Optional[float] = None

    # ── Monitoring ──
    log_level: str = "INFO"
    log_format: str = "json"  # json | console

    # ── CORS ──
    cors_origins: str = "http://localhost:3000,http://localhost:8080"

    @field_validator("database_url")
    @classmethod
    def _require_dsn(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return value.strip()

    @property
    def database_dsn(self) -> str:
        """SQLAlchemy URL with an async driver for plain postgres DSNs."""
        for prefix in ("postgres://", "postgresql://"):
            if self.database_url.startswith(prefix):
                return "postgresql+asyncpg://" + self.database_url[len(prefix):]
        return self.database_url

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
