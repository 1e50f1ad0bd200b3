"""
Configuration settings for the quizwise service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./quizwise.db",
        description="SQLAlchemy connection string (PostgreSQL in production)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # ========================================
    # Authentication
    # ========================================
    jwt_secret: str = Field(
        default="dev-secret-change-me",
        description="HMAC secret used to sign bearer tokens",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    access_token_ttl_minutes: int = Field(
        default=120,
        ge=1,
        description="Lifetime of issued access tokens",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )
    log_rotation: str = Field(
        default="10 MB",
        description="Rotation threshold for the log file sink",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )

    # ========================================
    # Quiz Management
    # ========================================
    quiz_list_max_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum page size for quiz listings",
    )

    @property
    def is_sqlite(self) -> bool:
        """True when the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    def get_public_config(self) -> dict[str, object]:
        """Get current configuration without secrets."""
        return {
            "database": self.database_url.split("@")[-1]
            if "@" in self.database_url
            else self.database_url.split("://")[0],
            "log_level": self.log_level,
            "api": {"host": self.api_host, "port": self.api_port},
            "quiz_list_max_limit": self.quiz_list_max_limit,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
