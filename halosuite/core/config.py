"""Application configuration.

Values come from the environment (or a local ``.env`` file). ``DATABASE_URL``
and ``JWT_SECRET_KEY`` have no defaults and must be provided.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_DATABASE_SCHEMES = ("postgresql://", "postgresql+", "postgres://", "sqlite://")

GIB = 1024 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "HaloSuite API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "production", "test"] = "development"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    API_PREFIX: str = "/api"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    DATABASE_URL: str
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = Field(5, ge=1)
    DATABASE_MAX_OVERFLOW: int = Field(10, ge=0)

    # Refresh tokens are signed with their own key when one is configured
    JWT_SECRET_KEY: str = Field(..., min_length=1)
    JWT_REFRESH_SECRET_KEY: str | None = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, gt=0)
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = Field(30, gt=0)

    PASSWORD_MIN_LENGTH: int = Field(8, ge=1)
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(60, gt=0)

    # Per-user storage allowance, reported by /files/storage
    STORAGE_QUOTA_BYTES: int = Field(10 * GIB, gt=0)
    FILE_DOWNLOAD_BASE_URL: str = "/uploads"

    # Messages returned when a conversation is opened
    MESSAGE_HISTORY_LIMIT: int = Field(50, ge=1)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def check_database_scheme(cls, v: str) -> str:
        """PostgreSQL in deployments, SQLite for local runs and tests."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if not v.startswith(SUPPORTED_DATABASE_SCHEMES):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(SUPPORTED_DATABASE_SCHEMES)}"
            )
        return v

    @property
    def refresh_secret_key(self) -> str:
        return self.JWT_REFRESH_SECRET_KEY or self.JWT_SECRET_KEY


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
