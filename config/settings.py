"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/intake.db")

    COMPOSE_DELAY_SECONDS: float = Field(default=1.5, ge=0.0)
    QUESTIONS_PER_SKILL: int = Field(default=2, ge=1)
    MAX_QUESTIONS: int = Field(default=5, ge=1, le=5)
    CONVERSATION_TTL_SECONDS: float = Field(default=3600.0, ge=0.0)

    SESSION_API_BASE_URL: str = "http://localhost:8000"
    SESSION_API_TIMEOUT_S: float = Field(default=10.0, ge=0.1)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
