from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Timeleave"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://timeleave:timeleave@db:5432/timeleave"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Calendar used for "resolved today" projections.
    timezone: str = "UTC"
    leave_number_prefix: str = "LEAVE"
    notification_poll_seconds: int = 30


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
