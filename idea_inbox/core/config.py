from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "idea-inbox"
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+pysqlite:///./inbox.db"
    # Create the notes table on startup. Deployments that run `alembic upgrade head` can turn this off.
    DB_AUTO_CREATE: bool = True

    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-3-flash-preview"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    EXTRACTION_TIMEOUT_S: float = 15.0

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
