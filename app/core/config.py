# app/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # Starlette debug mode answers 500s with a traceback instead of the error envelope
    DEBUG: bool = False

    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "events"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    # Full async URL, overrides POSTGRES_* when set (e.g. sqlite+aiosqlite://)
    DATABASE_URL: str | None = None

    FRONTEND_ORIGIN: str | None = None

    # Sentiment pipeline
    AI_API: str | None = None
    SENTIMENT_METHOD: str = "remote"  # remote | keyword | vader | chain
    SENTIMENT_CHAIN: str = "remote,keyword"  # only used when method == chain
    SENTIMENT_PAYLOAD_STYLE: str = "batch"  # batch -> {"reviews": [..]}, simple -> {"text": ..}
    SENTIMENT_HTTP_TIMEOUT_SECONDS: float = 30.0
    SENTIMENT_POLL_INTERVAL_SECONDS: float = 5.0
    SENTIMENT_BATCH_SIZE: int = 5
    SENTIMENT_MAX_ATTEMPTS: int = 3
    SENTIMENT_WORKER_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
    )

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def SYNC_DATABASE_URI(self):
        """URI for tooling that needs a sync driver (Alembic)."""
        return (
            self.SQLALCHEMY_DATABASE_URI.replace("+asyncpg", "+psycopg2")
            .replace("+aiosqlite", "")
        )


settings = Settings()
