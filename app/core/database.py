# app/core/database.py
from typing import Optional

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
)
from sqlalchemy.orm import declarative_base
from app.core.config import settings

Base = declarative_base()


class Database:
    def __init__(self, url: Optional[str] = None, **engine_kwargs):
        self._engine: AsyncEngine = create_async_engine(
            url or settings.SQLALCHEMY_DATABASE_URI,
            echo=False,
            future=True,
            **engine_kwargs,
        )
        self._SessionLocal = async_sessionmaker(
            bind=self._engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._SessionLocal

    async def create_all(self) -> None:
        """Create every mapped table. Used by tests and local bootstrap only."""
        # make sure all models are registered on Base.metadata
        from app.models.db import event, review, sentiment_job, sentiment_result  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()


database = Database()
