# app/core/collaborators/sql.py
from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.collaborators.base import EventLookup, ReviewLookup, ReviewRecord
from app.models.db.event import Event
from app.models.db.review import Review, SentimentStatus

logger = logging.getLogger(__name__)


class SqlAlchemyReviewLookup(ReviewLookup):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_review(self, review_id: str) -> Optional[ReviewRecord]:
        async with self._session_factory() as db:
            row = await db.get(Review, review_id)
            if not row:
                return None
            return ReviewRecord(
                id=row.id,
                event_id=row.event_id,
                comment=row.comment,
                sentiment_label=row.sentiment_label,
                sentiment_score=row.sentiment_score,
                sentiment_status=row.sentiment_status,
            )

    async def _update(self, review_id: str, **values) -> bool:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(Review)
                    .where(Review.id == review_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Review {review_id} sentiment update failed: {e}")
            return False

    async def update_review_sentiment(
        self,
        review_id: str,
        label: str,
        score: float,
        status: SentimentStatus = SentimentStatus.ANALYZED,
    ) -> bool:
        return await self._update(
            review_id,
            sentiment_label=label,
            sentiment_score=score,
            sentiment_status=SentimentStatus(status).value,
        )

    async def update_review_sentiment_status(
        self, review_id: str, status: SentimentStatus
    ) -> bool:
        return await self._update(
            review_id, sentiment_status=SentimentStatus(status).value
        )

    async def count_reviews_for_event(self, event_id: str) -> int:
        async with self._session_factory() as db:
            count = (
                await db.execute(
                    select(func.count(Review.id)).where(Review.event_id == event_id)
                )
            ).scalar_one()
            return int(count or 0)


class SqlAlchemyEventLookup(EventLookup):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_event_owner(self, event_id: str) -> Optional[str]:
        async with self._session_factory() as db:
            return (
                await db.execute(
                    select(Event.organizer_id).where(Event.id == event_id)
                )
            ).scalar_one_or_none()
