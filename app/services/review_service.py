from __future__ import annotations
import logging
from typing import Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.messages.sentiment_messages import EVENT_ID_REQUIRED, EVENT_NOT_FOUND
from app.models.db.event import Event
from app.models.db.review import Review, SentimentStatus
from app.services.sentiment_service import SentimentService
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Review creation, as far as the sentiment pipeline cares about it.
    A review with a non-empty comment gets a sentiment job; enqueueing
    problems are logged and never fail the review itself.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sentiment: Optional[SentimentService] = None,
    ):
        self._session_factory = session_factory
        self.sentiment = sentiment

    async def create_review(
        self,
        user_id: str,
        event_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        if not user_id:
            raise ValidationError(code="USER_ID_REQUIRED", message="User ID is required")
        if not event_id:
            raise ValidationError(code="EVENT_ID_REQUIRED", message=EVENT_ID_REQUIRED)
        if not isinstance(rating, int) or rating < 1 or rating > 5:
            raise ValidationError(
                code="INVALID_RATING", message="Rating must be between 1 and 5"
            )

        async with self._session_factory() as db:
            if await db.get(Event, event_id) is None:
                raise NotFoundError(code="EVENT_NOT_FOUND", message=EVENT_NOT_FOUND)

            existing = (
                await db.execute(
                    select(Review.id).filter_by(user_id=user_id, event_id=event_id)
                )
            ).first()
            if existing:
                raise ConflictError(
                    code="REVIEW_EXISTS", message="You have already reviewed this event"
                )

            review = Review(
                id=str(uuid4()),
                user_id=user_id,
                event_id=event_id,
                rating=rating,
                comment=comment or None,
                sentiment_status=SentimentStatus.PENDING.value,
            )
            db.add(review)
            await db.commit()
            await db.refresh(review)

        if review.comment and review.comment.strip():
            await self._enqueue_sentiment(review.id)
        return review

    async def _enqueue_sentiment(self, review_id: str) -> None:
        if self.sentiment is None:
            return
        try:
            await self.sentiment.create_sentiment_job(review_id)
        except Exception as e:
            logger.error(f"❌ Could not queue sentiment job for review {review_id}: {e}")
