from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from app.models.db.review import SentimentStatus


@dataclass(frozen=True)
class ReviewRecord:
    id: str
    event_id: str
    comment: Optional[str]
    sentiment_label: Optional[str] = None
    sentiment_score: Optional[float] = None
    sentiment_status: str = SentimentStatus.PENDING.value


class ReviewLookup(ABC):
    """What the sentiment pipeline needs from the review module."""

    @abstractmethod
    async def get_review(self, review_id: str) -> Optional[ReviewRecord]: ...

    @abstractmethod
    async def update_review_sentiment(
        self,
        review_id: str,
        label: str,
        score: float,
        status: SentimentStatus = SentimentStatus.ANALYZED,
    ) -> bool:
        """Write the denormalized fields. False if the review is gone."""
        ...

    @abstractmethod
    async def update_review_sentiment_status(
        self, review_id: str, status: SentimentStatus
    ) -> bool: ...

    @abstractmethod
    async def count_reviews_for_event(self, event_id: str) -> int: ...


class EventLookup(ABC):
    @abstractmethod
    async def get_event_owner(self, event_id: str) -> Optional[str]:
        """Organizer id owning the event, or None if the event does not exist."""
        ...
