from __future__ import annotations
from dataclasses import replace
from typing import Dict, Optional

from app.core.collaborators.base import EventLookup, ReviewLookup, ReviewRecord
from app.models.db.review import SentimentStatus


class InMemoryReviewLookup(ReviewLookup):
    def __init__(self):
        self.reviews: Dict[str, ReviewRecord] = {}

    def add(self, review_id: str, event_id: str, comment: Optional[str]) -> ReviewRecord:
        record = ReviewRecord(id=review_id, event_id=event_id, comment=comment)
        self.reviews[review_id] = record
        return record

    def remove(self, review_id: str) -> None:
        self.reviews.pop(review_id, None)

    async def get_review(self, review_id: str) -> Optional[ReviewRecord]:
        return self.reviews.get(review_id)

    async def update_review_sentiment(
        self,
        review_id: str,
        label: str,
        score: float,
        status: SentimentStatus = SentimentStatus.ANALYZED,
    ) -> bool:
        review = self.reviews.get(review_id)
        if review is None:
            return False
        self.reviews[review_id] = replace(
            review,
            sentiment_label=label,
            sentiment_score=score,
            sentiment_status=SentimentStatus(status).value,
        )
        return True

    async def update_review_sentiment_status(
        self, review_id: str, status: SentimentStatus
    ) -> bool:
        review = self.reviews.get(review_id)
        if review is None:
            return False
        self.reviews[review_id] = replace(
            review, sentiment_status=SentimentStatus(status).value
        )
        return True

    async def count_reviews_for_event(self, event_id: str) -> int:
        return sum(1 for r in self.reviews.values() if r.event_id == event_id)


class InMemoryEventLookup(EventLookup):
    def __init__(self, owners: Optional[Dict[str, str]] = None):
        self.owners: Dict[str, str] = dict(owners or {})

    async def get_event_owner(self, event_id: str) -> Optional[str]:
        return self.owners.get(event_id)
