# app/core/job_store/memory.py
from __future__ import annotations
from dataclasses import replace
from typing import Dict, List, Optional
from uuid import uuid4

from app.core.collaborators.base import ReviewLookup
from app.core.job_store.base import (
    SentimentAggregate,
    SentimentJobRecord,
    SentimentJobStore,
    SentimentResultRecord,
    SentimentResultStore,
)
from app.core.sentiment.base import clamp_score
from app.messages.sentiment_messages import JOB_ALREADY_EXISTS
from app.models.db.sentiment_job import JobStatus
from app.models.db.timestamps import utcnow
from app.utils.exceptions import ConflictError


class InMemorySentimentJobStore(SentimentJobStore):
    """
    Process-local store for offline runs and tests.
    No awaits happen between read and write, so every method is atomic
    with respect to other coroutines on the same loop.
    """

    def __init__(self):
        self._jobs: Dict[str, SentimentJobRecord] = {}

    async def create(self, review_id: str) -> SentimentJobRecord:
        if any(j.review_id == review_id for j in self._jobs.values()):
            raise ConflictError(code="SENTIMENT_JOB_EXISTS", message=JOB_ALREADY_EXISTS)
        now = utcnow()
        job = SentimentJobRecord(
            id=str(uuid4()),
            review_id=review_id,
            status=JobStatus.PENDING,
            attempts=0,
            error=None,
            created_at=now,
            updated_at=now,
        )
        self._jobs[job.id] = job
        return job

    async def find_by_id(self, job_id: str) -> Optional[SentimentJobRecord]:
        return self._jobs.get(job_id)

    async def find_by_review_id(self, review_id: str) -> Optional[SentimentJobRecord]:
        return next(
            (j for j in self._jobs.values() if j.review_id == review_id), None
        )

    async def find_pending_jobs(self, limit: int = 10) -> List[SentimentJobRecord]:
        pending = [j for j in self._jobs.values() if j.status == JobStatus.PENDING]
        pending.sort(key=lambda j: (j.created_at, j.id))
        return pending[:limit]

    def _update(self, job_id: str, **changes) -> Optional[SentimentJobRecord]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        job = replace(job, updated_at=utcnow(), **changes)
        self._jobs[job_id] = job
        return job

    async def claim(self, job_id: str) -> Optional[SentimentJobRecord]:
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.PENDING:
            return None
        return self._update(
            job_id, status=JobStatus.PROCESSING, attempts=job.attempts + 1
        )

    async def mark_processing(self, job_id: str) -> Optional[SentimentJobRecord]:
        return self._update(job_id, status=JobStatus.PROCESSING)

    async def mark_pending(self, job_id: str) -> Optional[SentimentJobRecord]:
        return self._update(job_id, status=JobStatus.PENDING)

    async def mark_done(self, job_id: str) -> Optional[SentimentJobRecord]:
        return self._update(job_id, status=JobStatus.DONE, error=None)

    async def mark_failed(
        self, job_id: str, error: str
    ) -> Optional[SentimentJobRecord]:
        return self._update(job_id, status=JobStatus.FAILED, error=error)

    async def increment_attempts(self, job_id: str) -> Optional[SentimentJobRecord]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        return self._update(job_id, attempts=job.attempts + 1)


class InMemorySentimentResultStore(SentimentResultStore):
    """Resolves review -> event through the review collaborator."""

    def __init__(self, reviews: ReviewLookup):
        self._reviews = reviews
        self._results: Dict[str, SentimentResultRecord] = {}  # keyed by review_id

    async def upsert(
        self,
        review_id: str,
        sentiment_class: int,
        label: str,
        score: float,
        negative_summary: Optional[str] = None,
    ) -> SentimentResultRecord:
        now = utcnow()
        existing = self._results.get(review_id)
        record = SentimentResultRecord(
            id=existing.id if existing else str(uuid4()),
            review_id=review_id,
            sentiment_class=sentiment_class,
            label=label,
            score=clamp_score(score),
            negative_summary=negative_summary,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._results[review_id] = record
        return record

    async def find_by_review_id(
        self, review_id: str
    ) -> Optional[SentimentResultRecord]:
        return self._results.get(review_id)

    async def find_by_event_id(self, event_id: str) -> List[SentimentResultRecord]:
        matched = []
        for record in list(self._results.values()):
            review = await self._reviews.get_review(record.review_id)
            if review and review.event_id == event_id:
                matched.append(record)
        matched.sort(key=lambda r: (r.updated_at, r.review_id), reverse=True)
        return matched

    async def aggregate_by_event(self, event_id: str) -> SentimentAggregate:
        rows = await self.find_by_event_id(event_id)
        n = len(rows)
        return SentimentAggregate(
            analyzed_count=n,
            positive_count=sum(1 for r in rows if r.sentiment_class == 1),
            negative_count=sum(1 for r in rows if r.sentiment_class == -1),
            neutral_count=sum(1 for r in rows if r.sentiment_class == 0),
            average_score=(sum(r.score for r in rows) / n) if n else None,
        )
