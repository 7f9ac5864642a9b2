from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from app.models.db.sentiment_job import JobStatus


@dataclass(frozen=True)
class SentimentJobRecord:
    id: str
    review_id: str
    status: JobStatus
    attempts: int
    error: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SentimentResultRecord:
    id: str
    review_id: str
    sentiment_class: int
    label: str
    score: float
    negative_summary: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SentimentAggregate:
    analyzed_count: int
    positive_count: int
    negative_count: int
    neutral_count: int
    average_score: Optional[float]  # None when nothing is analyzed


class SentimentJobStore(ABC):
    """
    Queue-like job table, one job per review.

    Every transition is a single-row write that returns the updated record,
    or None when the job no longer exists (or the write failed transiently).
    """

    @abstractmethod
    async def create(self, review_id: str) -> SentimentJobRecord:
        """Insert a PENDING job. Raises ConflictError if the review already has one."""
        ...

    @abstractmethod
    async def find_by_id(self, job_id: str) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def find_by_review_id(self, review_id: str) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def find_pending_jobs(self, limit: int = 10) -> List[SentimentJobRecord]:
        """Up to `limit` PENDING jobs, oldest first."""
        ...

    @abstractmethod
    async def claim(self, job_id: str) -> Optional[SentimentJobRecord]:
        """
        Atomically move a PENDING job to PROCESSING and bump its attempts.
        Returns None if the job is gone or was not PENDING any more.
        """
        ...

    @abstractmethod
    async def mark_processing(self, job_id: str) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def mark_pending(self, job_id: str) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def mark_done(self, job_id: str) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def mark_failed(
        self, job_id: str, error: str
    ) -> Optional[SentimentJobRecord]: ...

    @abstractmethod
    async def increment_attempts(self, job_id: str) -> Optional[SentimentJobRecord]: ...


class SentimentResultStore(ABC):
    """Authoritative per-review sentiment, one row per review."""

    @abstractmethod
    async def upsert(
        self,
        review_id: str,
        sentiment_class: int,
        label: str,
        score: float,
        negative_summary: Optional[str] = None,
    ) -> SentimentResultRecord: ...

    @abstractmethod
    async def find_by_review_id(
        self, review_id: str
    ) -> Optional[SentimentResultRecord]: ...

    @abstractmethod
    async def find_by_event_id(self, event_id: str) -> List[SentimentResultRecord]:
        """Results for the event's reviews, most recently updated first."""
        ...

    @abstractmethod
    async def aggregate_by_event(self, event_id: str) -> SentimentAggregate: ...
