# app/core/job_store/sql.py
from __future__ import annotations
import logging
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.job_store.base import (
    SentimentAggregate,
    SentimentJobRecord,
    SentimentJobStore,
    SentimentResultRecord,
    SentimentResultStore,
)
from app.core.sentiment.base import clamp_score
from app.messages.sentiment_messages import JOB_ALREADY_EXISTS
from app.models.db.review import Review
from app.models.db.sentiment_job import JobStatus, SentimentJob
from app.models.db.sentiment_result import SentimentResult
from app.models.db.timestamps import utcnow
from app.utils.exceptions import ConflictError

logger = logging.getLogger(__name__)


def _job_record(row: SentimentJob) -> SentimentJobRecord:
    return SentimentJobRecord(
        id=row.id,
        review_id=row.review_id,
        status=JobStatus(row.status),
        attempts=row.attempts,
        error=row.error,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _result_record(row: SentimentResult) -> SentimentResultRecord:
    return SentimentResultRecord(
        id=row.id,
        review_id=row.review_id,
        sentiment_class=row.sentiment_class,
        label=row.label,
        score=row.score,
        negative_summary=row.negative_summary,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemySentimentJobStore(SentimentJobStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, review_id: str) -> SentimentJobRecord:
        async with self._session_factory() as db:
            existing = (
                await db.execute(select(SentimentJob).filter_by(review_id=review_id))
            ).scalar_one_or_none()
            if existing:
                raise ConflictError(code="SENTIMENT_JOB_EXISTS", message=JOB_ALREADY_EXISTS)

            row = SentimentJob(
                id=str(uuid4()),
                review_id=review_id,
                status=JobStatus.PENDING.value,
                attempts=0,
            )
            db.add(row)
            try:
                await db.commit()
            except IntegrityError:
                # lost an insert race on the unique review_id
                await db.rollback()
                raise ConflictError(code="SENTIMENT_JOB_EXISTS", message=JOB_ALREADY_EXISTS)
            await db.refresh(row)
            return _job_record(row)

    async def find_by_id(self, job_id: str) -> Optional[SentimentJobRecord]:
        try:
            async with self._session_factory() as db:
                row = await db.get(SentimentJob, job_id)
                return _job_record(row) if row else None
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Could not load sentiment job {job_id}: {e}")
            return None

    async def find_by_review_id(self, review_id: str) -> Optional[SentimentJobRecord]:
        async with self._session_factory() as db:
            row = (
                await db.execute(select(SentimentJob).filter_by(review_id=review_id))
            ).scalar_one_or_none()
            return _job_record(row) if row else None

    async def find_pending_jobs(self, limit: int = 10) -> List[SentimentJobRecord]:
        async with self._session_factory() as db:
            rows = (
                (
                    await db.execute(
                        select(SentimentJob)
                        .where(SentimentJob.status == JobStatus.PENDING.value)
                        .order_by(SentimentJob.created_at.asc(), SentimentJob.id.asc())
                        .limit(limit)
                    )
                )
                .scalars()
                .all()
            )
            return [_job_record(r) for r in rows]

    async def _transition(
        self, job_id: str, *conditions, **values
    ) -> Optional[SentimentJobRecord]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(SentimentJob)
                    .where(SentimentJob.id == job_id, *conditions)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
                if result.rowcount == 0:
                    return None
                row = await db.get(SentimentJob, job_id)
                return _job_record(row) if row else None
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Sentiment job {job_id} transition failed: {e}")
            return None

    async def claim(self, job_id: str) -> Optional[SentimentJobRecord]:
        return await self._transition(
            job_id,
            SentimentJob.status == JobStatus.PENDING.value,
            status=JobStatus.PROCESSING.value,
            attempts=SentimentJob.attempts + 1,
        )

    async def mark_processing(self, job_id: str) -> Optional[SentimentJobRecord]:
        return await self._transition(job_id, status=JobStatus.PROCESSING.value)

    async def mark_pending(self, job_id: str) -> Optional[SentimentJobRecord]:
        return await self._transition(job_id, status=JobStatus.PENDING.value)

    async def mark_done(self, job_id: str) -> Optional[SentimentJobRecord]:
        return await self._transition(
            job_id, status=JobStatus.DONE.value, error=None
        )

    async def mark_failed(
        self, job_id: str, error: str
    ) -> Optional[SentimentJobRecord]:
        return await self._transition(
            job_id, status=JobStatus.FAILED.value, error=error
        )

    async def increment_attempts(self, job_id: str) -> Optional[SentimentJobRecord]:
        return await self._transition(job_id, attempts=SentimentJob.attempts + 1)


class SqlAlchemySentimentResultStore(SentimentResultStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def upsert(
        self,
        review_id: str,
        sentiment_class: int,
        label: str,
        score: float,
        negative_summary: Optional[str] = None,
    ) -> SentimentResultRecord:
        values = dict(
            sentiment_class=sentiment_class,
            label=label,
            score=clamp_score(score),
            negative_summary=negative_summary,
        )
        try:
            return await self._upsert_once(review_id, values)
        except IntegrityError:
            # a concurrent insert won the unique review_id; now it is an update
            return await self._upsert_once(review_id, values)

    async def _upsert_once(self, review_id: str, values: dict) -> SentimentResultRecord:
        async with self._session_factory() as db:
            existing = (
                await db.execute(select(SentimentResult).filter_by(review_id=review_id))
            ).scalar_one_or_none()

            row = existing or SentimentResult(id=str(uuid4()), review_id=review_id)
            for key, value in values.items():
                setattr(row, key, value)

            if existing is None:
                db.add(row)
            else:
                row.updated_at = utcnow()
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise
            await db.refresh(row)
            return _result_record(row)

    async def find_by_review_id(
        self, review_id: str
    ) -> Optional[SentimentResultRecord]:
        async with self._session_factory() as db:
            row = (
                await db.execute(select(SentimentResult).filter_by(review_id=review_id))
            ).scalar_one_or_none()
            return _result_record(row) if row else None

    async def find_by_event_id(self, event_id: str) -> List[SentimentResultRecord]:
        async with self._session_factory() as db:
            rows = (
                (
                    await db.execute(
                        select(SentimentResult)
                        .join(Review, Review.id == SentimentResult.review_id)
                        .where(Review.event_id == event_id)
                        .order_by(
                            SentimentResult.updated_at.desc(),
                            SentimentResult.id.desc(),
                        )
                    )
                )
                .scalars()
                .all()
            )
            return [_result_record(r) for r in rows]

    async def aggregate_by_event(self, event_id: str) -> SentimentAggregate:
        def _count_class(value: int):
            return func.coalesce(
                func.sum(case((SentimentResult.sentiment_class == value, 1), else_=0)),
                0,
            )

        async with self._session_factory() as db:
            row = (
                await db.execute(
                    select(
                        func.count(SentimentResult.id),
                        _count_class(1),
                        _count_class(-1),
                        _count_class(0),
                        func.avg(SentimentResult.score),
                    )
                    .select_from(SentimentResult)
                    .join(Review, Review.id == SentimentResult.review_id)
                    .where(Review.event_id == event_id)
                )
            ).one()

        analyzed, positive, negative, neutral, average = row
        return SentimentAggregate(
            analyzed_count=int(analyzed or 0),
            positive_count=int(positive or 0),
            negative_count=int(negative or 0),
            neutral_count=int(neutral or 0),
            average_score=float(average) if analyzed and average is not None else None,
        )
