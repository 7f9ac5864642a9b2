from __future__ import annotations
import logging
from typing import List, Optional

from app.core.collaborators.base import EventLookup, ReviewLookup
from app.core.job_store.base import (
    SentimentJobRecord,
    SentimentJobStore,
    SentimentResultStore,
)
from app.core.sentiment.base import AnalyzerOutput, SentimentAnalyzer
from app.messages.sentiment_messages import (
    EVENT_ID_REQUIRED,
    EVENT_NOT_FOUND,
    NOT_EVENT_OWNER,
    ORGANIZER_ID_REQUIRED,
    REVIEW_ID_REQUIRED,
    REVIEW_NOT_FOUND,
)
from app.models.db.review import SentimentStatus
from app.models.db.sentiment_job import JobStatus
from app.schemas.sentiment import (
    DenormalizedSentiment,
    EventSentimentSummary,
    JobStatusView,
    ReviewSentimentItem,
    ReviewSentimentResult,
    ReviewSentimentStatus,
)
from app.utils.exceptions import (
    APIException,
    AnalyzerError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, APIException):
        return exc.message
    return str(exc) or exc.__class__.__name__


def _require(value: Optional[str], code: str, message: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(code=code, message=message)
    return value


class SentimentService:
    """
    Review sentiment pipeline.

    Primary path is the queue: a job per review, driven by the worker through
    process_job (PENDING -> PROCESSING -> DONE | PENDING | FAILED).
    analyze_review is a manual override that scores a review immediately and
    writes the same result/review rows; it does not touch the job.
    """

    MAX_ATTEMPTS = 3

    def __init__(
        self,
        jobs: SentimentJobStore,
        results: SentimentResultStore,
        analyzer: SentimentAnalyzer,
        reviews: ReviewLookup,
        events: EventLookup,
        *,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.jobs = jobs
        self.results = results
        self.analyzer = analyzer
        self.reviews = reviews
        self.events = events
        self.max_attempts = max_attempts

    # ------------- queue -------------

    async def create_sentiment_job(self, review_id: str) -> SentimentJobRecord:
        """Enqueue a PENDING job. ConflictError if the review already has one."""
        _require(review_id, "REVIEW_ID_REQUIRED", REVIEW_ID_REQUIRED)
        job = await self.jobs.create(review_id)
        logger.info(f"📝 Sentiment job {job.id} queued for review {review_id}")
        return job

    async def get_job_status(self, review_id: str) -> Optional[SentimentJobRecord]:
        return await self.jobs.find_by_review_id(review_id)

    async def process_job(self, job: SentimentJobRecord) -> Optional[JobStatus]:
        """
        Run one attempt of a job. Never raises for job-level errors; the
        outcome is recorded on the job row. Returns the resulting status,
        or None when the job was claimed elsewhere or vanished.
        """
        claimed = await self.jobs.claim(job.id)
        if claimed is None:
            logger.info(f"⏭️ Sentiment job {job.id} already claimed or gone, skipping")
            return None

        try:
            review = await self.reviews.get_review(claimed.review_id)
            if review is None:
                # a deleted review can never succeed
                await self.jobs.mark_failed(job.id, REVIEW_NOT_FOUND)
                logger.warning(
                    f"❌ Sentiment job {job.id}: review {claimed.review_id} not found"
                )
                return JobStatus.FAILED

            output = await self.analyzer.analyze(review.comment or "")
            await self._store_result(review.id, output)
            await self.jobs.mark_done(job.id)
            logger.info(
                f"✅ Processed sentiment for review {review.id}: {output.label.value}"
            )
            return JobStatus.DONE

        except Exception as e:
            message = _error_message(e)
            if isinstance(e, AnalyzerError):
                logger.error(f"❌ Failed to process job {job.id}: {message}")
            else:
                logger.exception(f"❌ Failed to process job {job.id}: {message}")
            return await self._handle_failure(claimed, message)

    async def _handle_failure(
        self, job: SentimentJobRecord, message: str
    ) -> Optional[JobStatus]:
        # `job` is the claimed snapshot, so attempts already counts this run
        try:
            if job.attempts >= self.max_attempts:
                if await self.jobs.mark_failed(job.id, message) is None:
                    logger.warning(f"⚠️ Could not mark sentiment job {job.id} failed")
                    return None
                await self.reviews.update_review_sentiment_status(
                    job.review_id, SentimentStatus.FAILED
                )
                logger.error(
                    f"🚫 Sentiment job {job.id} failed after {job.attempts} attempts"
                )
                return JobStatus.FAILED

            if await self.jobs.mark_pending(job.id) is None:
                logger.warning(f"⚠️ Could not requeue sentiment job {job.id}")
                return None
            logger.info(
                f"🔁 Sentiment job {job.id} will retry "
                f"(attempt {job.attempts}/{self.max_attempts})"
            )
            return JobStatus.PENDING
        except Exception as e:
            logger.exception(f"❌ Could not record failure of job {job.id}: {e}")
            return None

    # ------------- manual override -------------

    async def analyze_review(self, review_id: str) -> ReviewSentimentResult:
        _require(review_id, "REVIEW_ID_REQUIRED", REVIEW_ID_REQUIRED)
        review = await self.reviews.get_review(review_id)
        if review is None:
            raise NotFoundError(code="REVIEW_NOT_FOUND", message=REVIEW_NOT_FOUND)

        output = await self.analyzer.analyze(review.comment or "")
        return await self._store_result(review.id, output)

    async def _store_result(
        self, review_id: str, output: AnalyzerOutput
    ) -> ReviewSentimentResult:
        record = await self.results.upsert(
            review_id,
            output.sentiment_class,
            output.label.value,
            output.score,
            output.negative_summary,
        )
        # denormalized copy; may lag the result row if we crash in between
        await self.reviews.update_review_sentiment(
            review_id, record.label, record.score, SentimentStatus.ANALYZED
        )
        return ReviewSentimentResult(
            review_id=review_id,
            label=record.label,
            score=record.score,
            sentiment_class=record.sentiment_class,
            negative_summary=record.negative_summary,
        )

    # ------------- reads -------------

    async def get_sentiment_for_review(
        self, review_id: str
    ) -> Optional[DenormalizedSentiment]:
        review = await self.reviews.get_review(review_id)
        if review is None:
            return None
        return DenormalizedSentiment(
            label=review.sentiment_label,
            score=review.sentiment_score,
            status=review.sentiment_status,
        )

    async def get_review_status(self, review_id: str) -> ReviewSentimentStatus:
        _require(review_id, "REVIEW_ID_REQUIRED", REVIEW_ID_REQUIRED)
        sentiment = await self.get_sentiment_for_review(review_id)
        if sentiment is None:
            raise NotFoundError(code="REVIEW_NOT_FOUND", message=REVIEW_NOT_FOUND)

        job = await self.get_job_status(review_id)
        return ReviewSentimentStatus(
            review_id=review_id,
            sentiment=sentiment,
            job=JobStatusView(
                status=job.status.value, attempts=job.attempts, error=job.error
            )
            if job
            else None,
        )

    async def _assert_event_owner(self, organizer_id: str, event_id: str) -> None:
        _require(organizer_id, "ORGANIZER_ID_REQUIRED", ORGANIZER_ID_REQUIRED)
        _require(event_id, "EVENT_ID_REQUIRED", EVENT_ID_REQUIRED)
        owner = await self.events.get_event_owner(event_id)
        if owner is None:
            raise NotFoundError(code="EVENT_NOT_FOUND", message=EVENT_NOT_FOUND)
        if owner != organizer_id:
            logger.warning(
                f"🔒 Organizer {organizer_id} denied sentiment for event {event_id}"
            )
            raise ForbiddenError(code="NOT_EVENT_OWNER", message=NOT_EVENT_OWNER)

    async def get_event_sentiment_summary(
        self, organizer_id: str, event_id: str
    ) -> EventSentimentSummary:
        await self._assert_event_owner(organizer_id, event_id)

        total = await self.reviews.count_reviews_for_event(event_id)
        agg = await self.results.aggregate_by_event(event_id)
        return EventSentimentSummary(
            event_id=event_id,
            total_reviews=total,
            analyzed_count=agg.analyzed_count,
            positive_count=agg.positive_count,
            negative_count=agg.negative_count,
            neutral_count=agg.neutral_count,
            average_score=agg.average_score if agg.analyzed_count else None,
        )

    async def get_event_sentiments(
        self, organizer_id: str, event_id: str
    ) -> List[ReviewSentimentItem]:
        await self._assert_event_owner(organizer_id, event_id)

        rows = await self.results.find_by_event_id(event_id)
        return [
            ReviewSentimentItem(
                review_id=r.review_id,
                label=r.label,
                score=r.score,
                sentiment_class=r.sentiment_class,
                negative_summary=r.negative_summary,
                updated_at=r.updated_at,
            )
            for r in rows
        ]
