# app/pipelines/sentiment_pipeline.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.collaborators.sql import SqlAlchemyEventLookup, SqlAlchemyReviewLookup
from app.core.config import Settings, settings as default_settings
from app.core.job_store.sql import (
    SqlAlchemySentimentJobStore,
    SqlAlchemySentimentResultStore,
)
from app.core.sentiment.analyzer import analyzer_for
from app.core.sentiment.base import SentimentAnalyzer
from app.core.sentiment.config import SentimentConfig, WorkerConfig
from app.services.review_service import ReviewService
from app.services.sentiment_service import SentimentService
from app.services.sentiment_worker import SentimentWorker

logger = logging.getLogger(__name__)


@dataclass
class SentimentPipeline:
    analyzer: SentimentAnalyzer
    service: SentimentService
    worker: SentimentWorker
    reviews: ReviewService

    async def aclose(self) -> None:
        await self.worker.shutdown()
        await self.analyzer.aclose()


def sentiment_config_from(s: Settings) -> SentimentConfig:
    return SentimentConfig(
        method=s.SENTIMENT_METHOD.lower(),
        api_url=s.AI_API,
        payload_style=s.SENTIMENT_PAYLOAD_STYLE.lower(),
        timeout_seconds=s.SENTIMENT_HTTP_TIMEOUT_SECONDS,
        chain=tuple(n.strip() for n in s.SENTIMENT_CHAIN.split(",") if n.strip()),
    )


def worker_config_from(s: Settings) -> WorkerConfig:
    return WorkerConfig(
        poll_interval_seconds=s.SENTIMENT_POLL_INTERVAL_SECONDS,
        batch_size=s.SENTIMENT_BATCH_SIZE,
    )


def build_sentiment_pipeline(
    session_factory: async_sessionmaker[AsyncSession],
    s: Optional[Settings] = None,
    *,
    analyzer: Optional[SentimentAnalyzer] = None,
) -> SentimentPipeline:
    """Wire the SQL-backed stores, analyzer, service and worker from settings."""
    s = s or default_settings
    analyzer = analyzer or analyzer_for(sentiment_config_from(s))
    logger.info(f"🧠 Sentiment analyzer: {analyzer.__class__.__name__}")

    jobs = SqlAlchemySentimentJobStore(session_factory)
    service = SentimentService(
        jobs=jobs,
        results=SqlAlchemySentimentResultStore(session_factory),
        analyzer=analyzer,
        reviews=SqlAlchemyReviewLookup(session_factory),
        events=SqlAlchemyEventLookup(session_factory),
        max_attempts=s.SENTIMENT_MAX_ATTEMPTS,
    )
    worker = SentimentWorker(service, jobs, worker_config_from(s))
    return SentimentPipeline(
        analyzer=analyzer,
        service=service,
        worker=worker,
        reviews=ReviewService(session_factory, service),
    )
