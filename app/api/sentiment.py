from fastapi import APIRouter, Depends
import logging

from app.api.deps import get_organizer_id, get_sentiment_service, get_sentiment_worker
from app.messages.sentiment_messages import (
    SENTIMENT_ANALYSIS_SUCCESS,
    SENTIMENT_LIST_RETRIEVED,
    SENTIMENT_STATUS_RETRIEVED,
    SENTIMENT_SUMMARY_RETRIEVED,
    WORKER_STARTED,
    WORKER_STATUS_RETRIEVED,
    WORKER_STOPPED,
)
from app.schemas.sentiment import EventSentimentList, WorkerStatus
from app.services.sentiment_service import SentimentService
from app.services.sentiment_worker import SentimentWorker
from app.utils.response_builder import success_response

router = APIRouter(prefix="/api/sentiment", tags=["Sentiment"])
logger = logging.getLogger(__name__)


@router.get("/review/{review_id}")
async def get_review_sentiment(
    review_id: str, service: SentimentService = Depends(get_sentiment_service)
):
    status = await service.get_review_status(review_id)
    return success_response(message=SENTIMENT_STATUS_RETRIEVED, data=status)


@router.post("/review/{review_id}/analyze")
async def analyze_review(
    review_id: str, service: SentimentService = Depends(get_sentiment_service)
):
    # manual override of the queue; analyzer errors surface as 502
    result = await service.analyze_review(review_id)
    return success_response(message=SENTIMENT_ANALYSIS_SUCCESS, data=result)


@router.get("/events/{event_id}/summary")
async def get_event_summary(
    event_id: str,
    organizer_id: str = Depends(get_organizer_id),
    service: SentimentService = Depends(get_sentiment_service),
):
    summary = await service.get_event_sentiment_summary(organizer_id, event_id)
    return success_response(message=SENTIMENT_SUMMARY_RETRIEVED, data=summary)


@router.get("/events/{event_id}/reviews")
async def get_event_sentiments(
    event_id: str,
    organizer_id: str = Depends(get_organizer_id),
    service: SentimentService = Depends(get_sentiment_service),
):
    items = await service.get_event_sentiments(organizer_id, event_id)
    return success_response(
        message=SENTIMENT_LIST_RETRIEVED,
        data=EventSentimentList(event_id=event_id, sentiments=items),
    )


@router.get("/worker/status")
async def worker_status(worker: SentimentWorker = Depends(get_sentiment_worker)):
    return success_response(
        message=WORKER_STATUS_RETRIEVED,
        data=WorkerStatus(is_running=worker.is_active()),
    )


@router.post("/worker/start")
async def start_worker(worker: SentimentWorker = Depends(get_sentiment_worker)):
    worker.start()
    logger.info("Sentiment worker start requested via API")
    return success_response(
        message=WORKER_STARTED, data=WorkerStatus(is_running=worker.is_active())
    )


@router.post("/worker/stop")
async def stop_worker(worker: SentimentWorker = Depends(get_sentiment_worker)):
    worker.stop()
    logger.info("Sentiment worker stop requested via API")
    return success_response(
        message=WORKER_STOPPED, data=WorkerStatus(is_running=worker.is_active())
    )
