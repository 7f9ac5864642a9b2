from fastapi import Header, Request

from app.messages.sentiment_messages import ORGANIZER_ID_REQUIRED
from app.services.sentiment_service import SentimentService
from app.services.sentiment_worker import SentimentWorker
from app.utils.exceptions import ServerError, ValidationError


def get_sentiment_service(request: Request) -> SentimentService:
    pipeline = getattr(request.app.state, "sentiment", None)
    if pipeline is None:
        raise ServerError(
            code="SENTIMENT_NOT_READY", message="Sentiment pipeline is not initialized."
        )
    return pipeline.service


def get_sentiment_worker(request: Request) -> SentimentWorker:
    pipeline = getattr(request.app.state, "sentiment", None)
    if pipeline is None:
        raise ServerError(
            code="SENTIMENT_NOT_READY", message="Sentiment pipeline is not initialized."
        )
    return pipeline.worker


def get_organizer_id(x_organizer_id: str | None = Header(default=None)) -> str:
    # identity is established upstream by the auth module
    if not x_organizer_id:
        raise ValidationError(code="ORGANIZER_ID_REQUIRED", message=ORGANIZER_ID_REQUIRED)
    return x_organizer_id
