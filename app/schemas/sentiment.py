from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional


class ReviewSentimentResult(BaseModel):
    review_id: str
    label: str
    score: float
    sentiment_class: int  # +1 positive / -1 negative / 0 neutral
    negative_summary: Optional[str] = None


class ReviewSentimentItem(BaseModel):
    review_id: str
    label: str
    score: float
    sentiment_class: int
    negative_summary: Optional[str] = None
    updated_at: datetime


class EventSentimentSummary(BaseModel):
    event_id: str
    total_reviews: int  # regardless of analysis state
    analyzed_count: int
    positive_count: int
    negative_count: int
    neutral_count: int
    average_score: Optional[float]  # None when nothing is analyzed


class EventSentimentList(BaseModel):
    event_id: str
    sentiments: List[ReviewSentimentItem]


class DenormalizedSentiment(BaseModel):
    label: Optional[str]
    score: Optional[float]
    status: str


class JobStatusView(BaseModel):
    status: str
    attempts: int
    error: Optional[str]


class ReviewSentimentStatus(BaseModel):
    review_id: str
    sentiment: DenormalizedSentiment
    job: Optional[JobStatusView]


class WorkerStatus(BaseModel):
    is_running: bool
