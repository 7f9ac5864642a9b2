# app/models/db/review.py

from enum import Enum

from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.db.timestamps import utcnow


class SentimentStatus(str, Enum):
    PENDING = "PENDING"
    ANALYZED = "ANALYZED"
    FAILED = "FAILED"


class Review(Base):
    __tablename__ = "review"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    event_id = Column(
        String, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    # Denormalized copy of sentiment_result for fast reads
    sentiment_label = Column(String, nullable=True)
    sentiment_score = Column(Float, nullable=True)
    sentiment_status = Column(
        String, default=SentimentStatus.PENDING.value, nullable=False
    )  # "PENDING", "ANALYZED", "FAILED"

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
