# app/models/db/sentiment_result.py

from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.db.timestamps import utcnow


class SentimentResult(Base):
    __tablename__ = "sentiment_result"

    id = Column(String, primary_key=True, index=True)
    review_id = Column(
        String,
        ForeignKey("review.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    sentiment_class = Column(Integer, nullable=False)  # +1 / -1 / 0
    label = Column(String, nullable=False)  # "POSITIVE", "NEGATIVE", "NEUTRAL"
    score = Column(Float, nullable=False)  # clamped to [-1, 1]
    negative_summary = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
