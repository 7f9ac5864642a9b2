# app/models/db/sentiment_job.py

from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.db.timestamps import utcnow


class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"


class SentimentJob(Base):
    __tablename__ = "sentiment_job"

    id = Column(String, primary_key=True, index=True)
    review_id = Column(
        String,
        ForeignKey("review.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # one job per review
    )
    status = Column(
        String, default=JobStatus.PENDING.value, nullable=False, index=True
    )  # "PENDING", "PROCESSING", "DONE", "FAILED"
    attempts = Column(Integer, default=0, nullable=False)
    error = Column(Text, nullable=True)

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
