# app/models/db/event.py

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class Event(Base):
    """Owned by the event module; the sentiment pipeline only reads the organizer."""

    __tablename__ = "event"

    id = Column(String, primary_key=True, index=True)
    organizer_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
