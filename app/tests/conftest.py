import os

# must happen before anything imports app.core.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SENTIMENT_WORKER_ENABLED", "false")
os.environ.setdefault("SENTIMENT_METHOD", "keyword")
os.environ["ENV"] = "test"
os.environ["DEBUG"] = "false"

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import pytest
import pytest_asyncio

from app.core.collaborators.base import EventLookup, ReviewLookup
from app.core.collaborators.memory import InMemoryEventLookup, InMemoryReviewLookup
from app.core.collaborators.sql import SqlAlchemyEventLookup, SqlAlchemyReviewLookup
from app.core.database import Database
from app.core.job_store.base import SentimentJobStore, SentimentResultStore
from app.core.job_store.memory import (
    InMemorySentimentJobStore,
    InMemorySentimentResultStore,
)
from app.core.job_store.sql import (
    SqlAlchemySentimentJobStore,
    SqlAlchemySentimentResultStore,
)
from app.core.sentiment.analyzer import KeywordSentimentAnalyzer
from app.core.sentiment.base import SentimentAnalyzer
from app.core.sentiment.config import SentimentConfig
from app.models.db.event import Event
from app.models.db.review import Review
from app.services.sentiment_service import SentimentService


# -------------------------------------
# Analyzers
# -------------------------------------
@pytest.fixture
def keyword_analyzer():
    return KeywordSentimentAnalyzer(SentimentConfig(method="keyword"))


# -------------------------------------
# Database
# -------------------------------------
@pytest_asyncio.fixture
async def db(tmp_path):
    # one file per test so the worker task and the test get their own connections
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'sentiment.db'}")
    await database.create_all()
    yield database
    await database.dispose()


# -------------------------------------
# Storage backends
# -------------------------------------
@dataclass
class Backend:
    name: str
    jobs: SentimentJobStore
    results: SentimentResultStore
    reviews: ReviewLookup
    events: EventLookup
    add_event: Callable[[str, str], Awaitable[None]]
    add_review: Callable[..., Awaitable[None]]
    remove_review: Callable[[str], Awaitable[None]]


async def _sql_backend(database: Database) -> Backend:
    factory = database.session_factory

    async def add_event(event_id: str, organizer_id: str) -> None:
        async with factory() as s:
            s.add(Event(id=event_id, organizer_id=organizer_id, title=f"Event {event_id}"))
            await s.commit()

    async def add_review(
        review_id: str, event_id: str, comment: Optional[str], user_id: str = "user-1"
    ) -> None:
        async with factory() as s:
            s.add(
                Review(
                    id=review_id,
                    user_id=user_id,
                    event_id=event_id,
                    rating=4,
                    comment=comment,
                )
            )
            await s.commit()

    async def remove_review(review_id: str) -> None:
        async with factory() as s:
            row = await s.get(Review, review_id)
            if row:
                await s.delete(row)
                await s.commit()

    return Backend(
        name="sql",
        jobs=SqlAlchemySentimentJobStore(factory),
        results=SqlAlchemySentimentResultStore(factory),
        reviews=SqlAlchemyReviewLookup(factory),
        events=SqlAlchemyEventLookup(factory),
        add_event=add_event,
        add_review=add_review,
        remove_review=remove_review,
    )


def _memory_backend() -> Backend:
    reviews = InMemoryReviewLookup()
    events = InMemoryEventLookup()

    async def add_event(event_id: str, organizer_id: str) -> None:
        events.owners[event_id] = organizer_id

    async def add_review(
        review_id: str, event_id: str, comment: Optional[str], user_id: str = "user-1"
    ) -> None:
        reviews.add(review_id, event_id, comment)

    async def remove_review(review_id: str) -> None:
        reviews.remove(review_id)

    return Backend(
        name="memory",
        jobs=InMemorySentimentJobStore(),
        results=InMemorySentimentResultStore(reviews),
        reviews=reviews,
        events=events,
        add_event=add_event,
        add_review=add_review,
        remove_review=remove_review,
    )


@pytest_asyncio.fixture(params=["sql", "memory"])
async def backend(request, db) -> Backend:
    if request.param == "sql":
        return await _sql_backend(db)
    return _memory_backend()


@pytest_asyncio.fixture
async def sql_backend(db) -> Backend:
    return await _sql_backend(db)


@pytest.fixture
def make_service(backend):
    def _make(analyzer: SentimentAnalyzer, max_attempts: int = 3) -> SentimentService:
        return SentimentService(
            jobs=backend.jobs,
            results=backend.results,
            analyzer=analyzer,
            reviews=backend.reviews,
            events=backend.events,
            max_attempts=max_attempts,
        )

    return _make
