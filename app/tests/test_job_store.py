from dataclasses import replace

import pytest
from sqlalchemy.exc import OperationalError

from app.core.collaborators.sql import SqlAlchemyReviewLookup
from app.core.job_store.memory import InMemorySentimentJobStore
from app.core.job_store.sql import SqlAlchemySentimentJobStore
from app.models.db.review import SentimentStatus
from app.models.db.sentiment_job import JobStatus
from app.utils.exceptions import ConflictError


# -------------------------------------
# Job store
# -------------------------------------
@pytest.mark.asyncio
async def test_create_inserts_pending_job(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")

    job = await backend.jobs.create("rev-1")

    assert job.status == JobStatus.PENDING
    assert job.attempts == 0
    assert job.error is None
    assert (await backend.jobs.find_by_review_id("rev-1")).id == job.id


@pytest.mark.asyncio
async def test_create_twice_for_same_review_conflicts(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")
    await backend.jobs.create("rev-1")

    with pytest.raises(ConflictError):
        await backend.jobs.create("rev-1")


@pytest.mark.asyncio
async def test_find_pending_jobs_is_fifo_and_limited(backend):
    await backend.add_event("evt-1", "org-1")
    created = []
    for i in range(4):
        await backend.add_review(f"rev-{i}", "evt-1", f"comment {i}")
        created.append(await backend.jobs.create(f"rev-{i}"))
    await backend.jobs.mark_done(created[1].id)

    pending = await backend.jobs.find_pending_jobs(2)

    assert [j.review_id for j in pending] == ["rev-0", "rev-2"]
    assert all(j.status == JobStatus.PENDING for j in pending)

    # snapshot: re-querying gives the same answer
    again = await backend.jobs.find_pending_jobs(2)
    assert [j.id for j in again] == [j.id for j in pending]


@pytest.mark.asyncio
async def test_claim_is_exclusive(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")
    job = await backend.jobs.create("rev-1")

    first = await backend.jobs.claim(job.id)
    second = await backend.jobs.claim(job.id)

    assert first.status == JobStatus.PROCESSING
    assert first.attempts == 1
    assert second is None
    assert (await backend.jobs.find_by_id(job.id)).attempts == 1


@pytest.mark.asyncio
async def test_transitions_record_state(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")
    job = await backend.jobs.create("rev-1")

    assert (await backend.jobs.mark_processing(job.id)).status == JobStatus.PROCESSING
    assert (await backend.jobs.increment_attempts(job.id)).attempts == 1
    failed = await backend.jobs.mark_failed(job.id, "Sentiment API error: 500")
    assert failed.status == JobStatus.FAILED
    assert failed.error == "Sentiment API error: 500"
    assert (await backend.jobs.mark_pending(job.id)).status == JobStatus.PENDING
    done = await backend.jobs.mark_done(job.id)
    assert done.status == JobStatus.DONE
    assert done.error is None
    assert done.attempts == 1


@pytest.mark.asyncio
async def test_transitions_on_missing_job_return_none(backend):
    assert await backend.jobs.find_by_id("nope") is None
    assert await backend.jobs.claim("nope") is None
    assert await backend.jobs.mark_processing("nope") is None
    assert await backend.jobs.mark_pending("nope") is None
    assert await backend.jobs.mark_done("nope") is None
    assert await backend.jobs.mark_failed("nope", "x") is None
    assert await backend.jobs.increment_attempts("nope") is None


# -------------------------------------
# Result store
# -------------------------------------
@pytest.mark.asyncio
async def test_upsert_keeps_one_row_per_review(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")

    first = await backend.results.upsert("rev-1", 1, "POSITIVE", 0.9)
    second = await backend.results.upsert(
        "rev-1", -1, "NEGATIVE", -0.4, "Too crowded"
    )

    assert second.id == first.id
    stored = await backend.results.find_by_review_id("rev-1")
    assert stored.label == "NEGATIVE"
    assert stored.sentiment_class == -1
    assert stored.score == pytest.approx(-0.4)
    assert stored.negative_summary == "Too crowded"
    assert len(await backend.results.find_by_event_id("evt-1")) == 1


@pytest.mark.asyncio
async def test_upsert_clamps_score(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("rev-1", "evt-1", "Loved it")

    stored = await backend.results.upsert("rev-1", 1, "POSITIVE", 3.5)

    assert stored.score == 1.0


@pytest.mark.asyncio
async def test_find_by_event_id_filters_and_orders_recent_first(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_event("evt-2", "org-1")
    await backend.add_review("rev-a", "evt-1", "a")
    await backend.add_review("rev-b", "evt-1", "b")
    await backend.add_review("rev-c", "evt-2", "c")

    await backend.results.upsert("rev-a", 1, "POSITIVE", 0.5)
    await backend.results.upsert("rev-c", 0, "NEUTRAL", 0.0)
    await backend.results.upsert("rev-b", -1, "NEGATIVE", -0.5)

    rows = await backend.results.find_by_event_id("evt-1")

    assert [r.review_id for r in rows] == ["rev-b", "rev-a"]


@pytest.mark.asyncio
async def test_aggregate_by_event(backend):
    await backend.add_event("evt-1", "org-1")
    for rid in ("r1", "r2", "r3", "r4"):
        await backend.add_review(rid, "evt-1", rid)
    await backend.results.upsert("r1", 1, "POSITIVE", 0.8)
    await backend.results.upsert("r2", 1, "POSITIVE", 0.6)
    await backend.results.upsert("r3", -1, "NEGATIVE", -0.7)

    agg = await backend.results.aggregate_by_event("evt-1")

    assert agg.analyzed_count == 3
    assert agg.positive_count == 2
    assert agg.negative_count == 1
    assert agg.neutral_count == 0
    assert agg.average_score == pytest.approx((0.8 + 0.6 - 0.7) / 3)


@pytest.mark.asyncio
async def test_aggregate_with_nothing_analyzed(backend):
    await backend.add_event("evt-1", "org-1")
    await backend.add_review("r1", "evt-1", "r1")

    agg = await backend.results.aggregate_by_event("evt-1")

    assert agg.analyzed_count == 0
    assert agg.positive_count == agg.negative_count == agg.neutral_count == 0
    assert agg.average_score is None


# -------------------------------------
# Lost database connection
# -------------------------------------
def _unreachable_database():
    raise OperationalError("SELECT 1", {}, Exception("connection lost"))


@pytest.mark.asyncio
async def test_sql_job_store_reports_lost_connection_as_none():
    jobs = SqlAlchemySentimentJobStore(_unreachable_database)

    assert await jobs.find_by_id("job-1") is None
    assert await jobs.claim("job-1") is None
    assert await jobs.mark_pending("job-1") is None
    assert await jobs.mark_failed("job-1", "boom") is None


@pytest.mark.asyncio
async def test_sql_review_lookup_reports_lost_connection_as_false():
    reviews = SqlAlchemyReviewLookup(_unreachable_database)

    assert await reviews.update_review_sentiment_status("rev-1", SentimentStatus.FAILED) is False
    assert await reviews.update_review_sentiment("rev-1", "POSITIVE", 0.5) is False


@pytest.mark.asyncio
async def test_memory_pending_jobs_break_timestamp_ties_by_id():
    jobs = InMemorySentimentJobStore()
    first = await jobs.create("rev-1")
    second = await jobs.create("rev-2")
    same_instant = first.created_at
    for job in (first, second):
        jobs._jobs[job.id] = replace(jobs._jobs[job.id], created_at=same_instant)

    pending = await jobs.find_pending_jobs()

    assert [j.id for j in pending] == sorted([first.id, second.id])
