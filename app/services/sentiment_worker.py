from __future__ import annotations
import asyncio
import logging
from typing import Optional, Set

from app.core.job_store.base import SentimentJobStore
from app.core.sentiment.config import WorkerConfig
from app.services.sentiment_service import SentimentService

logger = logging.getLogger(__name__)


class SentimentWorker:
    """
    Cooperative polling loop on the host event loop.

    Each tick pulls up to `batch_size` PENDING jobs and runs them one at a
    time, so there is never more than one analyzer call in flight per worker.
    stop() prevents further ticks but lets the job in progress finish.
    """

    def __init__(
        self,
        service: SentimentService,
        jobs: SentimentJobStore,
        cfg: WorkerConfig = WorkerConfig(),
    ):
        self.service = service
        self.jobs = jobs
        self.cfg = cfg
        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        """Must be called from within a running event loop."""
        if self._running:
            logger.warning("⚠️ Sentiment worker is already running")
            return

        self._running = True
        # each run gets its own stop signal so a restart never revives an old loop
        self._stop_event = asyncio.Event()
        task = asyncio.get_running_loop().create_task(
            self._run(self._stop_event), name="sentiment-worker"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(
            f"🚀 Sentiment worker started (every {self.cfg.poll_interval_seconds}s, "
            f"batch of {self.cfg.batch_size})"
        )

    def stop(self) -> None:
        if not self._running:
            logger.warning("⚠️ Sentiment worker is not running")
            return

        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None
        logger.info("🛑 Sentiment worker stopped")

    def is_active(self) -> bool:
        return self._running

    async def shutdown(self) -> None:
        """Stop and wait for in-flight work to finish."""
        if self._running:
            self.stop()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_once(self) -> int:
        """Run a single tick now. Returns how many jobs were handed to the service."""
        return await self._tick(None)

    async def _run(self, stop_event: asyncio.Event) -> None:
        # first tick runs immediately, then one per interval
        while not stop_event.is_set():
            await self._tick(stop_event)
            try:
                await asyncio.wait_for(
                    stop_event.wait(), timeout=self.cfg.poll_interval_seconds
                )
            except asyncio.TimeoutError:
                pass

    async def _tick(self, stop_event: Optional[asyncio.Event]) -> int:
        try:
            jobs = await self.jobs.find_pending_jobs(self.cfg.batch_size)
        except Exception as e:
            logger.exception(f"❌ Error in sentiment worker while fetching jobs: {e}")
            return 0

        if not jobs:
            return 0

        logger.info(f"📋 Processing {len(jobs)} sentiment job(s)...")
        handled = 0
        for job in jobs:
            if stop_event is not None and stop_event.is_set():
                logger.info("🛑 Worker stopped mid-batch, leaving remaining jobs pending")
                break
            try:
                await self.service.process_job(job)
            except Exception as e:
                logger.exception(f"❌ Error in sentiment worker on job {job.id}: {e}")
            handled += 1
        return handled
