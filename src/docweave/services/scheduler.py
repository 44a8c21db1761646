"""
Crawler job scheduler.

One job exists per configured source URL. A single asyncio loop reads a
min-heap of ``(run_at, seq, kind, job_id)`` entries: cadence entries run every
pending-or-failed job, retry entries re-run one job after its backoff delay.
A guard flag keeps runs from overlapping, and a stop event ends the loop.
"""

import asyncio
import heapq
import itertools
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

from docweave.config import CrawlerConfig, Settings, get_settings
from docweave.core import compute_next_run, stable_id
from docweave.exceptions import DocweaveError, SchedulerError
from docweave.models import CrawledContent, CrawlerJob, JobStatus, SchedulerStats

from .document_store import DocumentationStore
from .fetcher import DocumentationFetcher
from .indexer import DocumentationIndexer

logger = logging.getLogger(__name__)

CADENCE = "cadence"
RETRY = "retry"

RUN_WINDOW = 10  # run durations kept for the moving average
BUSY_RETRY_DELAY = 1.0  # seconds to defer a retry while another run holds the guard


def make_job_id(source: str, url: str) -> str:
    return f"{source}-{stable_id(url)[:8]}"


class CrawlerScheduler:
    """
    Drives crawling on a cadence and retries failed jobs with exponential backoff.

    Example:
        >>> scheduler = CrawlerScheduler(fetcher, store, indexer=indexer)
        >>> scheduler.start()
        >>> await scheduler.run_source_jobs("qti")
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        fetcher: DocumentationFetcher,
        store: DocumentationStore,
        config: CrawlerConfig | None = None,
        indexer: DocumentationIndexer | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            fetcher: Fetcher used for every job
            store: Store receiving fetched content
            config: Crawler configuration (defaults to the fetcher's)
            indexer: Indexer receiving each run's crawled batch, if any
            settings: Settings instance (defaults to the cached settings)
            clock: Returns the current UTC time
            sleep: Coroutine used for the delay between jobs
        """
        self.fetcher = fetcher
        self.store = store
        self.indexer = indexer
        self.config = config or fetcher.config
        self.settings = settings or get_settings()
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep

        self.jobs: dict[str, CrawlerJob] = {}
        self._heap: list[tuple[datetime, int, str, str | None]] = []
        self._seq = itertools.count()
        self._pending_retries: dict[str, int] = {}  # job id -> seq of its live retry entry

        self._is_running = False
        self._run_durations: deque[float] = deque(maxlen=RUN_WINDOW)
        self._last_run_time: datetime | None = None

        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._wakeup = asyncio.Event()

        self._create_jobs()

    @property
    def is_running(self) -> bool:
        """True while a run holds the guard."""
        return self._is_running

    @property
    def is_started(self) -> bool:
        return self._task is not None and not self._task.done()

    # Lifecycle

    def start(self, run_immediately: bool = False) -> None:
        """
        Start the scheduler loop on the running event loop.

        Args:
            run_immediately: Queue a run now instead of waiting for the first cadence time
        """
        if not self.config.enabled:
            logger.info("Crawler scheduling disabled by configuration")
            return
        if self.is_started:
            logger.warning("Scheduler already started")
            return

        self._stop_event.clear()
        first_run = self._now() if run_immediately else self._next_cadence_time()
        self._push(first_run, CADENCE)
        self._task = asyncio.create_task(self._loop(), name="docweave-scheduler")
        logger.info(f"Scheduler started, first run at {first_run.isoformat()}")

    async def stop(self, poll_interval: float = 1.0) -> None:
        """
        Stop the loop, giving an in-flight run up to ``shutdown_timeout`` to finish.

        Args:
            poll_interval: Seconds between checks of the guard flag
        """
        if self._task is None:
            return

        self._stop_event.set()
        self._wakeup.set()

        deadline = time.monotonic() + self.settings.shutdown_timeout
        while self._is_running and time.monotonic() < deadline:
            logger.info("Waiting for the current crawl run to finish...")
            await asyncio.sleep(poll_interval)

        if self._is_running:
            logger.warning("Crawl run still in progress after shutdown timeout, cancelling")
            self._task.cancel()

        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._heap.clear()
        self._pending_retries.clear()
        logger.info("Scheduler stopped")

    # Runs

    async def run_jobs(self) -> bool:
        """
        Run every pending-or-failed job in ascending priority order.

        Returns:
            False if another run was in progress and this one was skipped
        """
        jobs = [j for j in self.jobs.values() if j.status in (JobStatus.PENDING, JobStatus.FAILED)]
        return await self._run_guarded(jobs, "scheduled run") is not None

    async def run_job_now(self, job_id: str) -> bool:
        """
        Run one job immediately, bypassing the cadence.

        Returns:
            True if the job ran and succeeded; False for an unknown job, a
            failed attempt, or when another run holds the guard
        """
        job = self.jobs.get(job_id)
        if job is None:
            logger.warning(f"Unknown job {job_id}")
            return False
        crawled = await self._run_guarded([job], f"job {job_id}")
        return bool(crawled)

    async def run_source_jobs(self, source: str) -> int:
        """
        Run every job of one source immediately.

        Returns:
            Number of jobs that succeeded
        """
        jobs = self.get_jobs_by_source(source)
        if not jobs:
            logger.warning(f"No jobs configured for source {source}")
            return 0
        crawled = await self._run_guarded(jobs, f"source {source}")
        return len(crawled or [])

    # Queries

    def get_job(self, job_id: str) -> CrawlerJob | None:
        return self.jobs.get(job_id)

    def get_jobs(self) -> list[CrawlerJob]:
        return sorted(self.jobs.values(), key=lambda j: (j.priority, j.id))

    def get_jobs_by_source(self, source: str) -> list[CrawlerJob]:
        return [job for job in self.get_jobs() if job.source == source]

    def get_jobs_by_status(self, status: JobStatus) -> list[CrawlerJob]:
        return [job for job in self.get_jobs() if job.status == status]

    def get_stats(self) -> SchedulerStats:
        jobs = list(self.jobs.values())
        next_runs = [job.next_run for job in jobs if job.next_run and job.status != JobStatus.FAILED]
        if self._heap:
            next_runs.append(self._heap[0][0])
        durations = list(self._run_durations)
        return SchedulerStats(
            total_jobs=len(jobs),
            pending_jobs=sum(1 for j in jobs if j.status == JobStatus.PENDING),
            running_jobs=sum(1 for j in jobs if j.status == JobStatus.RUNNING),
            completed_jobs=sum(1 for j in jobs if j.status == JobStatus.COMPLETED),
            failed_jobs=sum(1 for j in jobs if j.status == JobStatus.FAILED),
            last_run_time=self._last_run_time,
            next_run_time=min(next_runs) if next_runs else None,
            average_run_time=sum(durations) / len(durations) if durations else 0.0,
            is_running=self._is_running,
            recent_run_durations=durations,
        )

    # Internals

    def _create_jobs(self) -> None:
        now = self._now()
        next_run = self._next_cadence_time()
        for source, entries in self.config.sources.items():
            for entry in entries:
                job_id = make_job_id(source, entry.url)
                self.jobs[job_id] = CrawlerJob(
                    id=job_id,
                    source=source,
                    url=entry.url,
                    format=entry.format,
                    priority=entry.priority,
                    scheduled_at=now,
                    next_run=next_run,
                )
        logger.info(f"Created {len(self.jobs)} crawler jobs")

    def _next_cadence_time(self) -> datetime:
        return compute_next_run(self.config.schedule.interval, self.config.schedule.time, self._now())

    def _push(self, run_at: datetime, kind: str, job_id: str | None = None) -> int:
        seq = next(self._seq)
        heapq.heappush(self._heap, (run_at, seq, kind, job_id))
        self._wakeup.set()
        return seq

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            if not self._heap:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            run_at, seq, kind, job_id = self._heap[0]
            delay = (run_at - self._now()).total_seconds()
            if delay > 0:
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
                continue

            heapq.heappop(self._heap)
            try:
                if kind == CADENCE:
                    await self.run_jobs()
                    if not self._stop_event.is_set():
                        self._push(self._next_cadence_time(), CADENCE)
                else:
                    await self._run_retry(job_id, seq)
            except Exception:
                logger.exception("Scheduler iteration failed")

    async def _run_retry(self, job_id: str, seq: int) -> None:
        if self._pending_retries.get(job_id) != seq:
            return  # superseded by a later run of the job

        if self._is_running:
            del self._pending_retries[job_id]
            run_at = self._now() + timedelta(seconds=BUSY_RETRY_DELAY)
            self._pending_retries[job_id] = self._push(run_at, RETRY, job_id)
            return

        await self._run_guarded([self.jobs[job_id]], f"retry of {job_id}")

    async def _run_guarded(self, jobs: list[CrawlerJob], label: str) -> list[CrawledContent] | None:
        if self._is_running:
            logger.warning(f"Crawl run already in progress, skipping {label}")
            return None

        self._is_running = True
        started = time.monotonic()
        crawled: list[CrawledContent] = []
        try:
            ordered = sorted(jobs, key=lambda j: (j.priority, j.id))
            logger.info(f"Starting {label} with {len(ordered)} jobs")
            delay = self.config.rate_limit.delay_between_requests / 1000
            for i, job in enumerate(ordered):
                if i > 0 and delay > 0:
                    await self._sleep(delay)
                if job.status == JobStatus.FAILED:
                    job.retry_count = 0  # a new run starts a fresh retry cycle
                content = await self._execute_job(job)
                if content is not None:
                    crawled.append(content)

            if self.indexer is not None and crawled:
                self.indexer.index_batch(crawled)
        finally:
            duration = time.monotonic() - started
            self._run_durations.append(duration)
            self._last_run_time = self._now()
            self._is_running = False

        logger.info(f"Finished {label}: {len(crawled)}/{len(jobs)} succeeded in {duration:.1f}s")
        return crawled

    async def _execute_job(self, job: CrawlerJob) -> CrawledContent | None:
        self._pending_retries.pop(job.id, None)
        job.status = JobStatus.RUNNING
        job.last_run = self._now()

        try:
            content = await self.fetcher.fetch(job.url, content_format=job.format, source=job.source)
            self.store.store(content)
        except asyncio.CancelledError:
            job.status = JobStatus.PENDING
            job.last_error = "Cancelled during shutdown"
            logger.warning(f"Job {job.id} cancelled, returned to pending")
            raise
        except DocweaveError as e:
            self._handle_failure(job, e)
            return None
        except Exception as e:
            logger.exception(f"Unexpected error running job {job.id}")
            self._handle_failure(job, SchedulerError(f"Unexpected error: {e}", job_id=job.id))
            return None

        job.status = JobStatus.COMPLETED
        job.last_success = self._now()
        job.retry_count = 0
        job.last_error = None
        job.next_run = self._next_cadence_time()
        job.status = JobStatus.PENDING
        return content

    def _handle_failure(self, job: CrawlerJob, error: Exception) -> None:
        job.retry_count += 1
        job.last_error = str(error)
        retry = self.config.retry

        if job.retry_count < retry.max_retries:
            delay = (retry.retry_delay / 1000) * retry.backoff_multiplier ** (job.retry_count - 1)
            run_at = self._now() + timedelta(seconds=delay)
            job.status = JobStatus.PENDING
            job.next_run = run_at
            self._pending_retries[job.id] = self._push(run_at, RETRY, job.id)
            logger.warning(
                f"Job {job.id} failed (attempt {job.retry_count}/{retry.max_retries}), "
                f"retrying in {delay:.1f}s: {error}"
            )
        else:
            job.status = JobStatus.FAILED
            logger.error(f"Job {job.id} failed permanently after {job.retry_count} attempts: {error}")
