"""In-process conversion queue using asyncio.

Converts bundles strictly one at a time. The converter is synchronous and runs
on a single-thread executor, so a conversion abandoned at shutdown still blocks
the next one; every state change is made on the event loop thread and
broadcast to update listeners as a snapshot.
"""

import asyncio
import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Deque, Dict, Optional

from bundle_queue.bundles.models import ServerConfig
from bundle_queue.config import settings
from bundle_queue.jobs.dispatcher import ConversionDispatcher, ConversionFailedError
from bundle_queue.jobs.events import UpdateChannel
from bundle_queue.jobs.models import ConversionJob, JobStatus

logger = logging.getLogger("bundle_queue.jobs.queue")

Converter = Callable[[bytes, Optional[str]], ServerConfig]
UpdateListener = Callable[[ConversionJob], None]

# Advisory progress checkpoints
PROGRESS_STARTED = 5
PROGRESS_CONVERTING = 50
PROGRESS_DONE = 100

DEFAULT_ERROR = "Conversion failed"
INTERRUPTED_ERROR = "Conversion interrupted by shutdown"


class ConversionQueue(ConversionDispatcher):
    """Single-consumer FIFO queue of bundle conversions."""

    def __init__(self, converter: Converter, channel: Optional[UpdateChannel] = None):
        """
        converter: callable(payload, file_name) -> ServerConfig
            Raises on bad input. Called on a dedicated worker thread so a
            slow conversion does not block the event loop.
        """
        self._converter = converter
        self._channel: UpdateChannel[ConversionJob] = channel or UpdateChannel()
        self._jobs: Dict[str, ConversionJob] = {}
        self._pending: Deque[str] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bundle-convert")

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------
    def enqueue(self, payload: bytes, file_name: Optional[str] = None) -> str:
        """Must be called from the event loop that runs the queue."""
        # Raises RuntimeError outside a running loop, before any state changes
        loop = asyncio.get_running_loop()
        job = ConversionJob(payload=payload, file_name=file_name)
        self._jobs[job.id] = job
        self._pending.append(job.id)
        logger.info("Job queued: %s (%s, %d bytes)", job.id, file_name or "binary", len(payload))
        self._channel.publish(job)
        self._schedule_drain(loop)
        return job.id

    async def enqueue_and_wait(
        self, payload: bytes, file_name: Optional[str] = None
    ) -> ServerConfig:
        loop = asyncio.get_running_loop()
        settled: asyncio.Future = loop.create_future()
        job_id = self.enqueue(payload, file_name)

        def on_update(job: ConversionJob) -> None:
            if job.id != job_id or settled.done():
                return
            if job.status == JobStatus.COMPLETED:
                settled.set_result(job.result)
            elif job.status == JobStatus.FAILED:
                settled.set_exception(ConversionFailedError(job_id, job.error or DEFAULT_ERROR))
            else:
                return
            self.off_update(on_update)

        # The drain loop only runs after this coroutine yields, so no
        # transition for job_id can be missed here.
        self.on_update(on_update)
        try:
            return await settled
        finally:
            if not settled.done() or settled.cancelled():
                self.off_update(on_update)

    def get_job(self, job_id: str) -> Optional[ConversionJob]:
        job = self._jobs.get(job_id)
        return job.snapshot() if job else None

    def on_update(self, listener: UpdateListener) -> None:
        self._channel.subscribe(listener)

    def off_update(self, listener: UpdateListener) -> None:
        self._channel.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Introspection / lifecycle
    # ------------------------------------------------------------------
    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def job_count(self) -> int:
        return len(self._jobs)

    async def join(self) -> None:
        """Wait until every pending job has reached a terminal state."""
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Let the drain loop finish, cancelling it after ``timeout`` seconds.

        A job interrupted by the cancel is marked failed with
        INTERRUPTED_ERROR. Its converter thread runs on, and later jobs wait
        for it on the executor.
        """
        task = self._drain_task
        if task is None:
            return
        grace = settings.shutdown_grace_seconds if timeout is None else timeout
        try:
            await asyncio.wait_for(self.join(), timeout=grace)
        except asyncio.TimeoutError:
            logger.warning(
                "Drain loop still busy after %.1fs, cancelling (%d job(s) pending)",
                grace, len(self._pending),
            )
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Drain loop
    # ------------------------------------------------------------------
    def _schedule_drain(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._draining:
            return
        self._draining = True
        self._drain_task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        """Process pending jobs one at a time until none are left."""
        try:
            while self._pending:
                job_id = self._pending.popleft()
                job = self._jobs.get(job_id)
                if job is None:
                    logger.warning("Pending job %s has no record, skipping", job_id)
                    continue
                await self._process(job)
        finally:
            self._draining = False
            self._drain_task = None

    async def _process(self, job: ConversionJob) -> None:
        self._advance(job, JobStatus.PROCESSING, PROGRESS_STARTED)
        logger.info("Processing job: %s", job.id)
        self._advance(job, JobStatus.PROCESSING, PROGRESS_CONVERTING)

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                self._executor, self._converter, job.payload, job.file_name
            )
        except asyncio.CancelledError:
            job.error = INTERRUPTED_ERROR
            self._advance(job, JobStatus.FAILED, job.progress)
            logger.warning("Job interrupted: %s", job.id)
            raise
        except Exception as e:
            job.error = str(e) or DEFAULT_ERROR
            self._advance(job, JobStatus.FAILED, job.progress)
            logger.error("Job failed: %s: %s", job.id, job.error)
            return

        job.result = result
        self._advance(job, JobStatus.COMPLETED, PROGRESS_DONE)
        logger.info("Job completed: %s", job.id)

    def _advance(self, job: ConversionJob, status: JobStatus, progress: int) -> None:
        job.status = status
        job.progress = max(job.progress, progress)
        job.touch()
        self._channel.publish(job)
