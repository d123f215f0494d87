"""Worker runtime - drives submitted jobs to a terminal state."""

import asyncio
from importlib.metadata import entry_points
from typing import cast

from loguru import logger

from .common.errors import InvalidTransitionError
from .common.job_repository import JobRepository
from .common.schema_job_record import JobRecord, JobRecordUpdate, JobStatus
from .common.video_processor import VideoProcessor
from .utils.events import BroadcasterBase, NoOpBroadcaster

CANCELLED_MESSAGE = "cancelled"


def get_processor_registry() -> dict[str, type[VideoProcessor]]:
    """Dynamically load all processors from entry points.

    Discovers processors from [project.entry-points."signvideo.processors"]
    in pyproject.toml.

    Returns:
        Dict mapping entry point name -> VideoProcessor subclass

    Raises:
        RuntimeError: If a plugin fails to load (missing dependency, etc.)
    """
    registry: dict[str, type[VideoProcessor]] = {}
    eps = entry_points(group="signvideo.processors")

    for ep in eps:
        try:
            registry[ep.name] = cast(type[VideoProcessor], ep.load())
        except Exception as e:
            # Plugin dependency missing = exception (fail fast)
            raise RuntimeError(f"Failed to load processor '{ep.name}': {e}") from e

    return registry


class Worker:
    """Consumes the job queue and runs each job through the processor.

    Responsibilities:
    - Accepts job ids from the request handler (fire-and-forget)
    - Moves each job pending -> processing -> completed/failed
    - Runs up to max_concurrency jobs at once, each independent of the others
    - Honors cancellation before processing starts and before the result
      is committed
    - Publishes every applied transition through the broadcaster

    Example:
        worker = Worker(repository, StockVideoProcessor())
        worker.start()
        worker.submit(job.id)
        ...
        await worker.stop()
    """

    def __init__(
        self,
        repository: JobRepository,
        processor: VideoProcessor,
        broadcaster: BroadcasterBase | None = None,
        *,
        dispatch_delay: float = 0.1,
        max_concurrency: int = 4,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.repository: JobRepository = repository
        self.processor: VideoProcessor = processor
        self.broadcaster: BroadcasterBase = (
            broadcaster if broadcaster is not None else NoOpBroadcaster()
        )
        self.dispatch_delay: float = dispatch_delay
        self.max_concurrency: int = max_concurrency

        self._queue: asyncio.Queue[int] = asyncio.Queue()
        self._inflight: dict[int, asyncio.Task[None]] = {}
        self._cancelled: set[int] = set()
        self._runner: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    @property
    def queued(self) -> int:
        return self._queue.qsize()

    def submit(self, job_id: int) -> None:
        """Queue a job for processing and return immediately."""
        self._queue.put_nowait(job_id)
        logger.debug(f"Job {job_id} queued ({self._queue.qsize()} waiting)")

    def start(self) -> None:
        """Start consuming the queue in a background task on the running loop."""
        if self.is_running:
            return
        self._runner = asyncio.create_task(self.run_forever(), name="signvideo-worker")
        logger.info(
            f"Worker started with processor '{self.processor.processor_type}' "
            f"(max_concurrency={self.max_concurrency})"
        )

    async def stop(self) -> None:
        """Stop the consumer and cancel every in-flight job."""
        tasks: list[asyncio.Task[None]] = list(self._inflight.values())
        if self._runner is not None:
            tasks.append(self._runner)
        for task in tasks:
            _ = task.cancel()
        _ = await asyncio.gather(*tasks, return_exceptions=True)
        self._runner = None
        logger.info("Worker stopped")

    async def join(self) -> None:
        """Wait until every submitted job has reached a terminal state."""
        await self._queue.join()

    async def run_forever(self) -> None:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        while True:
            job_id = await self._queue.get()
            await semaphore.acquire()
            task = self._spawn(job_id)
            task.add_done_callback(lambda _t: semaphore.release())

    async def run_once(self) -> bool:
        """Process one queued job to completion.

        Returns:
            True if a job was processed, False if the queue was empty.
        """
        if self._queue.empty():
            return False
        job_id = self._queue.get_nowait()
        task = self._spawn(job_id)
        _ = await asyncio.wait([task])
        return True

    async def cancel(self, job_id: int) -> bool:
        """Cancel a queued or running job. It ends up failed.

        Returns:
            True if the job was cancelled, False if it is unknown or already
            terminal.
        """
        record = self.repository.get(job_id)
        if record is None or record.status.is_terminal:
            return False

        self._cancelled.add(job_id)
        task = self._inflight.get(job_id)
        if task is not None and not task.done():
            _ = task.cancel()
            _ = await asyncio.wait([task])
        else:
            self._mark_cancelled(job_id)

        current = self.repository.get(job_id)
        return current is not None and current.error_message == CANCELLED_MESSAGE

    def _spawn(self, job_id: int) -> asyncio.Task[None]:
        task = asyncio.create_task(self._process(job_id), name=f"signvideo-job-{job_id}")
        self._inflight[job_id] = task

        def _done(t: asyncio.Task[None]) -> None:
            if t.cancelled():
                # cancelled before _process got to run its handler
                self._mark_cancelled(job_id)
            _ = self._inflight.pop(job_id, None)
            self._cancelled.discard(job_id)
            self._queue.task_done()

        task.add_done_callback(_done)
        return task

    async def _process(self, job_id: int) -> None:
        try:
            if self.dispatch_delay > 0:
                await asyncio.sleep(self.dispatch_delay)

            if job_id in self._cancelled:
                return

            record = self._transition(job_id, JobRecordUpdate(status=JobStatus.processing))
            if record is None:
                return

            update = await self.processor.execute(record)

            if job_id in self._cancelled:
                self._mark_cancelled(job_id)
                return

            _ = self._transition(job_id, update)

        except asyncio.CancelledError:
            self._mark_cancelled(job_id)
        except InvalidTransitionError as e:
            logger.warning(f"Job {job_id}: {e}")
        except Exception:
            logger.exception(f"Unexpected error while running job {job_id}")
            try:
                _ = self._transition(
                    job_id,
                    JobRecordUpdate(status=JobStatus.failed, error_message="internal error"),
                )
            except InvalidTransitionError as e:
                logger.warning(f"Job {job_id}: {e}")

    def _transition(self, job_id: int, update: JobRecordUpdate) -> JobRecord | None:
        record = self.repository.update(job_id, update)
        if record is None:
            logger.warning(f"Job {job_id} vanished before '{update.status}' could be recorded")
            return None

        logger.info(f"Job {job_id} -> {record.status.value}")
        _ = self.broadcaster.publish_job(record)
        return record

    def _mark_cancelled(self, job_id: int) -> None:
        try:
            record = self._transition(
                job_id,
                JobRecordUpdate(status=JobStatus.failed, error_message=CANCELLED_MESSAGE),
            )
        except InvalidTransitionError:
            # already terminal, nothing to cancel
            return
        if record is not None:
            logger.warning(f"Job {job_id} cancelled")
