"""Background queue for best-effort progress pushes.

Server progress saves are fire-and-forget from the wizard's point of view:
the wizard enqueues a job and moves on. A single worker task runs jobs in
FIFO order with bounded exponential-backoff retry and records every
outcome so callers and tests can observe what happened.

Lifecycle:
- start() creates the worker task (enqueue() starts it on demand).
- drain() waits until every queued job has finished.
- stop() cancels the worker; queued jobs stay queued.
"""

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from skillx.providers.retry import RetryPolicy, with_retries

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50


@dataclass
class SyncJob:
    """A queued background operation.

    Attributes:
        name: Label used in logs and outcomes (e.g., "save_progress").
        func: Coroutine factory; called once per attempt.
        on_failure: Called with the final error once retries are exhausted.
        enqueued_at: When the job was queued.
    """

    name: str
    func: Callable[[], Awaitable[object]]
    on_failure: Callable[[Exception], None] | None = None
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class SyncJobOutcome:
    """Result of one finished job.

    Attributes:
        name: Job label.
        succeeded: Whether any attempt succeeded.
        attempts: Number of attempts made.
        error: Final error message when the job failed.
        finished_at: Completion time.
    """

    name: str
    succeeded: bool
    attempts: int
    error: str | None
    finished_at: datetime


class BackgroundSyncQueue:
    """Single-worker FIFO queue with bounded retry.

    Safe for use from one event loop. Jobs do not fence each other: a job
    enqueued later may carry older data than one enqueued earlier, and the
    last job to finish is what the server keeps.

    Args:
        policy: Retry bounds applied to every job.
        history_size: Number of outcomes kept for inspection.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._policy = policy
        self._queue: asyncio.Queue[SyncJob] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._history: deque[SyncJobOutcome] = deque(maxlen=history_size)

    @property
    def is_running(self) -> bool:
        """Whether the worker task is currently active."""
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        """Jobs queued but not yet picked up by the worker."""
        return self._queue.qsize()

    @property
    def history(self) -> list[SyncJobOutcome]:
        """Recent outcomes, oldest first."""
        return list(self._history)

    @property
    def last_outcome(self) -> SyncJobOutcome | None:
        """Most recent outcome, if any job has finished."""
        return self._history[-1] if self._history else None

    def start(self) -> None:
        """Start the worker task.

        No-op if already running. Must be called with a running event loop.
        """
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.debug("Background sync worker started")

    async def stop(self) -> None:
        """Cancel the worker and wait for it to exit."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.debug("Background sync worker stopped")

    def enqueue(
        self,
        name: str,
        func: Callable[[], Awaitable[object]],
        *,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> SyncJob:
        """Queue a job and make sure the worker is running.

        Args:
            name: Job label.
            func: Coroutine factory to run.
            on_failure: Callback for the final error.

        Returns:
            The queued job.
        """
        job = SyncJob(name=name, func=func, on_failure=on_failure)
        self._queue.put_nowait(job)
        self.start()
        return job

    async def drain(self) -> None:
        """Wait until every queued job has finished."""
        if self._queue.qsize() and not self.is_running:
            self.start()
        await self._queue.join()

    async def _run_loop(self) -> None:
        """Worker loop: take a job, run it, repeat."""
        try:
            while True:
                job = await self._queue.get()
                try:
                    await self._run_job(job)
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            logger.debug("Background sync loop cancelled")
            raise

    async def _run_job(self, job: SyncJob) -> None:
        attempts = 0

        async def attempt() -> object:
            nonlocal attempts
            attempts += 1
            return await job.func()

        try:
            await with_retries(attempt, self._policy)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Background sync job %s failed after %d attempt(s): %s",
                job.name,
                attempts,
                exc,
            )
            self._record(job, succeeded=False, attempts=attempts, error=str(exc))
            if job.on_failure is not None:
                try:
                    job.on_failure(exc)
                except Exception:  # noqa: BLE001
                    logger.exception("Failure callback for %s raised", job.name)
            return

        self._record(job, succeeded=True, attempts=attempts, error=None)

    def _record(
        self, job: SyncJob, *, succeeded: bool, attempts: int, error: str | None
    ) -> None:
        self._history.append(
            SyncJobOutcome(
                name=job.name,
                succeeded=succeeded,
                attempts=attempts,
                error=error,
                finished_at=datetime.now(UTC),
            )
        )
