"""
Periodic pool sync and history recording.

Two asyncio loops drive the jobs. Each job holds its own lock, so a tick that
arrives while the previous run is still going is skipped rather than run
concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .models import utcnow
from .pool_history import PoolHistoryRecorder
from .pool_sync import PoolSynchronizer

logger = logging.getLogger(__name__)

SYNC_JOB = "pool_sync"
HISTORY_JOB = "pool_history"


class JobStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class JobResult:
    """Outcome of one scheduled job run."""

    job: str
    status: JobStatus
    started_at: datetime
    finished_at: datetime
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "status": self.status.value,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
            "output": self.output,
            "error": self.error,
        }


class PoolSyncScheduler:
    """
    Run pool synchronization and history recording on fixed intervals.

    Usage:
        scheduler = PoolSyncScheduler(synchronizer, recorder)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        synchronizer: PoolSynchronizer,
        recorder: PoolHistoryRecorder,
        sync_interval: float = 300,
        history_interval: float = 600,
        enabled: bool = True,
    ):
        self.synchronizer = synchronizer
        self.recorder = recorder
        self.sync_interval = sync_interval
        self.history_interval = history_interval
        self.enabled = enabled

        self._locks = {SYNC_JOB: asyncio.Lock(), HISTORY_JOB: asyncio.Lock()}
        self._tasks: List[asyncio.Task] = []
        self.last_results: Dict[str, JobResult] = {}
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, synchronizer: PoolSynchronizer, recorder: PoolHistoryRecorder, config) -> "PoolSyncScheduler":
        scheduler = config.scheduler
        return cls(
            synchronizer,
            recorder,
            sync_interval=scheduler.POOL_SYNC_INTERVAL_SECONDS,
            history_interval=scheduler.POOL_HISTORY_INTERVAL_SECONDS,
            enabled=scheduler.ENABLE_POOL_SYNC,
        )

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def _run_job(self, job: str, func: Callable[[], Awaitable[Any]]) -> JobResult:
        lock = self._locks[job]
        started_at = utcnow()

        if lock.locked():
            self.logger.warning(f"Job {job} still running, skipping this run")
            result = JobResult(job, JobStatus.SKIPPED, started_at, utcnow())
            self.last_results[job] = result
            return result

        async with lock:
            try:
                output = await func()
                result = JobResult(
                    job,
                    JobStatus.SUCCESS,
                    started_at,
                    utcnow(),
                    output=output.to_dict() if hasattr(output, "to_dict") else output,
                )
            except Exception as e:
                self.logger.error(f"Job {job} failed: {e}")
                result = JobResult(job, JobStatus.FAILED, started_at, utcnow(), error=str(e))

        self.last_results[job] = result
        return result

    async def run_sync_job(self) -> JobResult:
        """Run one pool synchronization; failures are recorded, never raised."""
        return await self._run_job(SYNC_JOB, self.synchronizer.sync_pools)

    async def run_history_job(self) -> JobResult:
        """Run one history recording; failures are recorded, never raised."""
        return await self._run_job(HISTORY_JOB, self.recorder.record_pool_history)

    async def trigger_sync(self) -> JobResult:
        """Manually trigger pool synchronization."""
        self.logger.info("Manual pool sync triggered")
        return await self.run_sync_job()

    async def trigger_history_recording(self) -> JobResult:
        """Manually trigger history recording."""
        self.logger.info("Manual history recording triggered")
        return await self.run_history_job()

    async def _loop(self, job: Callable[[], Awaitable[JobResult]], interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await job()

    async def start(self, initial_sync: bool = True) -> None:
        """
        Start the periodic loops.

        Args:
            initial_sync: Run one sync before the first interval elapses
        """
        if not self.enabled:
            self.logger.info("Pool sync is disabled, scheduler not started")
            return
        if self.is_running:
            self.logger.warning("Scheduler already running")
            return

        if initial_sync:
            self.logger.info("Running initial pool sync...")
            await self.run_sync_job()

        self._tasks = [
            asyncio.create_task(self._loop(self.run_sync_job, self.sync_interval)),
            asyncio.create_task(self._loop(self.run_history_job, self.history_interval)),
        ]
        self.logger.info(
            f"Scheduler started: sync every {self.sync_interval}s, history every {self.history_interval}s"
        )

    async def stop(self) -> None:
        """Cancel the loops and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.logger.info("Scheduler stopped")

    async def wait(self) -> None:
        """Block until the loops exit."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
