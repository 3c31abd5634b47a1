"""
Tests for the periodic sync / history scheduler.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from sei_liquidity.core.pool_history import HistoryResult
from sei_liquidity.core.pool_sync import SyncResult
from sei_liquidity.core.scheduler import (
    HISTORY_JOB,
    SYNC_JOB,
    JobStatus,
    PoolSyncScheduler,
)


@pytest.fixture
def synchronizer():
    mock = MagicMock()
    mock.sync_pools = AsyncMock(return_value=SyncResult(synced=3))
    return mock


@pytest.fixture
def recorder():
    mock = MagicMock()
    mock.record_pool_history = AsyncMock(return_value=HistoryResult(recorded=2))
    return mock


class TestJobs:
    @pytest.mark.asyncio
    async def test_successful_sync(self, synchronizer, recorder):
        scheduler = PoolSyncScheduler(synchronizer, recorder)

        result = await scheduler.trigger_sync()

        assert result.status is JobStatus.SUCCESS
        assert result.output["synced"] == 3
        assert scheduler.last_results[SYNC_JOB] is result
        assert result.to_dict()["status"] == "success"

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self, synchronizer, recorder):
        recorder.record_pool_history.side_effect = RuntimeError("db gone")
        scheduler = PoolSyncScheduler(synchronizer, recorder)

        result = await scheduler.trigger_history_recording()

        assert result.status is JobStatus.FAILED
        assert result.error == "db gone"
        assert scheduler.last_results[HISTORY_JOB] is result

    @pytest.mark.asyncio
    async def test_overlapping_run_is_skipped(self, synchronizer, recorder):
        release = asyncio.Event()

        async def slow_sync():
            await release.wait()
            return SyncResult(synced=1)

        synchronizer.sync_pools = AsyncMock(side_effect=slow_sync)
        scheduler = PoolSyncScheduler(synchronizer, recorder)

        first = asyncio.create_task(scheduler.run_sync_job())
        await asyncio.sleep(0)
        second = await scheduler.run_sync_job()
        release.set()
        first_result = await first

        assert second.status is JobStatus.SKIPPED
        assert first_result.status is JobStatus.SUCCESS
        assert synchronizer.sync_pools.await_count == 1

    @pytest.mark.asyncio
    async def test_jobs_hold_separate_locks(self, synchronizer, recorder):
        release = asyncio.Event()

        async def slow_sync():
            await release.wait()
            return SyncResult()

        synchronizer.sync_pools = AsyncMock(side_effect=slow_sync)
        scheduler = PoolSyncScheduler(synchronizer, recorder)

        sync_task = asyncio.create_task(scheduler.run_sync_job())
        await asyncio.sleep(0)
        history = await scheduler.run_history_job()
        release.set()
        await sync_task

        assert history.status is JobStatus.SUCCESS


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_disabled_scheduler_does_not_start(self, synchronizer, recorder):
        scheduler = PoolSyncScheduler(synchronizer, recorder, enabled=False)

        await scheduler.start()

        assert scheduler.is_running is False
        synchronizer.sync_pools.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_runs_initial_sync_and_stop_cancels(self, synchronizer, recorder):
        scheduler = PoolSyncScheduler(synchronizer, recorder, sync_interval=3600, history_interval=3600)

        await scheduler.start()

        assert scheduler.is_running is True
        synchronizer.sync_pools.assert_awaited_once()

        await scheduler.stop()

        assert scheduler.is_running is False
        recorder.record_pool_history.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_loops_fire_on_interval(self, synchronizer, recorder):
        scheduler = PoolSyncScheduler(synchronizer, recorder, sync_interval=0.01, history_interval=0.01)

        await scheduler.start(initial_sync=False)
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert synchronizer.sync_pools.await_count >= 1
        assert recorder.record_pool_history.await_count >= 1

    def test_from_config(self, synchronizer, recorder):
        config = MagicMock()
        config.scheduler.POOL_SYNC_INTERVAL_SECONDS = 60
        config.scheduler.POOL_HISTORY_INTERVAL_SECONDS = 120
        config.scheduler.ENABLE_POOL_SYNC = False

        scheduler = PoolSyncScheduler.from_config(synchronizer, recorder, config)

        assert (scheduler.sync_interval, scheduler.history_interval, scheduler.enabled) == (60, 120, False)
