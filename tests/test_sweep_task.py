"""Tests for the background staging sweeper."""

import asyncio
import threading
from unittest.mock import MagicMock

import pytest

from drive.sweep_task import ExpiredUploadSweeper


class TestExpiredUploadSweeper:
    @pytest.mark.asyncio
    async def test_sweep_cycle_counts_removed(self):
        coordinator = MagicMock()
        coordinator.sweep_expired.return_value = 3
        sweeper = ExpiredUploadSweeper(coordinator, interval_seconds=60)

        assert await sweeper._sweep_cycle() == 3
        assert await sweeper._sweep_cycle() == 3
        assert sweeper.total_removed == 6

    @pytest.mark.asyncio
    async def test_sweep_cycle_runs_off_the_event_loop_thread(self):
        threads = []

        def record_thread():
            threads.append(threading.get_ident())
            return 0

        coordinator = MagicMock()
        coordinator.sweep_expired.side_effect = record_thread
        sweeper = ExpiredUploadSweeper(coordinator, interval_seconds=60)

        assert await sweeper._sweep_cycle() == 0
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_start_runs_periodically_and_stops(self):
        coordinator = MagicMock()
        coordinator.sweep_expired.return_value = 0
        sweeper = ExpiredUploadSweeper(coordinator, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert not sweeper.running
        assert coordinator.sweep_expired.call_count >= 2

    @pytest.mark.asyncio
    async def test_errors_do_not_stop_the_loop(self):
        coordinator = MagicMock()
        coordinator.sweep_expired.side_effect = [RuntimeError("database is locked")] + [1] * 1000
        sweeper = ExpiredUploadSweeper(coordinator, interval_seconds=0.01)

        await sweeper.start()
        await asyncio.sleep(0.1)
        assert sweeper.running
        await sweeper.stop()

        assert coordinator.sweep_expired.call_count >= 2
        assert sweeper.total_removed >= 1

    @pytest.mark.asyncio
    async def test_double_start_keeps_one_task(self):
        sweeper = ExpiredUploadSweeper(MagicMock(), interval_seconds=60)

        await sweeper.start()
        task = sweeper._task
        await sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self):
        sweeper = ExpiredUploadSweeper(MagicMock(), interval_seconds=60)
        await sweeper.stop()
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_sweeps_real_staging_area(self, coordinator, clock):
        coordinator.stage_chunk("up-1", 0, b"abc", "a.bin", 3)
        clock.advance(hours=25)
        sweeper = ExpiredUploadSweeper(coordinator, interval_seconds=60)

        assert await sweeper._sweep_cycle() == 1
        assert coordinator.staged_chunks("up-1") == []
