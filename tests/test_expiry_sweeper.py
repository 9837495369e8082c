"""Tests for the background expiry sweeper."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from groupwarden.datatypes.verification_datatypes import SweepReport
from groupwarden.scheduler.expiry_sweeper import ExpirySweeper

REPORT = SweepReport(expired=1, removed=1, failed=0, deleted=1)


@pytest.fixture
def manager():
    mock = MagicMock()
    mock.sweep_expired = AsyncMock(return_value=REPORT)
    return mock


@pytest.mark.asyncio
async def test_sweep_once_records_report(manager):
    sweeper = ExpirySweeper(manager, interval=1)

    assert await sweeper.sweep_once() == REPORT
    assert sweeper.last_report == REPORT


@pytest.mark.asyncio
async def test_sweep_once_swallows_errors(manager):
    manager.sweep_expired.side_effect = RuntimeError("database is locked")
    sweeper = ExpirySweeper(manager)

    assert await sweeper.sweep_once() is None
    assert sweeper.last_report is None


@pytest.mark.asyncio
async def test_loop_keeps_running_after_failure(manager):
    manager.sweep_expired.side_effect = [RuntimeError("boom"), REPORT, REPORT, REPORT, REPORT]
    sweeper = ExpirySweeper(manager, interval=0.01)

    sweeper.start()
    assert sweeper.is_running
    for _ in range(100):
        if manager.sweep_expired.await_count >= 3:
            break
        await asyncio.sleep(0.01)
    await sweeper.shutdown()

    assert manager.sweep_expired.await_count >= 3
    assert sweeper.last_report == REPORT
    assert not sweeper.is_running


@pytest.mark.asyncio
async def test_start_twice_keeps_one_task(manager):
    sweeper = ExpirySweeper(manager, interval=60)
    sweeper.start()
    task = sweeper._task
    sweeper.start()

    assert sweeper._task is task
    await sweeper.shutdown()


@pytest.mark.asyncio
async def test_shutdown_without_start(manager):
    sweeper = ExpirySweeper(manager)
    await sweeper.shutdown()
    assert not sweeper.is_running
    assert sweeper.interval == 60.0
