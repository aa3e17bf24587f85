"""Tests for the background sweep job and its Redis lock."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import redis

from clinic_scheduler.core.exceptions import SweepInProgressException
from clinic_scheduler.core.redis_client import SweepLock
from clinic_scheduler.schemas.notifications import SweepSummary
from clinic_scheduler.services.sweep_runner import (
    SWEEP_JOB_ID,
    SWEEP_LOCK_NAME,
    ReminderSweepRunner,
)


def _redis(acquired: bool = True) -> MagicMock:
    client = MagicMock()
    client.lock.return_value.acquire.return_value = acquired
    return client


@pytest.mark.asyncio
async def test_run_once_runs_sweep_under_lock() -> None:
    """Test a sweep runs while holding the lock and releases it after."""
    client = _redis()
    sweep = AsyncMock(return_value=SweepSummary(due=2, sent=2))
    runner = ReminderSweepRunner(sweep, lock_timeout_seconds=120, redis_client=client)

    summary = await runner.run_once()

    assert summary == SweepSummary(due=2, sent=2)
    client.lock.assert_called_once_with(SWEEP_LOCK_NAME, timeout=120, blocking=False)
    client.lock.return_value.release.assert_called_once()


@pytest.mark.asyncio
async def test_run_once_skips_when_lock_held() -> None:
    """Test another worker holding the lock skips this run."""
    client = _redis(acquired=False)
    sweep = AsyncMock()
    runner = ReminderSweepRunner(sweep, redis_client=client)

    assert await runner.run_once() is None
    sweep.assert_not_awaited()
    client.lock.return_value.release.assert_not_called()


@pytest.mark.asyncio
async def test_run_exclusive_raises_when_lock_held() -> None:
    """Test a manual sweep is refused while another worker holds the lock."""
    sweep = AsyncMock()
    runner = ReminderSweepRunner(sweep, redis_client=_redis(acquired=False))

    with pytest.raises(SweepInProgressException):
        await runner.run_exclusive()
    sweep.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_once_survives_crash() -> None:
    """Test a crashing sweep is logged and the lock still released."""
    client = _redis()
    runner = ReminderSweepRunner(
        AsyncMock(side_effect=RuntimeError("database unavailable")), redis_client=client
    )

    assert await runner.run_once() is None
    client.lock.return_value.release.assert_called_once()


def test_lock_unavailable_when_redis_down() -> None:
    """Test an unreachable Redis means no lock, not an exception."""
    client = MagicMock()
    client.lock.side_effect = redis.ConnectionError("connection refused")
    lock = SweepLock(client, SWEEP_LOCK_NAME, 60)

    assert lock.acquire() is False
    lock.release()


def test_lock_release_tolerates_expiry() -> None:
    """Test releasing an expired lock only logs."""
    client = _redis()
    client.lock.return_value.release.side_effect = redis.exceptions.LockNotOwnedError("expired")
    lock = SweepLock(client, SWEEP_LOCK_NAME, 60)

    assert lock.acquire() is True
    lock.release()


def test_disabled_runner_does_not_start() -> None:
    """Test a disabled runner never creates a scheduler."""
    runner = ReminderSweepRunner(AsyncMock(), enabled=False)

    runner.start()

    assert runner.is_running is False


@pytest.mark.asyncio
async def test_start_and_stop() -> None:
    """Test the interval job is registered once and torn down on stop."""
    runner = ReminderSweepRunner(
        AsyncMock(), interval_seconds=30, redis_client=_redis(), enabled=True
    )

    runner.start()
    try:
        assert runner.is_running is True
        job = runner._scheduler.get_job(SWEEP_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30
        runner.start()
    finally:
        runner.stop()

    assert runner.is_running is False
