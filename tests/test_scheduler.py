import asyncio

import pytest

from rollermon.config import DefaultRetryPolicy, StartOptions
from rollermon.errors import ConfigError, ProviderError, SchedulerError
from rollermon.scheduler import Scheduler

LONG_INTERVAL = 3_600_000


class RecordingTask:
    def __init__(self, failures=(), delay=0.0):
        self.calls = []
        self.failures = list(failures)
        self.delay = delay

    async def run(self, args):
        self.calls.append(args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures:
            raise self.failures.pop(0)


async def _wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def test_status_server_settings_are_kept():
    scheduler = Scheduler(RecordingTask(), "127.0.0.1", 8080)
    assert (scheduler.status_server_bind_address, scheduler.status_server_port) == ("127.0.0.1", 8080)


@pytest.mark.asyncio
async def test_runs_task_repeatedly_with_args():
    task = RecordingTask()
    scheduler = Scheduler(task)
    await scheduler.start("args", StartOptions(interval_ms=5))
    await _wait_for(lambda: len(task.calls) >= 3)
    await scheduler.stop()
    assert set(task.calls) == {"args"}


@pytest.mark.asyncio
async def test_retries_errors_the_policy_allows():
    task = RecordingTask(failures=[ProviderError("a"), ProviderError("b")])
    scheduler = Scheduler(task)
    options = StartOptions(interval_ms=LONG_INTERVAL, max_retry_times=2, retry_policy=DefaultRetryPolicy())
    await scheduler.start(None, options)
    await _wait_for(lambda: len(task.calls) >= 3)
    await asyncio.sleep(0.02)
    await scheduler.stop()
    assert len(task.calls) == 3


@pytest.mark.asyncio
async def test_retries_are_bounded():
    task = RecordingTask(failures=[ProviderError("x")] * 5)
    scheduler = Scheduler(task)
    options = StartOptions(interval_ms=LONG_INTERVAL, max_retry_times=1, retry_policy=DefaultRetryPolicy())
    await scheduler.start(None, options)
    await _wait_for(lambda: len(task.calls) >= 2)
    await asyncio.sleep(0.02)
    await scheduler.stop()
    assert len(task.calls) == 2


@pytest.mark.asyncio
async def test_no_retry_for_errors_the_policy_refuses():
    task = RecordingTask(failures=[ConfigError("bad")])
    scheduler = Scheduler(task)
    options = StartOptions(interval_ms=LONG_INTERVAL, max_retry_times=3, retry_policy=DefaultRetryPolicy())
    await scheduler.start(None, options)
    await _wait_for(lambda: len(task.calls) >= 1)
    await asyncio.sleep(0.02)
    await scheduler.stop()
    assert len(task.calls) == 1


@pytest.mark.asyncio
async def test_timeout_without_retry():
    task = RecordingTask(delay=1.0)
    scheduler = Scheduler(task)
    options = StartOptions(
        interval_ms=LONG_INTERVAL, task_timeout_ms=10, no_retry_on_timeout=True, max_retry_times=3
    )
    await scheduler.start(None, options)
    await asyncio.sleep(0.1)
    await scheduler.stop()
    assert len(task.calls) == 1


@pytest.mark.asyncio
async def test_timeout_is_retried_by_default():
    task = RecordingTask(delay=1.0)
    scheduler = Scheduler(task)
    options = StartOptions(interval_ms=LONG_INTERVAL, task_timeout_ms=10, max_retry_times=2)
    await scheduler.start(None, options)
    await _wait_for(lambda: len(task.calls) >= 3)
    await scheduler.stop()
    assert len(task.calls) == 3


@pytest.mark.asyncio
async def test_start_twice_raises():
    scheduler = Scheduler(RecordingTask())
    await scheduler.start(None, StartOptions(interval_ms=LONG_INTERVAL))
    with pytest.raises(SchedulerError):
        await scheduler.start(None, StartOptions(interval_ms=LONG_INTERVAL))
    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_without_start_raises():
    with pytest.raises(SchedulerError):
        await Scheduler(RecordingTask()).stop()


@pytest.mark.asyncio
async def test_stop_twice_raises():
    scheduler = Scheduler(RecordingTask())
    await scheduler.start(None, StartOptions(interval_ms=LONG_INTERVAL))
    await scheduler.stop()
    with pytest.raises(SchedulerError):
        await scheduler.stop()


@pytest.mark.asyncio
async def test_wait_shutdown_returns_after_stop():
    task = RecordingTask()
    scheduler = Scheduler(task)
    await scheduler.start(None, StartOptions(interval_ms=LONG_INTERVAL))
    await _wait_for(lambda: len(task.calls) >= 1)
    await scheduler.stop()
    await asyncio.wait_for(scheduler.wait_shutdown(), 1.0)
    with pytest.raises(SchedulerError):
        await scheduler.stop()