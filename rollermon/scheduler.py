"""A periodic task scheduler with timeouts and retries."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any, Optional

from rollermon.config import StartOptions
from rollermon.errors import MonitorError, SchedulerError

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs a task's ``run(args)`` coroutine periodically until stopped."""

    def __init__(self, task, status_server_bind_address: str = "0.0.0.0", status_server_port: int = 21828) -> None:
        self.task = task
        self.status_server_bind_address = status_server_bind_address
        self.status_server_port = status_server_port
        self._loop_task: Optional[asyncio.Task] = None
        self._shutdown: Optional[asyncio.Event] = None

    async def start(self, args: Any, options: StartOptions) -> None:
        """Start running the task in the background; the first run happens at once."""
        if self._loop_task is not None and not self._loop_task.done():
            raise SchedulerError("scheduler has already been started")
        self._shutdown = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run_forever(args, options))

    async def stop(self) -> None:
        """Stop the background task."""
        if self._loop_task is None or self._loop_task.done():
            raise SchedulerError("scheduler is not running")
        self._loop_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._loop_task
        if self._shutdown is not None:
            self._shutdown.set()
        logger.info("scheduler has been stopped")

    async def wait_shutdown(self) -> None:
        """Wait until the scheduler is stopped or an interrupt signal arrives."""
        if self._shutdown is None:
            return
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._shutdown.set)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(sig)
        try:
            await self._shutdown.wait()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
        if self._loop_task is not None and not self._loop_task.done():
            await self.stop()

    async def _run_forever(self, args: Any, options: StartOptions) -> None:
        while True:
            await self._run_once(args, options)
            await asyncio.sleep(options.interval_ms / 1000)

    async def _run_once(self, args: Any, options: StartOptions) -> None:
        retries = 0
        while True:
            try:
                if options.task_timeout_ms is None:
                    await self.task.run(args)
                else:
                    await asyncio.wait_for(self.task.run(args), options.task_timeout_ms / 1000)
                return
            except asyncio.TimeoutError:
                logger.warning("task timed out after %s ms", options.task_timeout_ms)
                retry = not options.no_retry_on_timeout
            except MonitorError as error:
                logger.error("task raised error: %s", error)
                policy = options.retry_policy
                retry = policy is not None and policy.should_retry(error)
            except Exception as error:  # noqa: BLE001 - a failing run must not end the schedule
                logger.error("task raised unexpected error: %r", error)
                retry = False
            if not retry or retries >= options.max_retry_times:
                return
            retries += 1
            logger.info("retrying task, attempt %d of %d", retries, options.max_retry_times)