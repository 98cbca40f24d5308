"""Supervised background tasks that outlive the request that started them."""

import asyncio
import logging
from typing import Awaitable, Optional, Set

from .deleter import DeletionReport


class BackgroundTasks:
    """Registry of detached tasks with a service-lifetime cancellation signal.

    Request handlers spawn work here instead of awaiting it. The registry
    keeps a reference to every running task, logs how each one ended and, on
    shutdown, asks them to stop via ``cancel_event`` before cancelling any
    that are still running.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.cancel_event = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()
        self._closing = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        """Schedule coro to run detached from the caller.

        Raises:
            RuntimeError: If shutdown has started
        """
        if self._closing:
            # Close the coroutine so it is not reported as never awaited
            coro.close()
            raise RuntimeError("Background tasks are shutting down")

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        name = task.get_name()

        if task.cancelled():
            self.logger.warning(f"Background task {name} was cancelled")
            return

        exc = task.exception()
        if exc is not None:
            self.logger.error(f"Background task {name} failed: {exc!r}", exc_info=exc)
            return

        result = task.result()
        if isinstance(result, DeletionReport) and not result.ok:
            self.logger.error(
                f"Background task {name} finished with {len(result.failures)} failed batches, "
                f"last error: {result.error!r}"
            )
        else:
            self.logger.info(f"Background task {name} completed")

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for running tasks to finish.

        Returns:
            True if no task is left running
        """
        if not self._tasks:
            return True
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        return not still_running

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Stop accepting work, signal cancellation and join running tasks.

        Tasks get up to timeout seconds to stop on their own; any still
        running afterwards are cancelled.
        """
        self._closing = True
        self.cancel_event.set()

        if not self._tasks:
            return

        self.logger.info(f"Waiting up to {timeout}s for {len(self._tasks)} background tasks")
        if await self.drain(timeout):
            return

        remaining = {task for task in self._tasks if not task.done()}
        self.logger.warning(f"Cancelling {len(remaining)} background tasks still running")
        for task in remaining:
            task.cancel()
        await asyncio.gather(*remaining, return_exceptions=True)
