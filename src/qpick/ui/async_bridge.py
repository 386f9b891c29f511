"""Async bridge: background task tracking for the terminal UI."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")
_SCHEDULED_TASKS: set[asyncio.Task[Any]] = set()


def schedule(coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
    """Schedule an async coroutine on the running event loop.

    A reference is kept until the task finishes and unhandled exceptions are
    logged instead of being lost with the task.
    """
    task: asyncio.Task[T] = asyncio.create_task(coro)
    _SCHEDULED_TASKS.add(task)
    task.add_done_callback(_discard_task)
    task.add_done_callback(_log_exception)
    return task


async def drain_tasks() -> None:
    """Cancel every tracked task and wait until each has finished.

    Query tasks kill and reap their child process while unwinding, so after
    this returns no search command is left running.
    """
    loop = asyncio.get_running_loop()
    current = asyncio.current_task()
    tasks = [t for t in _SCHEDULED_TASKS if t is not current and t.get_loop() is loop]
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


def _log_exception(future: asyncio.Future[Any]) -> None:
    """Log any exception from a background task."""
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.exception("Unhandled exception in background task", exc_info=exc)


def _discard_task(task: asyncio.Future[Any]) -> None:
    _SCHEDULED_TASKS.discard(task)  # type: ignore[arg-type]
