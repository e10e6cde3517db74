"""Fire-and-forget task spawning with logged-only failures."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)

# Strong references so the event loop does not garbage-collect running tasks
_tasks: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _tasks.discard(task)
    if task.cancelled():
        logger.warning("Background task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task %s failed", task.get_name(), exc_info=exc)


def spawn_background(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    """Schedule ``coro`` without joining it; errors are logged, never raised."""
    task = asyncio.create_task(coro, name=name)
    _tasks.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_background_tasks() -> int:
    return len(_tasks)


async def drain_background_tasks() -> None:
    """Wait for every outstanding task, including ones spawned while waiting."""
    while _tasks:
        await asyncio.gather(*list(_tasks), return_exceptions=True)
