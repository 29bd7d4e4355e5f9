"""
Fire-and-forget dispatch for side effects that run after a commit.

Tasks are kept referenced until they finish so the event loop does not
garbage-collect them mid-flight. Failures are logged; they never reach the
request that scheduled them.
"""

import asyncio
from typing import Awaitable

from eventdesk.core.logging import get_logger

logger = get_logger(__name__)

_pending: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.warning("background_task_cancelled", task=task.get_name())
        return
    error = task.exception()
    if error is not None:
        logger.warning("background_task_failed", task=task.get_name(), error=str(error))


def fire_and_forget(coro: Awaitable, name: str) -> asyncio.Task:
    task = asyncio.ensure_future(coro)
    task.set_name(name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


async def drain(timeout: float = 10.0) -> None:
    """Wait for in-flight side effects on shutdown."""
    if not _pending:
        return
    logger.info("background_drain", pending=len(_pending))
    _, still_running = await asyncio.wait(set(_pending), timeout=timeout)
    for task in still_running:
        task.cancel()
