"""
Fire-and-forget background work.

`spawn_background` detaches a coroutine from the request that started it.
The caller never awaits the outcome: failures and timeouts are logged here
and dropped, and nothing is retried.
"""

import asyncio
from typing import Awaitable, Optional, Set

from loguru import logger

# Strong references so pending tasks are not garbage collected mid-flight
_pending: Set[asyncio.Task] = set()


async def _run_logged(awaitable: Awaitable, description: str) -> None:
    try:
        await awaitable
    except asyncio.TimeoutError:
        logger.warning(f"Background task abandoned after timeout: {description}")
    except asyncio.CancelledError:
        logger.warning(f"Background task cancelled: {description}")
        raise
    except Exception as e:
        logger.error(f"Background task failed: {description}: {type(e).__name__}: {e}")
    else:
        logger.debug(f"Background task finished: {description}")


def spawn_background(awaitable: Awaitable, description: str) -> asyncio.Task:
    """
    Schedule `awaitable` on the running loop and return immediately.

    Args:
        awaitable: Work to run detached from the caller.
        description: Human-readable label used in log lines.

    Returns:
        The created task. Callers normally ignore it.
    """
    task = asyncio.create_task(_run_logged(awaitable, description))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


def pending_background_tasks() -> int:
    return len(_pending)


async def drain_background_tasks(timeout: Optional[float] = None) -> None:
    """
    Wait for in-flight background tasks, cancelling what is left after `timeout`.
    """
    if not _pending:
        return

    tasks = list(_pending)
    logger.info(f"Waiting for {len(tasks)} background task(s)")
    done, still_running = await asyncio.wait(tasks, timeout=timeout)

    for task in still_running:
        task.cancel()
    if still_running:
        logger.warning(f"Cancelled {len(still_running)} background task(s) at shutdown")
        await asyncio.gather(*still_running, return_exceptions=True)
