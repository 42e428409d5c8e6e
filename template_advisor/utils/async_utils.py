"""Utility helpers for calling collaborators from the async event loop.

Knowledge sources and caches may be plain functions (in-process stores,
redis-py, SQL drivers) or coroutines. These helpers centralise the anyio
thread-offloading, the per-call timeout and the bookkeeping for
fire-and-forget background work.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar

import anyio
import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Strong references so background tasks are not garbage collected mid-flight
_BACKGROUND_TASKS: Set["asyncio.Task[Any]"] = set()


async def run_in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread and await the result.

    anyio.to_thread.run_sync only forwards *positional* arguments, therefore
    kwargs are captured in a closure.
    """

    if kwargs:
        return await anyio.to_thread.run_sync(lambda: func(*args, **kwargs))
    return await anyio.to_thread.run_sync(func, *args)


async def call_maybe_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Await coroutine functions directly; offload sync callables to a thread."""
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    result = await run_in_thread(func, *args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def with_timeout(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is None or timeout <= 0:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)


def spawn_background(coro: Awaitable[Any], *, name: str) -> "asyncio.Task[Any]":
    """Schedule *coro* detached from the caller.

    The task is not cancelled when the request finishes. Failures are logged
    from the done-callback and otherwise discarded.
    """
    task = asyncio.ensure_future(coro)
    _BACKGROUND_TASKS.add(task)

    def _done(t: "asyncio.Task[Any]") -> None:
        _BACKGROUND_TASKS.discard(t)
        if t.cancelled():
            logger.debug("Background task cancelled", task=name)
            return
        exc = t.exception()
        if exc is not None:
            logger.warning("Background task failed", task=name, error=str(exc))

    task.add_done_callback(_done)
    return task


def pending_background_tasks() -> int:
    return len(_BACKGROUND_TASKS)


async def drain_background_tasks(timeout: Optional[float] = None) -> None:
    """Wait for in-flight background tasks (shutdown hooks and tests)."""
    if not _BACKGROUND_TASKS:
        return
    pending = list(_BACKGROUND_TASKS)
    await asyncio.wait(pending, timeout=timeout)
