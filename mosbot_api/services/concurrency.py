"""Concurrent fan-out for request-scoped reads."""

import asyncio
from collections.abc import Coroutine
from typing import Any


async def run_concurrently(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Run ``coros`` concurrently and return their results in order.

    The first failure cancels the remaining coroutines and is re-raised
    unwrapped, so callers can keep catching the original exception type.
    Cancelling the caller cancels every child.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(coro) for coro in coros]
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from eg
    return [task.result() for task in tasks]
