"""Join barrier for concurrent plugin batches.

``join_all`` launches every awaitable as a task on the running loop and
returns only when all of them have finished. The first failure is
re-raised after the still-running siblings have been cancelled and have
settled, so no unit of a failed batch keeps running into the next phase.

There is no timeout: a unit that never completes stalls the batch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


async def join_all(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Await all ``awaitables`` concurrently; fail fast on the first error.

    Results are returned in submission order.
    """
    tasks: list[asyncio.Future[Any]] = [asyncio.ensure_future(item) for item in awaitables]
    if not tasks:
        return []

    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        raise


__all__ = ["join_all"]
