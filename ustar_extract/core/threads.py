"""Worker-thread offloading that outlives cancellation of the caller."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Set


class ThreadOffloader:
    """Runs blocking calls in worker threads and tracks the ones in flight.

    A cancelled caller stops waiting, but the thread keeps running; `drain`
    waits for such calls so whatever they opened can still be released.
    """

    def __init__(self) -> None:
        self._pending: Set[asyncio.Future] = set()

    async def run(self, func: Callable[..., Any], *args: Any) -> Any:
        task = asyncio.ensure_future(asyncio.to_thread(func, *args))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return await asyncio.shield(task)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.wait(set(self._pending))
