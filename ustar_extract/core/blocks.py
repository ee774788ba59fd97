"""Fixed-size block readers over blocking and asynchronous streams."""

from __future__ import annotations

import asyncio
from typing import BinaryIO

from ..common.errors import TruncatedStreamError
from ..constants import BLOCK_SIZE
from .threads import ThreadOffloader


class BlockReader:
    """Pulls 512-byte blocks from a blocking binary stream."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._offset = 0

    @property
    def offset(self) -> int:
        """Number of bytes consumed from the stream so far."""
        return self._offset

    def read_block(self) -> bytes:
        """
        Read exactly one block.

        Returns:
            A new 512-byte buffer

        Raises:
            TruncatedStreamError: If the stream ends first
        """
        chunks = []
        received = 0
        while received < BLOCK_SIZE:
            chunk = self._stream.read(BLOCK_SIZE - received)
            if not chunk:
                break
            chunks.append(chunk)
            received += len(chunk)
        return self._finish(b"".join(chunks))

    def _finish(self, block: bytes) -> bytes:
        if len(block) < BLOCK_SIZE:
            raise TruncatedStreamError(self._offset, len(block))
        self._offset += BLOCK_SIZE
        return block


class AsyncBlockReader(BlockReader):
    """Pulls 512-byte blocks from any source with a coroutine `read(n)`.

    `asyncio.StreamReader` works as-is; blocking files go through
    `ThreadedFile`.
    """

    async def read_block(self) -> bytes:  # type: ignore[override]
        chunks = []
        received = 0
        while received < BLOCK_SIZE:
            chunk = await self._stream.read(BLOCK_SIZE - received)
            if not chunk:
                break
            chunks.append(chunk)
            received += len(chunk)
        return self._finish(b"".join(chunks))


class ThreadedFile:
    """Expose a blocking binary file through `async read` / `async close`."""

    def __init__(self, fileobj: BinaryIO):
        self._fileobj = fileobj
        self._threads = ThreadOffloader()

    @property
    def closed(self) -> bool:
        return self._fileobj.closed

    async def read(self, size: int = -1) -> bytes:
        return await self._threads.run(self._fileobj.read, size)

    async def close(self) -> None:
        # A read abandoned by a cancelled caller may still be running.
        await self._threads.drain()
        await asyncio.to_thread(self._fileobj.close)
