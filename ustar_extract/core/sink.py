"""
Filesystem sink: the only place extraction touches the host filesystem.

Paths are joined onto the root verbatim. Entries with absolute paths or
`..` components are not sanitized and can land outside the root.
"""

from __future__ import annotations

import asyncio
import os
from typing import BinaryIO, List, Optional

from ..common.errors import FilesystemFailureError
from ..common.logging_config import get_logger
from .threads import ThreadOffloader


class FilesystemSink:
    """Creates directories and writes files under a root directory."""

    def __init__(self, root: Optional[str] = None):
        self.root = root
        self._root_ready = root is None
        self._open: List[BinaryIO] = []
        self._log = get_logger(__name__)

    def resolve(self, path: str) -> str:
        if self.root is None:
            return path
        return os.path.join(self.root, path)

    def _ensure_root(self) -> None:
        """Create the root directory before the first entry lands in it."""
        if self._root_ready:
            return
        try:
            os.makedirs(self.root, exist_ok=True)
        except OSError as e:
            raise FilesystemFailureError("create directory", self.root, e.strerror or str(e)) from e
        self._root_ready = True

    def make_directory(self, path: str) -> None:
        """Create a directory and any missing ancestors; existing is fine."""
        target = self.resolve(path)
        self._ensure_root()
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            raise FilesystemFailureError("create directory", target, e.strerror or str(e)) from e

    def open_for_write(self, path: str) -> BinaryIO:
        """Open (create or truncate) a file for binary writing."""
        target = self.resolve(path)
        self._ensure_root()
        try:
            handle = open(target, "wb")
        except OSError as e:
            raise FilesystemFailureError("open", target, e.strerror or str(e)) from e
        self._open.append(handle)
        return handle

    def write(self, handle: BinaryIO, data: bytes) -> None:
        try:
            handle.write(data)
        except OSError as e:
            raise FilesystemFailureError("write", handle.name, e.strerror or str(e)) from e

    def close(self, handle: BinaryIO) -> None:
        if handle in self._open:
            self._open.remove(handle)
        try:
            handle.close()
        except OSError as e:
            raise FilesystemFailureError("close", handle.name, e.strerror or str(e)) from e

    def close_all(self) -> None:
        """Close files left open by an aborted extraction."""
        while self._open:
            handle = self._open.pop()
            self._log.debug("Closing abandoned output file %s", handle.name)
            try:
                handle.close()
            except OSError as e:
                self._log.warning("Failed to close %s: %s", handle.name, e)


class AsyncFilesystemSink:
    """Runs every `FilesystemSink` call in a worker thread."""

    def __init__(self, sink: FilesystemSink):
        self._sink = sink
        self._threads = ThreadOffloader()

    @property
    def root(self) -> Optional[str]:
        return self._sink.root

    async def make_directory(self, path: str) -> None:
        await self._threads.run(self._sink.make_directory, path)

    async def open_for_write(self, path: str) -> BinaryIO:
        return await self._threads.run(self._sink.open_for_write, path)

    async def write(self, handle: BinaryIO, data: bytes) -> None:
        await self._threads.run(self._sink.write, handle, data)

    async def close(self, handle: BinaryIO) -> None:
        await self._threads.run(self._sink.close, handle)

    async def close_all(self) -> None:
        # An open abandoned by a cancelled caller registers its handle late.
        await self._threads.drain()
        await asyncio.to_thread(self._sink.close_all)
