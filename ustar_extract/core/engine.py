"""
Extraction engine.

The extraction algorithm is written once, as a generator that performs no
I/O itself. It yields operation requests (`ReadBlock`, `MakeDirectory`,
`OpenFile`, `WriteBytes`, `CloseFile`) and is sent back their results. Two
drivers execute those requests:

* `run_blocking` with a `BlockingExecutor` (plain reads and writes)
* `run_suspending` with a `SuspendingExecutor` (every request awaited)

Both drivers feed the same generator, so both modes read the same blocks,
write the same bytes and emit the same progress lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generator, List, NamedTuple, Optional

from ..common.errors import ExtractionCancelledError
from ..common.logging_config import get_logger
from ..constants import BLOCK_SIZE
from .blocks import AsyncBlockReader, BlockReader
from .header import EntryHeader, decode_header, has_valid_magic
from .progress import (
    ProgressEvent,
    ProgressSink,
    directory_event,
    entry_event,
    file_event,
    skipped_event,
    written_event,
)
from .sink import AsyncFilesystemSink, FilesystemSink

logger = get_logger(__name__)


class ReadBlock(NamedTuple):
    """Request the next 512-byte block of the archive."""


class MakeDirectory(NamedTuple):
    path: str


class OpenFile(NamedTuple):
    path: str


class WriteBytes(NamedTuple):
    handle: Any
    data: bytes


class CloseFile(NamedTuple):
    handle: Any


READ_BLOCK = ReadBlock()


@dataclass
class ExtractionSummary:
    """Counters for one extraction run."""
    directories: int = 0
    files: int = 0
    skipped: int = 0
    bytes_written: int = 0
    blocks_read: int = 0


def _read_block(cancel):
    if cancel is not None and cancel.is_set():
        raise ExtractionCancelledError("Extraction cancelled")
    block = yield READ_BLOCK
    return block


def _emit(progress: Optional[ProgressSink], event: ProgressEvent) -> None:
    if progress is not None:
        progress(event.message)


def extraction_steps(
    progress: Optional[ProgressSink] = None,
    *,
    skip_unknown_entries: bool = True,
    cancel=None,
) -> Generator[Any, Any, ExtractionSummary]:
    """
    Drive one extraction as a sequence of operation requests.

    Args:
        progress: Line callback notified of each entry, or None
        skip_unknown_entries: Read past the content blocks of entries that
            are neither files nor directories. When False, those blocks are
            left in place and parsed as the next header
        cancel: Optional object with `is_set()`, checked before every read

    Returns:
        The run's `ExtractionSummary` (as the generator's return value)
    """
    summary = ExtractionSummary()

    while True:
        block = yield from _read_block(cancel)
        summary.blocks_read += 1
        if not has_valid_magic(block):
            logger.debug("End of archive after %d blocks", summary.blocks_read)
            return summary

        header = decode_header(block)
        path = header.effective_path
        _emit(progress, entry_event(path))

        if header.is_directory:
            logger.debug("Creating directory %s", path)
            yield MakeDirectory(path)
            summary.directories += 1
            _emit(progress, directory_event(path))

        elif header.is_regular_file:
            blocks = header.content_block_count
            logger.debug("Writing %s (%d bytes, %d blocks)", path, header.size, blocks)
            _emit(progress, file_event(path, header.size, blocks))
            handle = yield OpenFile(path)
            remaining = header.size
            for _ in range(blocks):
                block = yield from _read_block(cancel)
                summary.blocks_read += 1
                # The tail of the last block is padding.
                chunk = block if remaining >= BLOCK_SIZE else block[:remaining]
                yield WriteBytes(handle, chunk)
                remaining -= len(chunk)
            yield CloseFile(handle)
            summary.files += 1
            summary.bytes_written += header.size
            _emit(progress, written_event(path, header.size))

        else:
            logger.debug("Skipping %s with unsupported type %r", path, header.type_flag)
            _emit(progress, skipped_event(path, header.type_flag))
            if skip_unknown_entries:
                for _ in range(header.content_block_count):
                    yield from _read_block(cancel)
                    summary.blocks_read += 1
            summary.skipped += 1


def listing_steps(cancel=None) -> Generator[Any, Any, List[EntryHeader]]:
    """Walk the archive and collect every header, skipping content blocks."""
    entries: List[EntryHeader] = []
    while True:
        block = yield from _read_block(cancel)
        if not has_valid_magic(block):
            return entries
        header = decode_header(block)
        entries.append(header)
        for _ in range(header.content_block_count):
            yield from _read_block(cancel)


class BlockingExecutor:
    """Performs operation requests with blocking I/O."""

    def __init__(self, reader: BlockReader, sink: Optional[FilesystemSink] = None):
        self.reader = reader
        self.sink = sink

    def perform(self, op):
        if isinstance(op, ReadBlock):
            return self.reader.read_block()
        if isinstance(op, MakeDirectory):
            return self.sink.make_directory(op.path)
        if isinstance(op, OpenFile):
            return self.sink.open_for_write(op.path)
        if isinstance(op, WriteBytes):
            return self.sink.write(op.handle, op.data)
        if isinstance(op, CloseFile):
            return self.sink.close(op.handle)
        raise TypeError(f"Unknown operation: {op!r}")

    def release(self) -> None:
        if self.sink is not None:
            self.sink.close_all()


class SuspendingExecutor:
    """Performs operation requests by awaiting each one."""

    def __init__(self, reader: AsyncBlockReader, sink: Optional[AsyncFilesystemSink] = None):
        self.reader = reader
        self.sink = sink

    async def perform(self, op):
        if isinstance(op, ReadBlock):
            return await self.reader.read_block()
        if isinstance(op, MakeDirectory):
            return await self.sink.make_directory(op.path)
        if isinstance(op, OpenFile):
            return await self.sink.open_for_write(op.path)
        if isinstance(op, WriteBytes):
            return await self.sink.write(op.handle, op.data)
        if isinstance(op, CloseFile):
            return await self.sink.close(op.handle)
        raise TypeError(f"Unknown operation: {op!r}")

    async def release(self) -> None:
        if self.sink is not None:
            await self.sink.close_all()


def run_blocking(steps: Generator, executor: BlockingExecutor):
    """Run a step generator to completion and return its result.

    Output files left open by an error are closed before the error
    propagates.
    """
    try:
        op = next(steps)
        while True:
            op = steps.send(executor.perform(op))
    except StopIteration as stop:
        return stop.value
    finally:
        steps.close()
        executor.release()


async def run_suspending(steps: Generator, executor: SuspendingExecutor):
    """Async counterpart of `run_blocking`."""
    try:
        op = next(steps)
        while True:
            op = steps.send(await executor.perform(op))
    except StopIteration as stop:
        return stop.value
    finally:
        steps.close()
        await executor.release()
