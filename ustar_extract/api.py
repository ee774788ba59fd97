"""
Public entry points for extracting and listing ustar archives.

Every entry point comes in a blocking and a suspending (`async`) flavour.
Entries are written under `destination` (default: the current working
directory) using each entry's effective path as-is.
"""

from __future__ import annotations

import os
from typing import Any, BinaryIO, List, Optional

from .common.config import ExtractSettings
from .common.errors import FilesystemFailureError, SourceNotFoundError
from .common.logging_config import get_logger
from .core.blocks import AsyncBlockReader, BlockReader, ThreadedFile
from .core.engine import (
    BlockingExecutor,
    ExtractionSummary,
    SuspendingExecutor,
    extraction_steps,
    listing_steps,
    run_blocking,
    run_suspending,
)
from .core.header import EntryHeader
from .core.progress import resolve_progress_sink
from .core.sink import AsyncFilesystemSink, FilesystemSink

logger = get_logger(__name__)


def _check_source(source) -> str:
    path = os.fspath(source)
    if not os.path.exists(path):
        raise SourceNotFoundError(source)
    return path


def _open_source(path: str):
    try:
        return open(path, "rb")
    except OSError as e:
        raise FilesystemFailureError("open archive", path, e.strerror or str(e)) from e


def _resolve(settings: Optional[ExtractSettings], destination) -> ExtractSettings:
    settings = settings or ExtractSettings.from_env()
    if destination is not None:
        settings = ExtractSettings(
            skip_unknown_entries=settings.skip_unknown_entries,
            destination=os.fspath(destination),
        )
    return settings


def _steps(progress: Any, settings: ExtractSettings, cancel):
    return extraction_steps(
        resolve_progress_sink(progress),
        skip_unknown_entries=settings.skip_unknown_entries,
        cancel=cancel,
    )


def extract_fileobj(
    fileobj: BinaryIO,
    progress: Any = None,
    *,
    destination=None,
    settings: Optional[ExtractSettings] = None,
    cancel=None,
) -> ExtractionSummary:
    """Extract from an open binary stream. The caller keeps ownership of it."""
    settings = _resolve(settings, destination)
    executor = BlockingExecutor(BlockReader(fileobj), FilesystemSink(settings.destination))
    return run_blocking(_steps(progress, settings, cancel), executor)


def extract(
    source,
    progress: Any = None,
    *,
    destination=None,
    settings: Optional[ExtractSettings] = None,
    cancel=None,
) -> ExtractionSummary:
    """
    Extract every directory and regular file of a ustar archive.

    Args:
        source: Path of the archive
        progress: Optional progress sink (logger, text stream or callable)
        destination: Directory to extract under, overriding settings
        settings: Extraction settings (default: resolved from environment)
        cancel: Optional object with `is_set()`, checked between block reads

    Returns:
        Summary counters of the run

    Raises:
        SourceNotFoundError: If `source` does not exist (nothing is touched)
        TruncatedStreamError: If the archive ends mid-block
        MalformedHeaderError: If a numeric header field is not octal
        FilesystemFailureError: If the archive cannot be opened, or creating or
            writing output fails
    """
    path = _check_source(source)
    logger.info("Extracting %s", path)
    with _open_source(path) as fileobj:
        summary = extract_fileobj(
            fileobj, progress, destination=destination, settings=settings, cancel=cancel
        )
    logger.info(
        "Extracted %s: %d directories, %d files, %d skipped",
        path, summary.directories, summary.files, summary.skipped,
    )
    return summary


async def extract_stream_async(
    reader,
    progress: Any = None,
    *,
    destination=None,
    settings: Optional[ExtractSettings] = None,
    cancel=None,
) -> ExtractionSummary:
    """Extract from any source with a coroutine `read(n)`, e.g. a StreamReader."""
    settings = _resolve(settings, destination)
    executor = SuspendingExecutor(
        AsyncBlockReader(reader),
        AsyncFilesystemSink(FilesystemSink(settings.destination)),
    )
    return await run_suspending(_steps(progress, settings, cancel), executor)


async def extract_async(
    source,
    progress: Any = None,
    *,
    destination=None,
    settings: Optional[ExtractSettings] = None,
    cancel=None,
) -> ExtractionSummary:
    """Suspending counterpart of `extract`, with the same arguments and errors."""
    path = _check_source(source)
    logger.info("Extracting %s", path)
    stream = ThreadedFile(_open_source(path))
    try:
        summary = await extract_stream_async(
            stream, progress, destination=destination, settings=settings, cancel=cancel
        )
    finally:
        await stream.close()
    logger.info(
        "Extracted %s: %d directories, %d files, %d skipped",
        path, summary.directories, summary.files, summary.skipped,
    )
    return summary


def list_entries(source) -> List[EntryHeader]:
    """Return the headers of every entry in the archive, in stream order."""
    path = _check_source(source)
    with _open_source(path) as fileobj:
        return run_blocking(listing_steps(), BlockingExecutor(BlockReader(fileobj)))


async def list_entries_async(source) -> List[EntryHeader]:
    path = _check_source(source)
    stream = ThreadedFile(_open_source(path))
    try:
        return await run_suspending(listing_steps(), SuspendingExecutor(AsyncBlockReader(stream)))
    finally:
        await stream.close()
