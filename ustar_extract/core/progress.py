"""
Progress reporting for extraction runs.

A progress sink is any line-oriented destination. It only observes: nothing
it does feeds back into the extraction.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple, Optional

ProgressSink = Callable[[str], None]


class ProgressEvent(NamedTuple):
    """One progress line."""
    kind: str
    path: str
    message: str


class EventKinds:
    """Progress event kinds, in the order an entry emits them."""
    ENTRY = "entry"
    DIRECTORY = "directory"
    FILE = "file"
    SKIPPED = "skipped"
    WRITTEN = "written"


def entry_event(path: str) -> ProgressEvent:
    return ProgressEvent(EventKinds.ENTRY, path, path)


def directory_event(path: str) -> ProgressEvent:
    return ProgressEvent(EventKinds.DIRECTORY, path, f"directory {path}")


def file_event(path: str, size: int, blocks: int) -> ProgressEvent:
    return ProgressEvent(EventKinds.FILE, path, f"file {path} ({size} bytes, {blocks} blocks)")


def skipped_event(path: str, type_flag: str) -> ProgressEvent:
    return ProgressEvent(
        EventKinds.SKIPPED, path, f"skip {path}: unsupported entry type {type_flag!r}"
    )


def written_event(path: str, size: int) -> ProgressEvent:
    return ProgressEvent(EventKinds.WRITTEN, path, f"wrote {path} ({size} bytes)")


def resolve_progress_sink(target: Any) -> Optional[ProgressSink]:
    """
    Turn the caller's progress target into a line callback.

    Args:
        target: None, a `logging.Logger`, a text stream with `write`, or a
            callable taking one line

    Returns:
        A callable accepting one line, or None when nothing should be emitted
    """
    if target is None:
        return None
    if isinstance(target, logging.Logger):
        return target.info
    if hasattr(target, "write"):
        def _write_line(line: str) -> None:
            target.write(f"{line}\n")
        return _write_line
    if callable(target):
        return target
    raise TypeError(f"Unsupported progress sink: {target!r}")
