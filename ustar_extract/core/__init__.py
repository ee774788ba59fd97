"""Archive parsing and extraction core."""

from .blocks import AsyncBlockReader, BlockReader, ThreadedFile  # noqa: F401
from .engine import ExtractionSummary, extraction_steps, listing_steps  # noqa: F401
from .header import EntryHeader, decode_header, has_valid_magic, parse_octal  # noqa: F401
from .sink import AsyncFilesystemSink, FilesystemSink  # noqa: F401
