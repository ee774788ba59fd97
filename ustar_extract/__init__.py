"""ustar_extract - extract USTAR archives onto the filesystem.

Provides:
* Blocking and `async` extraction of directories and regular files
* Header decoding for POSIX and GNU ustar archives
* Entry listing without touching the filesystem

Entries are written to their effective path (prefix + name) as stored in
the archive; paths are not sanitized.
"""

from ._version import __version__
from .common.config import ExtractSettings  # noqa: F401
from .common.errors import (  # noqa: F401
    UstarExtractError,
    SourceNotFoundError,
    TruncatedStreamError,
    MalformedHeaderError,
    FilesystemFailureError,
    ExtractionCancelledError,
)
from .core.header import EntryHeader, decode_header  # noqa: F401
from .core.engine import ExtractionSummary  # noqa: F401
from .api import (  # noqa: F401
    extract,
    extract_async,
    extract_fileobj,
    extract_stream_async,
    list_entries,
    list_entries_async,
)

__all__ = [
    "__version__",
    "ExtractSettings",
    "UstarExtractError",
    "SourceNotFoundError",
    "TruncatedStreamError",
    "MalformedHeaderError",
    "FilesystemFailureError",
    "ExtractionCancelledError",
    "EntryHeader",
    "decode_header",
    "ExtractionSummary",
    "extract",
    "extract_async",
    "extract_fileobj",
    "extract_stream_async",
    "list_entries",
    "list_entries_async",
]
