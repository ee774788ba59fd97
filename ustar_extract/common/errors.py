"""
Custom exception classes for ustar_extract.
"""


class UstarExtractError(Exception):
    """Base exception class for ustar_extract errors."""
    pass


class SourceNotFoundError(UstarExtractError, FileNotFoundError):
    """Raised when the archive location does not exist."""

    def __init__(self, source):
        self.source = source
        super().__init__(f"Archive not found: {source!s}")


class TruncatedStreamError(UstarExtractError):
    """Raised when the stream ends before a full block could be read."""

    def __init__(self, offset: int, received: int):
        self.offset = offset
        self.received = received
        super().__init__(
            f"Truncated archive: expected 512 bytes at offset {offset}, got {received}"
        )


class MalformedHeaderError(UstarExtractError):
    """Raised when a numeric header field is not valid octal text."""

    def __init__(self, field: str, raw: bytes):
        self.field = field
        self.raw = raw
        super().__init__(f"Malformed header field {field!r}: {raw!r}")


class FilesystemFailureError(UstarExtractError):
    """Raised when creating a directory or writing a file fails."""

    def __init__(self, operation: str, path: str, reason: str = ""):
        self.operation = operation
        self.path = path
        message = f"Failed to {operation} {path!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExtractionCancelledError(UstarExtractError):
    """Raised when a cancellation signal is observed between block reads."""
    pass
