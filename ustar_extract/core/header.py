"""
Header decoding and magic validation for ustar archive blocks.

A header is one 512-byte block. Numeric fields are ASCII octal padded with
NUL or space; text fields are NUL padded. The header checksum is decoded
as raw bytes but never verified.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from ..common.errors import MalformedHeaderError
from ..constants import BLOCK_SIZE, MAGIC_GNU, MAGIC_POSIX, HeaderFields, TypeFlags

_OCTAL_DIGITS = frozenset(b"01234567")


@dataclass(frozen=True)
class EntryHeader:
    """Decoded ustar entry header."""
    name: str
    mode: int
    uid: int
    gid: int
    size: int
    modified_at: datetime
    checksum: bytes
    type_flag: str
    linked_name: str
    user_name: str
    group_name: str
    device_major: bytes
    device_minor: bytes
    filename_prefix: str

    @property
    def effective_path(self) -> str:
        # The prefix is prepended as-is; archives that split long paths
        # without a trailing slash on the prefix are not rejoined.
        return self.filename_prefix + self.name

    @property
    def content_block_count(self) -> int:
        return -(-self.size // BLOCK_SIZE)

    @property
    def is_directory(self) -> bool:
        return self.type_flag == TypeFlags.DIRECTORY

    @property
    def is_regular_file(self) -> bool:
        return self.type_flag in (TypeFlags.REGULAR, TypeFlags.REGULAR_LEGACY)


def _field(block: bytes, bounds: tuple) -> bytes:
    start, end = bounds
    return block[start:end]


def decode_text(raw: bytes) -> str:
    """Drop every NUL byte and decode the rest verbatim.

    Non-ASCII bytes become surrogate escapes, so `os.fsencode` gives the
    original bytes back.
    """
    return raw.replace(b"\x00", b"").decode("ascii", "surrogateescape")


def parse_octal(raw: bytes, field: str) -> int:
    """
    Parse an ASCII octal numeric field.

    Args:
        raw: The raw field bytes
        field: Field name, used in the error message

    Returns:
        The decoded integer (0 for an all-padding field)

    Raises:
        MalformedHeaderError: If a byte before the NUL padding is neither
            an octal digit nor space padding
    """
    digits = raw.split(b"\x00", 1)[0].strip(b" ")
    if not digits:
        return 0
    if not _OCTAL_DIGITS.issuperset(digits):
        raise MalformedHeaderError(field, raw)
    return int(digits, 8)


def has_valid_magic(block: bytes) -> bool:
    """Return True if the block carries the POSIX or GNU ustar signature.

    An all-zero block fails this check, which is how the end of an archive
    is recognised.
    """
    magic = _field(block, HeaderFields.MAGIC)
    return magic == MAGIC_POSIX or magic == MAGIC_GNU


def decode_header(block: bytes) -> EntryHeader:
    """Decode one 512-byte block into an `EntryHeader`."""
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Header block must be {BLOCK_SIZE} bytes, got {len(block)}")

    mtime = parse_octal(_field(block, HeaderFields.MTIME), "mtime")
    return EntryHeader(
        name=decode_text(_field(block, HeaderFields.NAME)),
        mode=parse_octal(_field(block, HeaderFields.MODE), "mode"),
        uid=parse_octal(_field(block, HeaderFields.UID), "uid"),
        gid=parse_octal(_field(block, HeaderFields.GID), "gid"),
        size=parse_octal(_field(block, HeaderFields.SIZE), "size"),
        modified_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
        checksum=bytes(_field(block, HeaderFields.CHECKSUM)),
        type_flag=chr(block[HeaderFields.TYPE_FLAG[0]]),
        linked_name=decode_text(_field(block, HeaderFields.LINKED_NAME)),
        user_name=decode_text(_field(block, HeaderFields.USER_NAME)),
        group_name=decode_text(_field(block, HeaderFields.GROUP_NAME)),
        device_major=bytes(_field(block, HeaderFields.DEVICE_MAJOR)),
        device_minor=bytes(_field(block, HeaderFields.DEVICE_MINOR)),
        filename_prefix=decode_text(_field(block, HeaderFields.PREFIX)),
    )
