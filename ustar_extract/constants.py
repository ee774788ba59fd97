"""
Constants for the ustar archive layout.
"""

BLOCK_SIZE = 512

MAGIC_POSIX = b"ustar\x0000"
MAGIC_GNU = b"ustar  \x00"


class HeaderFields:
    """Byte ranges of the header fields (start, end)."""
    NAME = (0, 100)
    MODE = (100, 108)
    UID = (108, 116)
    GID = (116, 124)
    SIZE = (124, 136)
    MTIME = (136, 148)
    CHECKSUM = (148, 156)
    TYPE_FLAG = (156, 157)
    LINKED_NAME = (157, 257)
    MAGIC = (257, 265)
    USER_NAME = (265, 297)
    GROUP_NAME = (297, 329)
    DEVICE_MAJOR = (329, 337)
    DEVICE_MINOR = (337, 345)
    PREFIX = (345, 500)


class TypeFlags:
    """Entry type flags the extractor dispatches on."""
    REGULAR = "0"
    REGULAR_LEGACY = "\x00"
    DIRECTORY = "5"
