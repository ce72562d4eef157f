"""Detect SII file forms from their 4 byte magic."""

from enum import Enum
from typing import Optional


class FileType(str, Enum):
    SCSC = "ScsC"  # encrypted, compressed container
    BSII = "BSII"  # binary records
    SIIN = "SiiN"  # text


MAGIC_SIZE = 4
_BY_MAGIC = {member.value.encode("ascii"): member for member in FileType}


def detect_file_type(content: bytes) -> Optional[FileType]:
    """Return the file type, or None if the prefix is unknown or too short."""
    if len(content) < MAGIC_SIZE:
        return None
    return _BY_MAGIC.get(bytes(content[:MAGIC_SIZE]))
