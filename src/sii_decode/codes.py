"""Error code constants for sii_decode failures.

These constants prevent stringly-typed error codes and ensure
client code matches on the correct failure kinds.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Decode failure codes."""

    # BSII parse errors
    INVALID_HEADER = "INVALID_HEADER"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"

    # Pipeline errors
    UNKNOWN_FILE_TYPE = "UNKNOWN_FILE_TYPE"

    # ScsC container errors
    DECRYPT_FAILED = "DECRYPT_FAILED"
    DECOMPRESS_FAILED = "DECOMPRESS_FAILED"
