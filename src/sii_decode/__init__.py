"""sii_decode: decoder for encrypted and binary SII files."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("sii-decode")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from sii_decode.api import (
    DocumentSummary,
    decode,
    decode_file,
    decode_until_siin,
    emit_siin,
    parse_bsii,
    summarize,
)
from sii_decode.codes import ErrorCode
from sii_decode.kernel.bsii_parse import ParseOptions
from sii_decode.kernel.errors import (
    EmitInvariantError,
    InvalidHeaderError,
    InvalidInputError,
    ParseError,
    SiiDecodeError,
    UnknownFileTypeError,
    UnsupportedTypeError,
    UnsupportedVersionError,
)

__all__ = [
    "__version__",
    "decode",
    "decode_file",
    "decode_until_siin",
    "emit_siin",
    "parse_bsii",
    "summarize",
    "DocumentSummary",
    "ParseOptions",
    "ErrorCode",
    "SiiDecodeError",
    "ParseError",
    "InvalidHeaderError",
    "InvalidInputError",
    "UnsupportedTypeError",
    "UnsupportedVersionError",
    "UnknownFileTypeError",
    "EmitInvariantError",
]
