"""Exception hierarchy for the decode pipeline.

Every data error is a ``SiiDecodeError`` (and therefore a ``ValueError``)
carrying an ``ErrorCode``, the byte offset where it was detected and an
optional record context. ``EmitInvariantError`` is kept outside that
hierarchy: it signals a defect in the codec, not bad input.
"""

from typing import Optional

from sii_decode.codes import ErrorCode


class SiiDecodeError(ValueError):
    """Base class for all input-related decode failures."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        context: Optional[str] = None,
    ) -> None:
        self.message = message
        self.offset = offset
        self.context = context
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.context:
            text = f"{text} ({self.context})"
        if self.offset is not None:
            text = f"{text} at offset 0x{self.offset:x}"
        return text


class ParseError(SiiDecodeError):
    """A BSII stream could not be parsed."""


class InvalidHeaderError(ParseError):
    code = ErrorCode.INVALID_HEADER


class UnsupportedVersionError(ParseError):
    code = ErrorCode.UNSUPPORTED_VERSION


class InvalidInputError(ParseError):
    code = ErrorCode.INVALID_INPUT


class UnsupportedTypeError(ParseError):
    code = ErrorCode.UNSUPPORTED_TYPE


class ScscError(SiiDecodeError):
    """An ScsC container could not be decoded."""


class DecryptError(ScscError):
    code = ErrorCode.DECRYPT_FAILED


class DecompressError(ScscError):
    code = ErrorCode.DECOMPRESS_FAILED


class UnknownFileTypeError(SiiDecodeError):
    code = ErrorCode.UNKNOWN_FILE_TYPE


class EmitInvariantError(RuntimeError):
    """A parsed document violates an invariant the parser guarantees."""
