"""Little-endian cursor over an immutable input buffer."""

import struct
from typing import Iterator, Tuple

from .errors import InvalidInputError


_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteReader:
    """Sequential reader over a bytes-like buffer.

    The buffer is wrapped in a ``memoryview`` so slices handed out by
    ``read_bytes`` do not copy the underlying data. Every read that runs
    past the end raises ``InvalidInputError`` carrying the offset where
    the read started.
    """

    def __init__(self, data: bytes, pos: int = 0) -> None:
        self._view = memoryview(data)
        self.pos = pos

    @property
    def remaining(self) -> int:
        return len(self._view) - self.pos

    def _require(self, n: int, what: str) -> None:
        if n > self.remaining:
            raise InvalidInputError(
                f"Truncated input: need {n} bytes for {what}, have {self.remaining}",
                offset=self.pos,
            )

    def read_bytes(self, n: int, what: str = "bytes") -> memoryview:
        self._require(n, what)
        chunk = self._view[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def peek_bytes(self, n: int, what: str = "bytes") -> memoryview:
        self._require(n, what)
        return self._view[self.pos:self.pos + n]

    def unpack(self, fmt: struct.Struct, what: str = "value") -> Tuple:
        self._require(fmt.size, what)
        values = fmt.unpack_from(self._view, self.pos)
        self.pos += fmt.size
        return values

    def iter_unpack(self, fmt: struct.Struct, count: int, what: str = "array") -> Iterator[Tuple]:
        """Unpack ``count`` consecutive fixed-width elements."""
        chunk = self.read_bytes(fmt.size * count, what)
        return fmt.iter_unpack(chunk)

    def read_u8(self, what: str = "u8") -> int:
        return self.unpack(_U8, what)[0]

    def read_u32(self, what: str = "u32") -> int:
        return self.unpack(_U32, what)[0]

    def read_u64(self, what: str = "u64") -> int:
        return self.unpack(_U64, what)[0]

    def peek_u32(self, what: str = "u32") -> int:
        self._require(_U32.size, what)
        return _U32.unpack_from(self._view, self.pos)[0]

    def peek_u8(self, offset: int = 0, what: str = "u8") -> int:
        """Peek one byte ``offset`` bytes past the cursor."""
        if offset + 1 > self.remaining:
            raise InvalidInputError(
                f"Truncated input: need {offset + 1} bytes for {what}, have {self.remaining}",
                offset=self.pos,
            )
        return self._view[self.pos + offset]

    def read_string(self, what: str = "string") -> str:
        """Read a u32 length-prefixed UTF-8 string."""
        start = self.pos
        length = self.read_u32(what)
        raw = self.read_bytes(length, what)
        try:
            return str(raw, "utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError(f"Invalid UTF-8 in {what}: {e.reason}", offset=start) from e

    def expect(self, tag: bytes, what: str) -> None:
        """Consume ``tag`` exactly, or raise without consuming."""
        start = self.pos
        actual = bytes(self.peek_bytes(len(tag), what))
        if actual != tag:
            raise InvalidInputError(
                f"Malformed {what}: expected {tag.hex()}, found {actual.hex()}",
                offset=start,
            )
        self.pos += len(tag)
