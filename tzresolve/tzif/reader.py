"""A cursor based reader over a byte buffer.

All multi-byte integers are big-endian (network byte order) as used by the
TZif format and the indexed blob format.
"""

from __future__ import annotations

import struct

from ..exceptions import TruncatedDataError

__all__ = [
    "ByteReader",
]

_U32 = struct.Struct(">L")
_I32 = struct.Struct(">l")
_I64 = struct.Struct(">q")


class ByteReader:
    """Reads fixed width fields from a buffer, advancing a cursor."""

    def __init__(self, data: bytes, position: int = 0) -> None:
        """Initialize ByteReader."""
        if not 0 <= position <= len(data):
            raise TruncatedDataError(
                f"Start position {position} is outside of buffer of {len(data)} bytes"
            )
        self._data = data
        self._position = position

    @property
    def position(self) -> int:
        """Return the current offset of the cursor."""
        return self._position

    @property
    def remaining(self) -> int:
        """Return the number of bytes left to read."""
        return len(self._data) - self._position

    def read_bytes(self, length: int) -> bytes:
        """Read exactly length bytes."""
        if length < 0:
            raise TruncatedDataError(f"Invalid read length {length}")
        if length > self.remaining:
            raise TruncatedDataError(
                f"Expected {length} bytes at offset {self._position} but only {self.remaining} remain"
            )
        start = self._position
        self._position += length
        return self._data[start : self._position]

    def skip(self, length: int) -> None:
        """Advance the cursor without decoding."""
        self.read_bytes(length)

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u32be(self) -> int:
        return _U32.unpack(self.read_bytes(_U32.size))[0]

    def read_i32be(self) -> int:
        return _I32.unpack(self.read_bytes(_I32.size))[0]

    def read_i64be(self) -> int:
        return _I64.unpack(self.read_bytes(_I64.size))[0]

    def read_fixed_string(self, length: int) -> str:
        """Read a string of exactly length bytes."""
        return self.read_bytes(length).decode("utf-8", errors="replace")

    def read_null_terminated_string(self, max_length: int) -> str:
        """Read a NUL padded field of max_length bytes, stopping at the first NUL."""
        raw = self.read_bytes(max_length)
        return raw.partition(b"\x00")[0].decode("utf-8", errors="replace")
