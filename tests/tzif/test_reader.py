"""Tests for the byte reader."""

import pytest

from tzresolve.exceptions import TruncatedDataError
from tzresolve.tzif.reader import ByteReader


def test_read_integers() -> None:
    """Test reading big-endian integers advances the cursor."""
    reader = ByteReader(
        b"\x07"
        b"\x00\x00\x01\x00"
        b"\xff\xff\xff\xfe"
        b"\xff\xff\xff\xff\xff\xff\xff\xf0"
    )
    assert reader.read_u8() == 7
    assert reader.position == 1
    assert reader.read_u32be() == 256
    assert reader.read_i32be() == -2
    assert reader.read_i64be() == -16
    assert reader.remaining == 0


def test_read_u32_is_unsigned() -> None:
    """Test the high bit is not treated as a sign for unsigned reads."""
    reader = ByteReader(b"\xff\xff\xff\xff")
    assert reader.read_u32be() == 4294967295


def test_read_strings() -> None:
    """Test fixed length and NUL terminated strings."""
    reader = ByteReader(b"TZifEurope/Paris\x00\x00\x00\x00CET")
    assert reader.read_fixed_string(4) == "TZif"
    assert reader.read_null_terminated_string(16) == "Europe/Paris"
    assert reader.position == 20
    assert reader.read_fixed_string(3) == "CET"


def test_null_terminated_string_fills_field() -> None:
    """Test a string without a NUL uses the whole field."""
    reader = ByteReader(b"abcdef")
    assert reader.read_null_terminated_string(4) == "abcd"
    assert reader.remaining == 2


def test_start_position() -> None:
    """Test reading from an offset into the buffer."""
    reader = ByteReader(b"\x00\x00\x00\x00\x00\x00\x00\x2a", 4)
    assert reader.read_u32be() == 42


@pytest.mark.parametrize(
    "data,read",
    [
        (b"", ByteReader.read_u8),
        (b"\x00\x00\x00", ByteReader.read_u32be),
        (b"\x00\x00\x00", ByteReader.read_i32be),
        (b"\x00\x00\x00\x00\x00\x00\x00", ByteReader.read_i64be),
    ],
)
def test_truncated_integers(data: bytes, read: object) -> None:
    """Test reads past the end of the buffer."""
    reader = ByteReader(data)
    with pytest.raises(TruncatedDataError, match="Expected"):
        read(reader)  # type: ignore[operator]
    assert reader.position == 0


def test_truncated_strings() -> None:
    """Test string reads past the end of the buffer."""
    reader = ByteReader(b"abc")
    with pytest.raises(TruncatedDataError):
        reader.read_fixed_string(4)
    with pytest.raises(TruncatedDataError):
        reader.read_null_terminated_string(40)
    with pytest.raises(TruncatedDataError):
        reader.skip(5)


def test_invalid_start_position() -> None:
    """Test a start position outside of the buffer."""
    with pytest.raises(TruncatedDataError, match="outside of buffer"):
        ByteReader(b"abc", 4)
