"""Library for reading and writing TZif files.

The TZif format (rfc8536) is the binary format of the system time zone
database. A file contains a header and a data block with 32-bit times,
and for version 2 and later a second header and data block with 64-bit
times followed by a footer containing a POSIX TZ string that describes
transitions after the last one in the data block.

The 32-bit block of a version 2+ file loses both precision and range, so
it is skipped entirely and only the 64-bit block is decoded.

Note: This implementation is more verbose than the zoneinfo implementation
and contains more documentation and references to the file format to serve
as a resource for understanding the format.
"""

from __future__ import annotations

import enum
import io
import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass

from ..exceptions import InvalidPosixRuleError, MalformedDatabaseError
from .model import OffsetRecord, ParsedDatabase, RawTransition
from .posix import parse_tz_rule
from .reader import ByteReader

__all__ = [
    "read_tzif",
    "write_tzif",
]

_LOGGER = logging.getLogger(__name__)

# Records specifying the local time type
_LOCAL_TIME_TYPE_STRUCT_FORMAT = "".join(
    [
        ">",  # Use standard size of packed value bytes
        "l",  # utoff (4 bytes): Number of seconds to add to UTC to determine local time
        "?",  # dst (1 byte): Indicates the time is DST (1) or standard (0)
        "B",  # idx (1 byte): Offset index into the time zone designiation octets (0-charcnt-1)
    ]
)
_LOCAL_TIME_RECORD_SIZE = 6


class _TZifVersion(enum.Enum):
    """Defines information related to _TZifVersions."""

    V1 = (b"\x00", 1, 4, "l")  # 32-bit in v1
    V2 = (b"2", 2, 8, "q")  # 64-bit in v2+
    V3 = (b"3", 3, 8, "q")
    V4 = (b"4", 4, 8, "q")

    def __init__(self, version: bytes, number: int, time_size: int, time_format: str):
        self._version = version
        self._number = number
        self._time_size = time_size
        self._time_format = time_format

    @property
    def version(self) -> bytes:
        """Return the version byte string."""
        return self._version

    @property
    def number(self) -> int:
        """Return the version number."""
        return self._number

    @property
    def time_size(self) -> int:
        """Return the TIME_SIZE used in the data block parsing."""
        return self._time_size

    @property
    def time_format(self) -> str:
        """Return the struct format string for TIME_SIZE objects."""
        return self._time_format

    def read_time(self, reader: ByteReader) -> int:
        """Read a TIME_SIZE value from the reader."""
        if self._time_size == 4:
            return reader.read_i32be()
        return reader.read_i64be()

    @classmethod
    def from_bytes(cls, version: bytes) -> _TZifVersion:
        """Return the version for the header version byte."""
        for value in cls:
            if value.version == version:
                return value
        raise MalformedDatabaseError(f"Unsupported TZif version: {version!r}")


@dataclass
class _Header:
    """TZif _Header information."""

    SIZE = 44  # Total size of the header to read
    MAGIC = "TZif".encode()

    version: _TZifVersion
    """The version of the files format."""

    isutccnt: int
    """The number of UTC/local indicators in the data block."""

    isstdcnt: int
    """The number of standard/wall indicators in the data block."""

    leapcnt: int
    """The number of leap second records in the data block."""

    timecnt: int
    """The number of time transitions in the data block."""

    typecnt: int
    """The number of local time type records in the data block."""

    charcnt: int
    """The number of characters for time zone designations in the data block."""

    @classmethod
    def read(cls, reader: ByteReader) -> _Header:
        """Parse the header from the reader."""
        magic = reader.read_bytes(len(_Header.MAGIC))
        if magic != _Header.MAGIC:
            raise MalformedDatabaseError("zoneinfo file did not contain magic header")
        version = _TZifVersion.from_bytes(reader.read_bytes(1))
        reader.skip(15)  # unused
        header = _Header(
            version,
            isutccnt=reader.read_u32be(),
            isstdcnt=reader.read_u32be(),
            leapcnt=reader.read_u32be(),
            timecnt=reader.read_u32be(),
            typecnt=reader.read_u32be(),
            charcnt=reader.read_u32be(),
        )
        if header.isutccnt not in (0, header.typecnt):
            raise MalformedDatabaseError(
                f"UTC/local indicators in datablock mismatched ({header.isutccnt}, {header.typecnt})"
            )
        if header.isstdcnt not in (0, header.typecnt):
            raise MalformedDatabaseError(
                f"standard/wall indicators in datablock mismatched ({header.isstdcnt}, {header.typecnt})"
            )
        if header.typecnt == 0:
            raise MalformedDatabaseError("Local time records in block is zero")
        if header.charcnt == 0:
            raise MalformedDatabaseError("Total number of octets is zero")
        return header

    def datablock_size(self, version: _TZifVersion) -> int:
        """Return the number of bytes in a data block with this header."""
        return (
            self.timecnt * version.time_size
            + self.timecnt
            + self.typecnt * _LOCAL_TIME_RECORD_SIZE
            + self.charcnt
            + self.leapcnt * (version.time_size + 4)
            + self.isstdcnt
            + self.isutccnt
        )

    def to_bytes(self) -> bytes:
        """Serialize the header."""
        return struct.pack(
            ">4sc15x6L",
            _Header.MAGIC,
            self.version.version,
            self.isutccnt,
            self.isstdcnt,
            self.leapcnt,
            self.timecnt,
            self.typecnt,
            self.charcnt,
        )


def _abbreviation_lookup(tz_designations: bytes) -> Callable[[int], str]:
    """Return a function that finds the NUL terminated string at an index."""

    def get_tz_designation(idx: int) -> str:
        if idx >= len(tz_designations):
            raise MalformedDatabaseError(
                f"Designation index out of bounds {idx} >= {len(tz_designations)}"
            )
        end = tz_designations.find(b"\x00", idx)
        if end == -1:
            end = len(tz_designations)
        return tz_designations[idx:end].decode("utf-8", errors="replace")

    return get_tz_designation


def _read_datablock(
    header: _Header, version: _TZifVersion, reader: ByteReader
) -> tuple[tuple[RawTransition, ...], tuple[OffsetRecord, ...]]:
    """Read records from the buffer."""
    # A series of transition times in sorted order
    transition_times = [version.read_time(reader) for _ in range(header.timecnt)]

    # A series of integers specifying the type of local time of the corresponding
    # transition time. These are zero-based indices into the array of local
    # time type records. (from 0 to typecnt-1)
    transition_types = list(reader.read_bytes(header.timecnt))

    local_time_types = [
        struct.unpack(_LOCAL_TIME_TYPE_STRUCT_FORMAT, reader.read_bytes(_LOCAL_TIME_RECORD_SIZE))
        for _ in range(header.typecnt)
    ]

    # An array of NUL-terminated time zone designation strings
    get_tz_designation = _abbreviation_lookup(reader.read_bytes(header.charcnt))

    # Leap second records (occurrence, correction) are not applied
    reader.skip(header.leapcnt * (version.time_size + 4))

    # Standard/wall and UT/local indicators only matter for interpreting a
    # POSIX TZ string without rules, which is not supported.
    reader.skip(header.isstdcnt)
    reader.skip(header.isutccnt)

    for previous, current in zip(transition_times, transition_times[1:]):
        if previous >= current:
            raise MalformedDatabaseError(
                f"Transition times are not strictly increasing ({previous} >= {current})"
            )
    for transition_type in transition_types:
        if transition_type >= header.typecnt:
            raise MalformedDatabaseError(
                f"transition_type out of bounds {transition_type} >= {header.typecnt}"
            )

    offsets = tuple(
        OffsetRecord(utoff, dst, idx, get_tz_designation(idx))
        for (utoff, dst, idx) in local_time_types
    )
    transitions = tuple(
        RawTransition(instant, transition_type)
        for instant, transition_type in zip(transition_times, transition_types)
    )
    return (transitions, offsets)


def _read_footer(reader: ByteReader) -> str:
    """Read the newline enclosed POSIX TZ string following the v2+ data block."""
    footer = reader.read_bytes(reader.remaining)
    parts = footer.split(b"\n")
    if len(parts) < 3 or parts[0] or any(parts[2:]):
        raise MalformedDatabaseError("Failed to read TZ footer")
    try:
        return parts[1].decode("ascii")
    except UnicodeDecodeError as err:
        raise MalformedDatabaseError("TZ footer is not ascii") from err


def read_tzif(content: bytes) -> ParsedDatabase:
    """Read the TZif file and parse and return the timezone records."""
    reader = ByteReader(content)

    # V1 header and block
    header = _Header.read(reader)
    if header.version == _TZifVersion.V1:
        (transitions, offsets) = _read_datablock(header, _TZifVersion.V1, reader)
        return ParsedDatabase(_TZifVersion.V1.number, transitions, offsets)

    # The V1 block of a V2+ file is superseded by the V2+ block
    reader.skip(header.datablock_size(_TZifVersion.V1))

    # V2+ header and block
    header = _Header.read(reader)
    (transitions, offsets) = _read_datablock(header, header.version, reader)

    # V2+ footer
    posix_tail = _read_footer(reader)
    rule = None
    if posix_tail:
        try:
            rule = parse_tz_rule(posix_tail)
        except InvalidPosixRuleError as err:
            raise InvalidPosixRuleError(f"Invalid TZ footer: {err.message}") from err
    _LOGGER.debug(
        "Read TZif v%d with %d transitions, footer %r",
        header.version.number,
        len(transitions),
        posix_tail,
    )
    return ParsedDatabase(
        header.version.number, transitions, offsets, posix_tail or None, rule
    )


def _write_datablock(
    parsed: ParsedDatabase, version: _TZifVersion, designations: bytes
) -> bytes:
    """Serialize a header and a data block with the TIME_SIZE of version."""
    buf = io.BytesIO()
    header = _Header(
        _TZifVersion.from_bytes(_version_byte(parsed)),
        isutccnt=0,
        isstdcnt=0,
        leapcnt=0,
        timecnt=len(parsed.transitions),
        typecnt=len(parsed.offsets),
        charcnt=len(designations),
    )
    buf.write(header.to_bytes())
    for transition in parsed.transitions:
        buf.write(struct.pack(f">{version.time_format}", transition.instant))
    buf.write(bytes(transition.offset_index for transition in parsed.transitions))
    for record in parsed.offsets:
        buf.write(
            struct.pack(
                _LOCAL_TIME_TYPE_STRUCT_FORMAT,
                record.utc_offset,
                record.is_dst,
                record.abbreviation_index,
            )
        )
    buf.write(designations)
    return buf.getvalue()


def _version_byte(parsed: ParsedDatabase) -> bytes:
    return b"\x00" if parsed.version == 1 else str(parsed.version).encode()


def _designations(parsed: ParsedDatabase) -> bytes:
    """Rebuild the designation table so each record's index points at its abbreviation."""
    table = bytearray()
    for record in parsed.offsets:
        abbreviation = (record.abbreviation or "").encode() + b"\x00"
        end = record.abbreviation_index + len(abbreviation)
        if len(table) < end:
            table.extend(b"\x00" * (end - len(table)))
        table[record.abbreviation_index : end] = abbreviation
    return bytes(table) or b"\x00"


def write_tzif(parsed: ParsedDatabase) -> bytes:
    """Serialize a ParsedDatabase as TZif content.

    A version 1 database is written with 32-bit times only. Later versions
    write an empty 32-bit block followed by the 64-bit block and footer.
    """
    designations = _designations(parsed)
    if parsed.version == 1:
        return _write_datablock(parsed, _TZifVersion.V1, designations)
    version = _TZifVersion.from_bytes(_version_byte(parsed))
    empty = ParsedDatabase(parsed.version, (), parsed.offsets)
    return b"".join(
        [
            _write_datablock(empty, _TZifVersion.V1, designations),
            _write_datablock(parsed, version, designations),
            b"\n",
            (parsed.posix_tail or "").encode("ascii"),
            b"\n",
        ]
    )
