"""Stores reading zones from a single indexed blob of TZif files.

The blob format is the one used by bionic (the Android C library) to ship
the whole time zone database as one file:

  - A 24 byte header: a 12 byte NUL padded version string starting with
    "tzdata" (e.g. tzdata2024a), then the big-endian i32 offsets of the
    index, the data region and the end of the data region.
  - An index of 52 byte records: a 40 byte NUL padded zone id and the
    big-endian i32 start (relative to the data region), length and an
    unused field.
  - The data region holding the concatenated TZif files.

Later index records with the same zone id replace earlier ones, so that an
updated dataset can be layered on top of an older one.
"""

from __future__ import annotations

import io
import logging
import os
import pathlib
import struct
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from importlib import resources

from ..exceptions import (
    DatabaseInitializationError,
    MalformedDatabaseError,
    TimezoneParseError,
    UnknownTimeZoneError,
)
from ..tzif.reader import ByteReader
from .base import TZifStore

__all__ = [
    "BlobHeader",
    "EmbeddedStore",
    "IndexedBlobStore",
    "build_indexed_blob",
    "read_index",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_BLOB_PATHS = (
    "/system/usr/share/zoneinfo/tzdata",  # immutable fallback database
    "/apex/com.android.tzdata/etc/tz/tzdata",  # updated database, may not exist
)

_VERSION_SIZE = 12
_VERSION_PREFIX = "tzdata"
_HEADER_SIZE = _VERSION_SIZE + 3 * 4
_NAME_SIZE = 40
_INDEX_ENTRY_SIZE = _NAME_SIZE + 3 * 4


@dataclass(frozen=True)
class BlobHeader:
    """The header at the start of an indexed blob."""

    version: str
    """The dataset version, e.g. tzdata2024a."""

    index_offset: int
    """Position of the first index record."""

    data_offset: int
    """Position of the data region, which is also the end of the index."""

    final_offset: int
    """Position of the end of the data region."""

    @classmethod
    def read(cls, content: bytes) -> BlobHeader:
        """Parse and validate the header at the start of the blob."""
        reader = ByteReader(content)
        header = cls(
            version=reader.read_null_terminated_string(_VERSION_SIZE),
            index_offset=reader.read_i32be(),
            data_offset=reader.read_i32be(),
            final_offset=reader.read_i32be(),
        )
        if not header.version.startswith(_VERSION_PREFIX) or len(header.version) >= _VERSION_SIZE:
            raise MalformedDatabaseError(f"Unknown tzdata version: {header.version}")
        if not 0 <= header.index_offset <= header.data_offset:
            raise MalformedDatabaseError(
                f"Invalid data and index offsets: {header.data_offset} and {header.index_offset}"
            )
        return header


@dataclass(frozen=True)
class _Entry:
    """A reference to a TZif file within a blob."""

    content: bytes
    start: int
    length: int

    def read(self) -> bytes:
        if self.start < 0 or self.length < 0 or self.start + self.length > len(self.content):
            raise MalformedDatabaseError(
                f"Zone data at {self.start} with length {self.length} is outside of blob of {len(self.content)} bytes"
            )
        return self.content[self.start : self.start + self.length]


def read_index(content: bytes) -> tuple[BlobHeader, dict[str, _Entry]]:
    """Read the header and index of a blob, keeping the last entry for each name."""
    header = BlobHeader.read(content)
    index_size = header.data_offset - header.index_offset
    if index_size % _INDEX_ENTRY_SIZE != 0:
        raise MalformedDatabaseError(
            f"Invalid index size: {index_size} (must be a multiple of {_INDEX_ENTRY_SIZE})"
        )
    reader = ByteReader(content, header.index_offset)
    entries: dict[str, _Entry] = {}
    for _ in range(index_size // _INDEX_ENTRY_SIZE):
        name = reader.read_null_terminated_string(_NAME_SIZE)
        start = reader.read_i32be()
        length = reader.read_i32be()
        reader.skip(4)  # unused
        if name in entries:
            _LOGGER.debug("Replacing earlier index entry for %s", name)
        entries[name] = _Entry(content, header.data_offset + start, length)
    return header, entries


class _IndexedStore(TZifStore):
    """A store backed by entries from one or more indexed blobs."""

    def __init__(self, entries: Mapping[str, _Entry], versions: list[str]) -> None:
        self._entries = dict(entries)
        self._ids = frozenset(self._entries)
        self._versions = versions

    @property
    def versions(self) -> list[str]:
        """Return the dataset versions that were loaded, in load order."""
        return self._versions

    def read_zone(self, zone_id: str) -> bytes:
        """Return the TZif content referenced by the index."""
        if (entry := self._entries.get(zone_id)) is None:
            raise UnknownTimeZoneError(zone_id)
        return entry.read()

    def available_ids(self) -> frozenset[str]:
        """Return the zone ids in the index."""
        return self._ids


class IndexedBlobStore(_IndexedStore):
    """A store reading one or more blob files, later files taking precedence."""

    def __init__(self, paths: Iterable[str | os.PathLike[str]] = DEFAULT_BLOB_PATHS) -> None:
        """Initialize IndexedBlobStore by reading each file that exists once."""
        entries: dict[str, _Entry] = {}
        versions: list[str] = []
        paths = list(paths)
        for path in paths:
            try:
                content = pathlib.Path(path).read_bytes()
            except FileNotFoundError:
                _LOGGER.debug("Skipping missing time zone blob %s", path)
                continue
            except OSError as err:
                raise DatabaseInitializationError(
                    f"Unable to read time zone blob {path}: {err}"
                ) from err
            try:
                header, file_entries = read_index(content)
            except TimezoneParseError as err:
                raise DatabaseInitializationError(
                    f"Invalid time zone blob {path}: {err}"
                ) from err
            _LOGGER.debug(
                "Loaded %d entries from %s (%s)", len(file_entries), path, header.version
            )
            versions.append(header.version)
            entries.update(file_entries)
        if not versions:
            raise DatabaseInitializationError(
                f"No time zone blob found in {[str(path) for path in paths]}"
            )
        super().__init__(entries, versions)


class EmbeddedStore(_IndexedStore):
    """A store reading a blob that is bundled in memory with the program."""

    def __init__(self, content: bytes) -> None:
        """Initialize EmbeddedStore from the blob content."""
        try:
            header, entries = read_index(content)
        except TimezoneParseError as err:
            raise DatabaseInitializationError(
                f"Invalid embedded time zone data: {err}"
            ) from err
        super().__init__(entries, [header.version])

    @classmethod
    def from_resource(cls, package: str, resource: str) -> EmbeddedStore:
        """Create a store from a blob shipped as package data."""
        try:
            content = resources.files(package).joinpath(resource).read_bytes()
        except (ModuleNotFoundError, OSError) as err:
            raise DatabaseInitializationError(
                f"Unable to read embedded time zone data {package}/{resource}: {err}"
            ) from err
        return cls(content)


def build_indexed_blob(
    zones: Mapping[str, bytes] | Iterable[tuple[str, bytes]],
    version: str = "tzdata2024a",
) -> bytes:
    """Serialize TZif files into an indexed blob."""
    if not version.startswith(_VERSION_PREFIX) or len(version) >= _VERSION_SIZE:
        raise ValueError(f"Unknown tzdata version: {version}")
    items = list(zones.items() if isinstance(zones, Mapping) else zones)
    index = io.BytesIO()
    data = io.BytesIO()
    for name, content in items:
        encoded = name.encode()
        if len(encoded) > _NAME_SIZE:
            raise ValueError(f"Zone id is longer than {_NAME_SIZE} bytes: {name}")
        index.write(struct.pack(">40sllL", encoded, data.tell(), len(content), 0))
        data.write(content)
    data_offset = _HEADER_SIZE + index.tell()
    header = struct.pack(
        ">12slll",
        version.encode(),
        _HEADER_SIZE,
        data_offset,
        data_offset + data.tell(),
    )
    return header + index.getvalue() + data.getvalue()
