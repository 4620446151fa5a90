"""Tests for the indexed blob and embedded stores."""

import datetime
import pathlib
import struct
from collections.abc import Callable

import pytest

from tzresolve.exceptions import (
    DatabaseInitializationError,
    MalformedDatabaseError,
    TimezoneParseError,
    UnknownTimeZoneError,
)
from tzresolve.offset import UtcOffset
from tzresolve.stores import EmbeddedStore, IndexedBlobStore, build_indexed_blob
from tzresolve.stores.blob import BlobHeader, read_index
from tzresolve.tzif.model import OffsetRecord

TZifFactory = Callable[..., bytes]

EST = OffsetRecord(-18000, False, 0, "EST")
JST = OffsetRecord(32400, False, 0, "JST")


@pytest.fixture(name="zones")
def mock_zones(europe_tzif: bytes, tzif_factory: TZifFactory) -> dict[str, bytes]:
    """Fixture for the TZif content of a few zones."""
    return {
        "Europe/Berlin": europe_tzif,
        "America/New_York": tzif_factory(offsets=[EST], posix_tail="EST5EDT,M3.2.0,M11.1.0"),
        "Asia/Tokyo": tzif_factory(offsets=[JST], posix_tail="JST-9"),
    }


def instant(*args: int) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=datetime.timezone.utc)  # type: ignore[misc]


def test_build_and_read_index(zones: dict[str, bytes]) -> None:
    """Test the layout of a blob."""
    content = build_indexed_blob(zones, version="tzdata2023c")
    header, entries = read_index(content)
    assert header == BlobHeader("tzdata2023c", 24, 24 + 3 * 52, len(content))
    assert set(entries) == set(zones)
    assert entries["Asia/Tokyo"].read() == zones["Asia/Tokyo"]


def test_embedded_store(zones: dict[str, bytes]) -> None:
    """Test reading zones from blob content."""
    store = EmbeddedStore(build_indexed_blob(zones))
    assert store.versions == ["tzdata2024a"]
    assert store.available_ids() == {"Europe/Berlin", "America/New_York", "Asia/Tokyo"}
    assert store.rules_for_id("Asia/Tokyo").offsets == (UtcOffset.of(hours=9),)
    new_york = store.rules_for_id("America/New_York")
    assert new_york.info_at_instant(instant(2020, 7, 1)) == UtcOffset.of(hours=-4)
    with pytest.raises(UnknownTimeZoneError):
        store.rules_for_id("Europe/Paris")


def test_later_entry_replaces_earlier(tzif_factory: TZifFactory) -> None:
    """Test a repeated zone id uses the last record in the index."""
    content = build_indexed_blob(
        [
            ("Asia/Tokyo", tzif_factory(offsets=[EST])),
            ("Asia/Tokyo", tzif_factory(offsets=[JST])),
        ]
    )
    store = EmbeddedStore(content)
    assert store.available_ids() == {"Asia/Tokyo"}
    assert store.rules_for_id("Asia/Tokyo").offsets == (UtcOffset.of(hours=9),)


def test_blob_files(
    tmp_path: pathlib.Path, zones: dict[str, bytes], tzif_factory: TZifFactory
) -> None:
    """Test later files take precedence over earlier ones."""
    system = tmp_path / "system_tzdata"
    system.write_bytes(build_indexed_blob(zones, version="tzdata2023c"))
    update = tmp_path / "apex_tzdata"
    update.write_bytes(
        build_indexed_blob(
            {"Asia/Tokyo": tzif_factory(offsets=[EST]), "Asia/Seoul": zones["Asia/Tokyo"]},
            version="tzdata2024b",
        )
    )

    store = IndexedBlobStore([tmp_path / "missing", system, update])
    assert store.versions == ["tzdata2023c", "tzdata2024b"]
    assert store.available_ids() == {
        "Europe/Berlin",
        "America/New_York",
        "Asia/Tokyo",
        "Asia/Seoul",
    }
    assert store.rules_for_id("Asia/Tokyo").offsets == (UtcOffset.of(hours=-5),)
    assert store.rules_for_id("Asia/Seoul").offsets == (UtcOffset.of(hours=9),)
    berlin = store.rules_for_id("Europe/Berlin")
    assert berlin.info_at_instant(instant(2041, 7, 1)) == UtcOffset.of(hours=2)


def test_no_blob_files(tmp_path: pathlib.Path) -> None:
    """Test an error when none of the files exist."""
    with pytest.raises(DatabaseInitializationError, match="No time zone blob found"):
        IndexedBlobStore([tmp_path / "missing"])


def test_unreadable_blob_file(tmp_path: pathlib.Path) -> None:
    """Test an error reading a file other than it not existing."""
    with pytest.raises(DatabaseInitializationError, match="Unable to read time zone blob"):
        IndexedBlobStore([tmp_path])


@pytest.mark.parametrize(
    "content,match",
    [
        (b"", "Expected 12 bytes"),
        (struct.pack(">12slll", b"zoneinfo", 24, 24, 24), "Unknown tzdata version"),
        (struct.pack(">12slll", b"tzdata2024abc", 24, 24, 24), "Unknown tzdata version"),
        (struct.pack(">12slll", b"tzdata2024a", 24, 20, 24), "Invalid data and index offsets"),
        (struct.pack(">12slll", b"tzdata2024a", -1, 24, 24), "Invalid data and index offsets"),
        (struct.pack(">12slll", b"tzdata2024a", 24, 34, 34) + b"\x00" * 10, "Invalid index size: 10"),
        (struct.pack(">12slll", b"tzdata2024a", 24, 76, 76), "Expected 40 bytes"),
    ],
)
def test_invalid_blob(content: bytes, match: str) -> None:
    """Test blobs with an invalid header or index."""
    with pytest.raises(TimezoneParseError, match=match):
        read_index(content)
    with pytest.raises(DatabaseInitializationError, match=match):
        EmbeddedStore(content)


def test_invalid_blob_file(tmp_path: pathlib.Path) -> None:
    """Test a blob file with an invalid header."""
    path = tmp_path / "tzdata"
    path.write_bytes(b"not a blob")
    with pytest.raises(DatabaseInitializationError, match="Invalid time zone blob"):
        IndexedBlobStore([path])


def test_entry_out_of_bounds(zones: dict[str, bytes]) -> None:
    """Test an index record pointing past the end of the blob."""
    content = build_indexed_blob(zones)
    store = EmbeddedStore(content[:-10])
    assert store.rules_for_id("Europe/Berlin")
    with pytest.raises(MalformedDatabaseError, match="outside of blob"):
        store.rules_for_id("Asia/Tokyo")


def test_build_invalid() -> None:
    """Test arguments that can't be represented in a blob."""
    with pytest.raises(ValueError, match="Unknown tzdata version"):
        build_indexed_blob({}, version="2024a")
    with pytest.raises(ValueError, match="longer than 40"):
        build_indexed_blob({"x" * 41: b""})


def test_embedded_resource(
    tmp_path: pathlib.Path, zones: dict[str, bytes], monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test reading a blob shipped as package data."""
    package = tmp_path / "embedded_tzdata_fixture"
    package.mkdir()
    (package / "__init__.py").write_text("")
    (package / "tzdata").write_bytes(build_indexed_blob(zones))
    monkeypatch.syspath_prepend(str(tmp_path))

    store = EmbeddedStore.from_resource("embedded_tzdata_fixture", "tzdata")
    assert store.available_ids() == set(zones)

    with pytest.raises(DatabaseInitializationError, match="Unable to read embedded"):
        EmbeddedStore.from_resource("embedded_tzdata_fixture", "missing")
    with pytest.raises(DatabaseInitializationError, match="Unable to read embedded"):
        EmbeddedStore.from_resource("embedded_tzdata_missing_package", "tzdata")
