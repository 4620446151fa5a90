"""Test fixtures."""

from collections.abc import Callable, Sequence

import pytest

from tzresolve.tzif.model import OffsetRecord, ParsedDatabase, RawTransition
from tzresolve.tzif.tzif import write_tzif

# 2040-03-25T01:00:00Z and 2040-10-28T01:00:00Z
EUROPE_2040_DST_START = 2216250000
EUROPE_2040_DST_END = 2234998800

CET = OffsetRecord(3600, False, 0, "CET")
CEST = OffsetRecord(7200, True, 4, "CEST")

TZifFactory = Callable[..., bytes]


def build_database(
    transitions: Sequence[tuple[int, int]],
    offsets: Sequence[OffsetRecord],
    posix_tail: str | None = None,
    version: int = 2,
) -> ParsedDatabase:
    """Create a ParsedDatabase from (instant, offset index) pairs."""
    return ParsedDatabase(
        version,
        tuple(RawTransition(instant, index) for instant, index in transitions),
        tuple(offsets),
        posix_tail,
    )


@pytest.fixture(name="tzif_factory")
def mock_tzif_factory() -> TZifFactory:
    """Fixture that serializes synthetic TZif content."""

    def factory(
        transitions: Sequence[tuple[int, int]] = (),
        offsets: Sequence[OffsetRecord] = (CET,),
        posix_tail: str | None = None,
        version: int = 2,
    ) -> bytes:
        return write_tzif(build_database(transitions, offsets, posix_tail, version))

    return factory


@pytest.fixture(name="europe_tzif")
def mock_europe_tzif(tzif_factory: TZifFactory) -> bytes:
    """Fixture for a central European zone with history through 2040."""
    return tzif_factory(
        transitions=[(EUROPE_2040_DST_START, 1), (EUROPE_2040_DST_END, 0)],
        offsets=[CET, CEST],
        posix_tail="CET-1CEST,M3.5.0,M10.5.0/3",
    )
