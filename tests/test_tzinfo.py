"""Tests for the datetime.tzinfo implementation."""

import datetime

import pytest

from tzresolve.tzif import read_tzif
from tzresolve.tzinfo import ZoneTzInfo

UTC = datetime.timezone.utc


@pytest.fixture(name="tzinfo")
def mock_tzinfo(europe_tzif: bytes) -> ZoneTzInfo:
    """Fixture for a tzinfo with history through 2040."""
    return ZoneTzInfo("Europe/Example", read_tzif(europe_tzif).to_rules())


def test_names(tzinfo: ZoneTzInfo) -> None:
    """Test the zone id is used as the name."""
    value = datetime.datetime(2040, 7, 1, tzinfo=tzinfo)
    assert tzinfo.key == "Europe/Example"
    assert value.tzname() == "Europe/Example"
    assert value.dst() is None
    assert str(tzinfo) == "Europe/Example"
    assert repr(tzinfo) == "ZoneTzInfo('Europe/Example')"
    assert tzinfo.utcoffset(None) is None


@pytest.mark.parametrize(
    "local,fold,expected_hours",
    [
        (datetime.datetime(2040, 1, 1), 0, 1),
        (datetime.datetime(2040, 7, 1), 0, 2),
        # Skipped local time uses the offset before the gap unless fold is set
        (datetime.datetime(2040, 3, 25, 2, 30), 0, 1),
        (datetime.datetime(2040, 3, 25, 2, 30), 1, 2),
        # Repeated local time is disambiguated with fold
        (datetime.datetime(2040, 10, 28, 2, 30), 0, 2),
        (datetime.datetime(2040, 10, 28, 2, 30), 1, 1),
        (datetime.datetime(2041, 10, 27, 2, 30), 0, 2),
        (datetime.datetime(2041, 10, 27, 2, 30), 1, 1),
    ],
)
def test_utcoffset(
    tzinfo: ZoneTzInfo, local: datetime.datetime, fold: int, expected_hours: int
) -> None:
    """Test the offset of local times."""
    value = local.replace(tzinfo=tzinfo, fold=fold)
    assert value.utcoffset() == datetime.timedelta(hours=expected_hours)


@pytest.mark.parametrize(
    "instant,expected,fold",
    [
        (datetime.datetime(2040, 10, 28, 0, 30, tzinfo=UTC), datetime.datetime(2040, 10, 28, 2, 30), 0),
        (datetime.datetime(2040, 10, 28, 1, 30, tzinfo=UTC), datetime.datetime(2040, 10, 28, 2, 30), 1),
        (datetime.datetime(2040, 3, 25, 0, 59, tzinfo=UTC), datetime.datetime(2040, 3, 25, 1, 59), 0),
        (datetime.datetime(2040, 3, 25, 1, 0, tzinfo=UTC), datetime.datetime(2040, 3, 25, 3, 0), 0),
        (datetime.datetime(2041, 10, 27, 1, 30, tzinfo=UTC), datetime.datetime(2041, 10, 27, 2, 30), 1),
    ],
)
def test_astimezone(
    tzinfo: ZoneTzInfo,
    instant: datetime.datetime,
    expected: datetime.datetime,
    fold: int,
) -> None:
    """Test converting instants to local time."""
    local = instant.astimezone(tzinfo)
    assert local.replace(tzinfo=None) == expected
    assert local.fold == fold
    assert local.astimezone(UTC) == instant


def test_fromutc_requires_self(tzinfo: ZoneTzInfo) -> None:
    """Test fromutc rejects datetimes for another tzinfo."""
    with pytest.raises(ValueError, match="is not self"):
        tzinfo.fromutc(datetime.datetime(2040, 1, 1, tzinfo=UTC))
