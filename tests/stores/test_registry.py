"""Tests for the Windows style registry store."""

import datetime
import struct
import sys
from collections.abc import Iterable

import pytest

from tzresolve.exceptions import (
    DatabaseInitializationError,
    MalformedDatabaseError,
    UnknownTimeZoneError,
)
from tzresolve.offset import UtcOffset
from tzresolve.offset_info import Gap, Overlap
from tzresolve.rules import Clock, ExactDay, FirstWeekday, LastWeekday, MonthDay
from tzresolve.stores import RegistryStore, WindowsZoneNames, WinregSource
from tzresolve.stores.registry import (
    DynamicDst,
    RegistryTimeZoneInfo,
    SystemTime,
    registry_rules,
)

UTC = datetime.timezone.utc
PST = UtcOffset.of(hours=-8)
PDT = UtcOffset.of(hours=-7)

NO_DATE = (0, 0, 0, 0, 0, 0, 0, 0)
# Second Sunday in March and first Sunday in November at 02:00
US_DAYLIGHT = (0, 3, 0, 2, 2, 0, 0, 0)
US_STANDARD = (0, 11, 0, 1, 2, 0, 0, 0)
# First Sunday in April and last Sunday in October at 02:00
US_2006_DAYLIGHT = (0, 4, 0, 1, 2, 0, 0, 0)
US_2006_STANDARD = (0, 10, 0, 5, 2, 0, 0, 0)


def tzi(
    bias: int,
    standard_date: tuple[int, ...] = NO_DATE,
    daylight_date: tuple[int, ...] = NO_DATE,
    standard_bias: int = 0,
    daylight_bias: int = -60,
) -> bytes:
    """Pack a REG_TZI_FORMAT value."""
    return struct.pack(
        "<lll8H8H", bias, standard_bias, daylight_bias, *standard_date, *daylight_date
    )


def utc(*args: int) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=UTC)  # type: ignore[misc]


class FakeRegistry:
    """A registry source holding values in memory."""

    def __init__(
        self,
        zones: dict[str, bytes],
        dynamic_dst: dict[str, DynamicDst | Exception] | None = None,
    ) -> None:
        self.zones = zones
        self.dynamic_dst = dynamic_dst or {}

    def zone_names(self) -> Iterable[str]:
        return list(self.zones)

    def read_tzi(self, name: str) -> bytes:
        return self.zones[name]

    def read_dynamic_dst(self, name: str) -> DynamicDst | None:
        value = self.dynamic_dst.get(name)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture(name="registry")
def mock_registry() -> FakeRegistry:
    """Fixture for a registry with a few zones."""
    return FakeRegistry(
        {
            "Pacific Standard Time": tzi(480, US_STANDARD, US_DAYLIGHT),
            "China Standard Time": tzi(-480),
            "India Standard Time": tzi(-330),
            "Not A Mapped Zone": tzi(0),
        },
        {
            "Pacific Standard Time": DynamicDst(
                2006,
                2007,
                {
                    2006: tzi(480, US_2006_STANDARD, US_2006_DAYLIGHT),
                    2007: tzi(480, US_STANDARD, US_DAYLIGHT),
                },
            ),
        },
    )


def test_parse_tzi() -> None:
    """Test decoding the REG_TZI_FORMAT structure."""
    info = RegistryTimeZoneInfo.parse(tzi(480, US_STANDARD, US_DAYLIGHT))
    assert info.bias == 480
    assert info.standard_offset == PST
    assert info.daylight_offset == PDT
    assert info.has_daylight_time
    assert info.standard_date == SystemTime(0, 11, 0, 1, 2, 0, 0, 0)

    rules = info.recurring_rules()
    assert rules
    to_daylight, to_standard = rules
    assert to_daylight.transition.date == MonthDay(3, FirstWeekday(0, 8))
    assert to_daylight.transition.time == 7200
    assert to_daylight.transition.clock == Clock.WALL
    assert (to_daylight.offset_before, to_daylight.offset_after) == (PST, PDT)
    assert to_standard.transition.date == MonthDay(11, FirstWeekday(0, 1))
    assert (to_standard.offset_before, to_standard.offset_after) == (PDT, PST)


def test_parse_tzi_no_daylight_time() -> None:
    """Test a zone without daylight saving time."""
    info = RegistryTimeZoneInfo.parse(tzi(-330))
    assert not info.has_daylight_time
    assert info.standard_offset == UtcOffset.of(hours=5, minutes=30)
    assert info.recurring_rules() is None


@pytest.mark.parametrize("size", [0, 43, 45])
def test_parse_tzi_invalid_size(size: int) -> None:
    """Test a TZI value with the wrong size."""
    with pytest.raises(MalformedDatabaseError, match=f"size 44, but got {size}"):
        RegistryTimeZoneInfo.parse(b"\x00" * size)


@pytest.mark.parametrize(
    "system_time,day,time",
    [
        (SystemTime(0, 10, 0, 5, 3, 0, 0, 0), LastWeekday(0), 3 * 3600),
        (SystemTime(0, 3, 6, 4, 23, 59, 59, 999), FirstWeekday(6, 22), 24 * 3600),
        (SystemTime(0, 3, 6, 4, 23, 59, 59, 0), FirstWeekday(6, 22), 86399),
        (SystemTime(2014, 10, 0, 26, 2, 0, 0, 0), ExactDay(26), 7200),
    ],
)
def test_system_time(system_time: SystemTime, day: object, time: int) -> None:
    """Test converting a SYSTEMTIME into a transition rule."""
    rule = system_time.to_transition_rule()
    assert rule.date == MonthDay(system_time.month, day)  # type: ignore[arg-type]
    assert rule.time == time


@pytest.mark.parametrize(
    "system_time",
    [
        SystemTime(0, 13, 0, 1, 2, 0, 0, 0),
        SystemTime(0, 3, 0, 0, 2, 0, 0, 0),
        SystemTime(0, 3, 0, 6, 2, 0, 0, 0),
    ],
)
def test_invalid_system_time(system_time: SystemTime) -> None:
    """Test a SYSTEMTIME that can't be converted into a rule."""
    with pytest.raises(MalformedDatabaseError, match="Invalid SYSTEMTIME"):
        system_time.to_transition_rule()


def test_registry_store(registry: FakeRegistry) -> None:
    """Test the zone ids available from the registry."""
    store = RegistryStore(registry)
    ids = store.available_ids()
    assert "America/Los_Angeles" in ids
    assert "America/Vancouver" in ids
    assert "Asia/Shanghai" in ids
    assert "Asia/Kolkata" in ids
    assert "Europe/Berlin" not in ids
    assert store.names.to_windows("America/Los_Angeles") == "Pacific Standard Time"


def test_fixed_zone(registry: FakeRegistry) -> None:
    """Test a zone without daylight saving time."""
    store = RegistryStore(registry)
    rules = store.rules_for_id("Asia/Kolkata")
    assert rules.is_fixed
    assert rules.info_at_instant(utc(2020, 7, 1)) == UtcOffset.of(hours=5, minutes=30)


def test_dynamic_dst(registry: FakeRegistry) -> None:
    """Test per-year records are used for their years."""
    rules = RegistryStore(registry).rules_for_id("America/Los_Angeles")

    # 2006 rule: first Sunday in April to last Sunday in October
    assert rules.info_at_instant(utc(2006, 3, 15)) == PST
    assert rules.info_at_instant(utc(2006, 4, 2, 10) - datetime.timedelta(seconds=1)) == PST
    assert rules.info_at_instant(utc(2006, 4, 2, 10)) == PDT
    assert rules.info_at_instant(utc(2006, 10, 29, 9)) == PST
    assert rules.info_at_instant(utc(2006, 11, 2)) == PST

    # 2007 rule onwards: second Sunday in March to first Sunday in November
    assert rules.info_at_instant(utc(2007, 3, 11, 10)) == PDT
    assert rules.info_at_instant(utc(2007, 11, 2)) == PDT
    assert rules.info_at_instant(utc(2007, 11, 4, 9)) == PST
    assert rules.info_at_instant(utc(2020, 3, 8, 10)) == PDT
    assert rules.info_at_instant(utc(2020, 11, 1, 9)) == PST
    assert rules.info_at_datetime(datetime.datetime(2020, 3, 8, 2, 30)) == Gap(
        utc(2020, 3, 8, 10), PST, PDT
    )
    assert rules.info_at_datetime(datetime.datetime(2020, 11, 1, 1, 30)) == Overlap(
        utc(2020, 11, 1, 9), PDT, PST
    )


def test_unknown_zone(registry: FakeRegistry) -> None:
    """Test ids without a record in the registry."""
    store = RegistryStore(registry)
    with pytest.raises(UnknownTimeZoneError, match="Unknown time zone"):
        store.rules_for_id("Mars/Olympus")
    with pytest.raises(UnknownTimeZoneError, match="absent in the registry"):
        store.rules_for_id("Europe/Berlin")


def test_malformed_dynamic_dst_is_ignored(registry: FakeRegistry) -> None:
    """Test an error reading the per-year records falls back to the current rule."""
    registry.dynamic_dst["Pacific Standard Time"] = ValueError("invalid literal for int()")
    rules = RegistryStore(registry).rules_for_id("America/Los_Angeles")
    assert rules.transitions == ()
    assert rules.info_at_instant(utc(2006, 11, 2)) == PDT


def test_missing_dynamic_dst_year(registry: FakeRegistry) -> None:
    """Test a year missing between the first and last entry."""
    registry.dynamic_dst["Pacific Standard Time"] = DynamicDst(
        2005, 2007, {2005: tzi(480), 2007: tzi(480)}
    )
    store = RegistryStore(registry)
    with pytest.raises(MalformedDatabaseError, match="Missing Dynamic DST record for 2006"):
        store.rules_for_id("America/Los_Angeles")


def test_registry_read_error() -> None:
    """Test an error enumerating the registry."""

    class BrokenRegistry(FakeRegistry):
        def zone_names(self) -> Iterable[str]:
            raise PermissionError("Access is denied")

    with pytest.raises(DatabaseInitializationError, match="Access is denied"):
        RegistryStore(BrokenRegistry({}))


def test_standard_offset_change() -> None:
    """Test a change of standard time in a year without daylight saving time."""
    moscow_dst = (0, 10, 0, 5, 3, 0, 0, 0), (0, 3, 0, 5, 2, 0, 0, 0)
    rules = registry_rules(
        RegistryTimeZoneInfo.parse(tzi(-180)),
        [
            (2010, RegistryTimeZoneInfo.parse(tzi(-180, *moscow_dst))),
            (2011, RegistryTimeZoneInfo.parse(tzi(-180, *moscow_dst))),
            (2012, RegistryTimeZoneInfo.parse(tzi(-240))),
            (2013, RegistryTimeZoneInfo.parse(tzi(-240))),
        ],
    )
    msk = UtcOffset.of(hours=3)
    msd = UtcOffset.of(hours=4)
    assert rules.info_at_instant(utc(2010, 1, 15)) == msk
    assert rules.info_at_instant(utc(2010, 7, 1)) == msd
    assert rules.info_at_instant(utc(2011, 12, 1)) == msk
    # The new standard offset starts at local midnight on 1 January 2012
    assert rules.info_at_instant(utc(2011, 12, 31, 20, 59, 59)) == msk
    assert rules.info_at_instant(utc(2011, 12, 31, 21)) == msd
    assert rules.info_at_instant(utc(2013, 7, 1)) == msd
    # The current record applies from 2014
    assert rules.info_at_instant(utc(2013, 12, 31, 19, 59, 59)) == msd
    assert rules.info_at_instant(utc(2013, 12, 31, 20)) == msk
    assert rules.info_at_instant(utc(2020, 7, 1)) == msk


def test_winreg_unavailable() -> None:
    """Test the system registry is only available on Windows."""
    if sys.platform == "win32":
        pytest.skip("Registry is available on Windows")
    with pytest.raises(DatabaseInitializationError, match="not available"):
        WinregSource()
    with pytest.raises(DatabaseInitializationError, match="not available"):
        RegistryStore()


def test_custom_names(registry: FakeRegistry) -> None:
    """Test a custom table of Windows names."""
    names = WindowsZoneNames([("India Standard Time", ["Asia/Calcutta"])])
    store = RegistryStore(registry, names)
    assert store.available_ids() == {"Asia/Calcutta"}
    assert store.rules_for_id("Asia/Calcutta").offsets == (UtcOffset.of(hours=5, minutes=30),)
