"""A store reading zones from a Windows style time zone registry.

Each zone is a key named with the Windows zone name (e.g. "Pacific Standard
Time") holding a TZI value with the rule currently in effect, and an
optional "Dynamic DST" subkey holding one TZI value per year between the
FirstEntry and LastEntry values for years where the rule was different.

The TZI value is a REG_TZI_FORMAT structure of 44 little-endian bytes:

  - Bias, StandardBias, DaylightBias: i32 minutes subtracted from local
    time to get UTC.
  - StandardDate, DaylightDate: SYSTEMTIME structures of eight u16 fields
    (year, month, day of week, day, hour, minute, second, milliseconds)
    describing when standard and daylight time start.

Zone ids are translated to and from Windows names with a WindowsZoneNames
table. The registry has no history before the per-year records, so the
rules only describe the recent past accurately.
"""

from __future__ import annotations

import datetime
import logging
import struct
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from ..exceptions import (
    DatabaseInitializationError,
    MalformedDatabaseError,
    UnknownTimeZoneError,
)
from ..offset import UtcOffset
from ..rules import (
    Clock,
    ExactDay,
    FirstWeekday,
    LastWeekday,
    MonthDay,
    TransitionDay,
    TransitionRule,
    local_seconds,
)
from ..zone_rules import RecurringRule, RecurringZoneRules, TimeZoneRules
from .base import TimeZoneStore
from .windows_zones import WindowsZoneNames, default_windows_zone_names

__all__ = [
    "DynamicDst",
    "RegistrySource",
    "RegistryStore",
    "RegistryTimeZoneInfo",
    "SystemTime",
    "WinregSource",
    "registry_rules",
]

_LOGGER = logging.getLogger(__name__)

_TZI_STRUCT = struct.Struct("<lll8H8H")
_LAST_OCCURRENCE = 5
_END_OF_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class SystemTime:
    """A SYSTEMTIME describing when a transition happens.

    A non-zero year means the transition happens on exactly the given day,
    otherwise day is the occurrence (1 to 4, or 5 for the last) of
    day_of_week (0 is Sunday) in the month.
    """

    year: int
    month: int
    day_of_week: int
    day: int
    hour: int
    minute: int
    second: int
    milliseconds: int

    @property
    def time_of_day(self) -> int:
        """Return the transition time as seconds since local midnight."""
        if (self.hour, self.minute, self.second, self.milliseconds) == (23, 59, 59, 999):
            # The end of the last day of the month
            return _END_OF_DAY
        return self.hour * 3600 + self.minute * 60 + self.second

    def to_transition_rule(self) -> TransitionRule:
        """Return the yearly rule for the transition on the wall clock."""
        day: TransitionDay
        try:
            if self.year != 0:
                day = ExactDay(self.day)
            elif self.day == _LAST_OCCURRENCE:
                day = LastWeekday(self.day_of_week % 7)
            else:
                day = FirstWeekday.nth(self.day_of_week % 7, self.day)
            date = MonthDay(self.month, day)
        except ValueError as err:
            raise MalformedDatabaseError(f"Invalid SYSTEMTIME transition {self}: {err}") from err
        return TransitionRule(date, self.time_of_day, Clock.WALL)


@dataclass(frozen=True)
class RegistryTimeZoneInfo:
    """A decoded REG_TZI_FORMAT value."""

    bias: int
    standard_bias: int
    daylight_bias: int
    standard_date: SystemTime
    daylight_date: SystemTime

    @classmethod
    def parse(cls, content: bytes) -> RegistryTimeZoneInfo:
        """Decode the 44 byte structure."""
        if len(content) != _TZI_STRUCT.size:
            raise MalformedDatabaseError(
                f"Expected TZI value to have size {_TZI_STRUCT.size}, but got {len(content)}"
            )
        values = _TZI_STRUCT.unpack(content)
        return cls(
            bias=values[0],
            standard_bias=values[1],
            daylight_bias=values[2],
            standard_date=SystemTime(*values[3:11]),
            daylight_date=SystemTime(*values[11:19]),
        )

    @property
    def standard_offset(self) -> UtcOffset:
        return _minutes_offset(self.bias + self.standard_bias)

    @property
    def daylight_offset(self) -> UtcOffset:
        return _minutes_offset(self.bias + self.daylight_bias)

    @property
    def has_daylight_time(self) -> bool:
        """Return True if the record describes daylight saving transitions."""
        return self.daylight_date.month != 0

    def recurring_rules(self) -> tuple[RecurringRule, RecurringRule] | None:
        """Return the change to daylight time and the change back to standard time."""
        if not self.has_daylight_time:
            return None
        standard, daylight = self.standard_offset, self.daylight_offset
        return (
            RecurringRule(self.daylight_date.to_transition_rule(), standard, daylight),
            RecurringRule(self.standard_date.to_transition_rule(), daylight, standard),
        )


def _minutes_offset(bias: int) -> UtcOffset:
    try:
        return UtcOffset(-bias * 60)
    except ValueError as err:
        raise MalformedDatabaseError(f"Invalid bias {bias}: {err}") from err


@dataclass(frozen=True)
class DynamicDst:
    """The per-year records from the "Dynamic DST" subkey of a zone."""

    first_year: int
    last_year: int
    records: Mapping[int, bytes]
    """TZI values keyed by year."""


class RegistrySource(Protocol):
    """Supplies the raw registry values for time zones."""

    def zone_names(self) -> Iterable[str]:
        """Return the Windows names of all zones."""

    def read_tzi(self, name: str) -> bytes:
        """Return the TZI value of the zone."""

    def read_dynamic_dst(self, name: str) -> DynamicDst | None:
        """Return the per-year values of the zone, if any."""


def _year_start_offset(record: RegistryTimeZoneInfo) -> UtcOffset:
    """Return the offset in effect at the start of a year described by the record."""
    if (pair := record.recurring_rules()) is None:
        return record.standard_offset
    return RecurringZoneRules(pair, record.standard_offset).offset_at_year_start


def registry_rules(
    current: RegistryTimeZoneInfo,
    history: Sequence[tuple[int, RegistryTimeZoneInfo]] = (),
) -> TimeZoneRules:
    """Convert registry records into rules.

    The per-year records become historical transitions and the current
    record applies from the start of the year after the last of them. A
    change of offset between the end of one record's year and the start of
    the next happens at local midnight on 1 January.
    """
    recurring_pair = current.recurring_rules()
    recurring = None
    if recurring_pair is not None:
        recurring = RecurringZoneRules(recurring_pair, current.standard_offset)
    if not history:
        if recurring is None:
            return TimeZoneRules.fixed(current.standard_offset)
        return TimeZoneRules.from_recurring(recurring)

    transitions: list[int] = []
    offsets = [_year_start_offset(history[0][1])]

    def start_year(year: int, offset: UtcOffset) -> None:
        if offset != offsets[-1]:
            year_start = local_seconds(datetime.date(year, 1, 1))
            transitions.append(year_start - offsets[-1].total_seconds)
            offsets.append(offset)

    for year, record in history:
        start_year(year, _year_start_offset(record))
        if (pair := record.recurring_rules()) is None:
            continue
        year_rules = RecurringZoneRules(pair, record.standard_offset)
        for instant, offset_after in year_rules.transitions_for_year(year):
            transitions.append(instant)
            offsets.append(offset_after)
    start_year(history[-1][0] + 1, _year_start_offset(current))
    try:
        return TimeZoneRules(transitions, offsets, recurring)
    except ValueError as err:
        raise MalformedDatabaseError(f"Invalid per-year registry records: {err}") from err


_TIME_ZONES_KEY = r"SOFTWARE\Microsoft\Windows NT\CurrentVersion\Time Zones"


class WinregSource:
    """Reads time zones from the registry of the running Windows system."""

    def __init__(self) -> None:
        """Initialize WinregSource."""
        if sys.platform != "win32":
            raise DatabaseInitializationError(
                f"The Windows registry is not available on {sys.platform}"
            )
        import winreg  # pylint: disable=import-outside-toplevel,import-error

        self._winreg = winreg

    def zone_names(self) -> Iterable[str]:
        """Enumerate the subkeys of the time zones key."""
        winreg = self._winreg
        names = []
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _TIME_ZONES_KEY) as key:
            index = 0
            while True:
                try:
                    names.append(winreg.EnumKey(key, index))
                except OSError:
                    # No more subkeys
                    break
                index += 1
        return names

    def read_tzi(self, name: str) -> bytes:
        winreg = self._winreg
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, f"{_TIME_ZONES_KEY}\\{name}") as key:
            value, _ = winreg.QueryValueEx(key, "TZI")
        return bytes(value)

    def read_dynamic_dst(self, name: str) -> DynamicDst | None:
        winreg = self._winreg
        try:
            key = winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE, f"{_TIME_ZONES_KEY}\\{name}\\Dynamic DST"
            )
        except FileNotFoundError:
            return None
        with key:
            first_year = int(winreg.QueryValueEx(key, "FirstEntry")[0])
            last_year = int(winreg.QueryValueEx(key, "LastEntry")[0])
            records = {
                year: bytes(winreg.QueryValueEx(key, str(year))[0])
                for year in range(first_year, last_year + 1)
            }
        return DynamicDst(first_year, last_year, records)


@dataclass(frozen=True)
class _ZoneRecord:
    tzi: bytes
    dynamic_dst: DynamicDst | None


class RegistryStore(TimeZoneStore):
    """A store of the zones in a Windows style registry."""

    def __init__(
        self,
        source: RegistrySource | None = None,
        names: WindowsZoneNames | None = None,
    ) -> None:
        """Initialize RegistryStore by reading every zone from the source once."""
        self._names = names or default_windows_zone_names()
        if source is None:
            source = WinregSource()
        records: dict[str, _ZoneRecord] = {}
        try:
            for name in source.zone_names():
                tzi = source.read_tzi(name)
                try:
                    dynamic_dst = source.read_dynamic_dst(name)
                except (OSError, ValueError) as err:
                    _LOGGER.warning("Ignoring malformed Dynamic DST for %s: %s", name, err)
                    dynamic_dst = None
                records[name] = _ZoneRecord(tzi, dynamic_dst)
        except OSError as err:
            raise DatabaseInitializationError(
                f"Error while reading the time zones from the registry: {err}"
            ) from err
        self._records = records
        self._ids = frozenset(
            canonical_id
            for canonical_id, windows_name in self._names.canonical_ids.items()
            if windows_name in records
        )
        _LOGGER.debug("Loaded %d registry time zones", len(records))

    @property
    def names(self) -> WindowsZoneNames:
        """Return the table used to translate zone ids."""
        return self._names

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return the rules for the Windows zone mapped to the zone id."""
        if (windows_name := self._names.to_windows(zone_id)) is None:
            raise UnknownTimeZoneError(zone_id)
        if (record := self._records.get(windows_name)) is None:
            raise UnknownTimeZoneError(
                zone_id, f"The rules for time zone {zone_id} are absent in the registry"
            )
        current = RegistryTimeZoneInfo.parse(record.tzi)
        history: list[tuple[int, RegistryTimeZoneInfo]] = []
        if (dynamic_dst := record.dynamic_dst) is not None:
            for year in range(dynamic_dst.first_year, dynamic_dst.last_year + 1):
                if (content := dynamic_dst.records.get(year)) is None:
                    raise MalformedDatabaseError(f"Missing Dynamic DST record for {year}")
                history.append((year, RegistryTimeZoneInfo.parse(content)))
        return registry_rules(current, history)

    def available_ids(self) -> frozenset[str]:
        """Return the zone ids that have a record in the registry."""
        return self._ids
