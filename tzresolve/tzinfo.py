"""An implementation of datetime.tzinfo backed by TimeZoneRules.

This allows resolved rules to be used with the standard datetime arithmetic
and conversion methods such as astimezone. Ambiguous and skipped local
times are disambiguated with the fold attribute from PEP 495: fold=0 selects
the offset in effect before the transition and fold=1 the offset after.
"""

from __future__ import annotations

import datetime

from .offset_info import Gap, Overlap, Regular
from .zone_rules import TimeZoneRules, datetime_to_local

__all__ = [
    "ZoneTzInfo",
]


class ZoneTzInfo(datetime.tzinfo):
    """An implementation of tzinfo for a zone including its full history."""

    def __init__(self, key: str, rules: TimeZoneRules) -> None:
        """Initialize ZoneTzInfo."""
        self._key = key
        self._rules = rules

    @property
    def key(self) -> str:
        """Return the zone id."""
        return self._key

    @property
    def rules(self) -> TimeZoneRules:
        """Return the rules used to resolve offsets."""
        return self._rules

    def utcoffset(self, dt: datetime.datetime | None) -> datetime.timedelta | None:
        """Return offset of local time from UTC, as a timedelta object."""
        if dt is None:
            return None
        info = self._rules.info_at_datetime(dt)
        if isinstance(info, Regular):
            return info.offset.offset
        if isinstance(info, (Gap, Overlap)):
            return (info.offset_after if dt.fold else info.offset_before).offset
        raise ValueError(f"Unexpected offset info for {dt}")

    def dst(self, dt: datetime.datetime | None) -> datetime.timedelta | None:
        """Return None since daylight saving time is not tracked separately."""
        return None

    def tzname(self, dt: datetime.datetime | None) -> str | None:
        """Return the zone id, abbreviations are not rendered."""
        return self._key

    def fromutc(self, dt: datetime.datetime) -> datetime.datetime:
        """Convert a UTC time with this tzinfo attached to local time."""
        if dt.tzinfo is not self:
            raise ValueError("fromutc: dt.tzinfo is not self")
        offset = self._rules.offset_at_epoch(datetime_to_local(dt))
        local = dt + offset.offset
        info = self._rules.info_at_datetime(local)
        if isinstance(info, Overlap) and offset == info.offset_after:
            return local.replace(fold=1)
        return local.replace(fold=0)

    def __str__(self) -> str:
        return self._key

    def __repr__(self) -> str:
        return f"ZoneTzInfo({self._key!r})"
