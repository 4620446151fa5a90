"""Library for projecting recurring transition rules onto a year.

A recurring rule describes a date of the year (e.g. "the last Sunday in
March", "the 60th day of the year") plus a time of day, and the clock that
time of day is read from. Rules are used both for the POSIX TZ tail of a
TZif file and for the rules stored in a Windows style registry.
"""

from __future__ import annotations

import datetime
import enum
import logging
from dataclasses import dataclass
from typing import Union

from dateutil import rrule
from dateutil.relativedelta import relativedelta

from .exceptions import DateTimeArithmeticError
from .offset import UtcOffset

__all__ = [
    "Clock",
    "FirstWeekday",
    "LastWeekday",
    "ExactDay",
    "TransitionDay",
    "MonthDay",
    "JulianDay",
    "DateOfYear",
    "TransitionRule",
    "julian_day_no_leap",
    "month_week_day",
    "local_seconds",
    "EPOCH_ORDINAL",
]

_LOGGER = logging.getLogger(__name__)

EPOCH_ORDINAL = datetime.date(1970, 1, 1).toordinal()
SECONDS_PER_DAY = 86400

# A non-leap year used to turn a day of year into a month and day
_NON_LEAP_YEAR = 2011

_DEFAULT_TIME = 2 * 60 * 60


def local_seconds(value: datetime.date) -> int:
    """Return the number of seconds since 1970-01-01T00:00 on the local clock."""
    return (value.toordinal() - EPOCH_ORDINAL) * SECONDS_PER_DAY


def _weekday(posix_weekday: int) -> rrule.weekday:
    """Return the dateutil weekday for a day between 0 (Sunday) and 6 (Saturday)."""
    return rrule.weekdays[(posix_weekday - 1) % 7]


class Clock(str, enum.Enum):
    """The clock that a transition time of day is expressed against."""

    WALL = "WALL"
    """The offset in effect just before the transition."""

    STANDARD = "STANDARD"
    """The standard (non daylight saving) offset of the zone."""

    UTC = "UTC"
    """Universal time."""


@dataclass(frozen=True)
class FirstWeekday:
    """The first day_of_week of the month that is not earlier than at_least_day."""

    day_of_week: int
    """A day of the week between 0 (Sunday) and 6 (Saturday)."""

    at_least_day: int = 1

    def resolve(self, year: int, month: int) -> datetime.date:
        """Return the date in the month of the specified year."""
        start = datetime.date(year, month, self.at_least_day)
        return start + relativedelta(weekday=_weekday(self.day_of_week)(+1))

    @classmethod
    def nth(cls, day_of_week: int, week_of_month: int) -> FirstWeekday:
        """Return the week_of_month-th (1 to 4) occurrence of day_of_week."""
        if not 1 <= week_of_month <= 4:
            raise ValueError(f"Week of month must be between 1 and 4: {week_of_month}")
        return cls(day_of_week, (week_of_month - 1) * 7 + 1)


@dataclass(frozen=True)
class LastWeekday:
    """The last day_of_week of the month that is not later than at_most_day."""

    day_of_week: int
    """A day of the week between 0 (Sunday) and 6 (Saturday)."""

    at_most_day: int | None = None
    """The latest day of month, or None for the end of the month."""

    def resolve(self, year: int, month: int) -> datetime.date:
        """Return the date in the month of the specified year."""
        start = datetime.date(year, month, 1)
        # relativedelta clamps day=31 to the last day of the month
        return start + relativedelta(
            day=self.at_most_day or 31, weekday=_weekday(self.day_of_week)(-1)
        )


@dataclass(frozen=True)
class ExactDay:
    """Exactly the given day of month."""

    day: int

    def resolve(self, year: int, month: int) -> datetime.date:
        """Return the date in the month of the specified year."""
        return datetime.date(year, month, self.day)


TransitionDay = Union[FirstWeekday, LastWeekday, ExactDay]


@dataclass(frozen=True)
class MonthDay:
    """A day within a specific month of the year."""

    month: int
    """A month between 1 and 12."""

    day: TransitionDay

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12: {self.month}")

    def to_date(self, year: int) -> datetime.date:
        """Return the date in the specified year."""
        return self.day.resolve(year, self.month)

    def as_rrule(self, dtstart: datetime.datetime | None = None) -> rrule.rrule:
        """Return a yearly recurrence rule for a weekday based day."""
        return rrule.rrule(
            freq=rrule.YEARLY,
            bymonth=self.month,
            byweekday=self._rrule_byday(),
            dtstart=dtstart,
        )

    @property
    def rrule_str(self) -> str:
        """Return a recurrence rule string for this day."""
        byday = self._rrule_byday()
        return ";".join(
            [
                "FREQ=YEARLY",
                f"BYMONTH={self.month}",
                f"BYDAY={byday.n}{rrule.weekdays[byday.weekday]}",
            ]
        )

    def _rrule_byday(self) -> rrule.weekday:
        """Return the dateutil weekday with occurrence for this day."""
        day = self.day
        if isinstance(day, FirstWeekday) and (
            day.at_least_day % 7 == 1 and day.at_least_day <= 22
        ):
            return _weekday(day.day_of_week)(day.at_least_day // 7 + 1)
        if isinstance(day, LastWeekday) and day.at_most_day is None:
            return _weekday(day.day_of_week)(-1)
        raise ValueError(f"Unable to create recurrence rule for day: {self.day}")


@dataclass(frozen=True)
class JulianDay:
    """A day of the year where 29 February is counted in leap years."""

    day_of_year: int
    """A day of the year between 1 and 366 (1 is 1 January)."""

    def __post_init__(self) -> None:
        if not 1 <= self.day_of_year <= 366:
            raise ValueError(f"Day of year must be between 1 and 366: {self.day_of_year}")

    def to_date(self, year: int) -> datetime.date:
        """Return the date in the specified year."""
        return datetime.date(year, 1, 1) + datetime.timedelta(days=self.day_of_year - 1)


DateOfYear = Union[MonthDay, JulianDay]


def julian_day_no_leap(day_of_year: int) -> MonthDay:
    """Return the date for a day of year (1 to 365) where 29 February is never counted.

    The day always corresponds to the same month and day, e.g. day 60 is
    always 1 March, so it is resolved through a non-leap year.
    """
    if not 1 <= day_of_year <= 365:
        raise ValueError(f"Day of year must be between 1 and 365: {day_of_year}")
    date = datetime.date(_NON_LEAP_YEAR, 1, 1) + datetime.timedelta(days=day_of_year - 1)
    return MonthDay(date.month, ExactDay(date.day))


def month_week_day(month: int, week_of_month: int, day_of_week: int) -> MonthDay:
    """Return the date for a POSIX Mm.w.d rule where week 5 means the last."""
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"Day of week must be between 0 and 6: {day_of_week}")
    if week_of_month == 5:
        return MonthDay(month, LastWeekday(day_of_week))
    return MonthDay(month, FirstWeekday.nth(day_of_week, week_of_month))


@dataclass(frozen=True)
class TransitionRule:
    """A transition that happens every year at the same local time."""

    date: DateOfYear

    time: int = _DEFAULT_TIME
    """Seconds since local midnight, may be negative or beyond one day."""

    clock: Clock = Clock.WALL

    def to_local_date(self, year: int) -> datetime.date:
        """Return the date the transition happens on in the specified year."""
        try:
            return self.date.to_date(year)
        except (ValueError, OverflowError) as err:
            raise DateTimeArithmeticError(
                f"Unable to project {self.date} onto year {year}"
            ) from err

    def to_local_seconds(self, year: int) -> int:
        """Return the transition as seconds since the epoch on the rule's clock."""
        return local_seconds(self.to_local_date(year)) + self.time

    def to_instant(
        self, year: int, offset_before: UtcOffset, standard_offset: UtcOffset
    ) -> int:
        """Return the transition in the specified year as epoch seconds.

        The offset_before is the offset in effect on the wall clock just before
        the transition happens.
        """
        if self.clock == Clock.WALL:
            offset = offset_before.total_seconds
        elif self.clock == Clock.STANDARD:
            offset = standard_offset.total_seconds
        else:
            offset = 0
        return self.to_local_seconds(year) - offset
