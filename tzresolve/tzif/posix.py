"""Library for parsing POSIX TZ rules.

TZ supports these two formats

No DST: std offset
  - std: Name of the timezone
  - offset: Time added to local time to get UTC
  Example: EST+5

DST: std offset dst [offset][,start[/time],end[/time]]
  - dst: Name of the Daylight savings time timezone
  - offset: Defaults to 1 hour ahead of STD offset if not specified
  - start & end: Time period when DST is in effect. The start/end have
    the following formats:
      Jn: A julian day between 1 and 365 (Feb 29th never counted)
      n: A julian day between 0 and 365 (Feb 29th is counted in leap years)
      Mm.w.d:
          m: Month between 1 and 12
          d: Between 0 (Sunday) and 6 (Saturday)
          w: Between 1 and 5. Week 1 is first week d occurs, 5 is the last
      The time field is in hh:mm:ss. The hour can be 167 to -167.

Names containing digits or signs are quoted with angle brackets, e.g. <-03>3.
A DST name without start and end dates has no schedule and the zone stays
on standard time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..exceptions import InvalidPosixRuleError
from ..offset import UtcOffset
from ..rules import (
    DateOfYear,
    JulianDay,
    TransitionRule,
    julian_day_no_leap,
    month_week_day,
)
from ..zone_rules import RecurringRule, RecurringZoneRules, TimeZoneRules

__all__ = [
    "PosixRule",
    "RuleOccurrence",
    "parse_tz_rule",
]

_LOGGER = logging.getLogger(__name__)

_HOUR = 60 * 60
_DEFAULT_TIME = 2 * _HOUR


def _parse_time(values: dict[str, Any]) -> int | None:
    """Convert a [+/-]hh[:mm[:ss]] match into a number of seconds.

    The dict expects fields of hour, minutes, seconds from one of the patterns below.
    """
    if (hour := values["hour"]) is None:
        return None
    sign = 1
    if hour.startswith("+"):
        hour = hour[1:]
    elif hour.startswith("-"):
        sign = -1
        hour = hour[1:]
    minutes = int(values.get("minutes") or "0")
    seconds = int(values.get("seconds") or "0")
    if minutes > 59 or seconds > 59:
        raise InvalidPosixRuleError(
            f"Minutes and seconds must be between 0 and 59: {values}"
        )
    return sign * (int(hour) * _HOUR + minutes * 60 + seconds)


@dataclass(frozen=True)
class RuleOccurrence:
    """A TimeZone rule occurrence."""

    name: str
    """The name of the timezone occurrence e.g. EST."""

    offset: UtcOffset
    """UTC offset for this timezone occurrence (not time added to local time)."""


@dataclass(frozen=True)
class PosixRule:
    """A rule for evaluating future timezone transitions."""

    std: RuleOccurrence
    """An occurrence of a timezone transition for standard time."""

    dst: Optional[RuleOccurrence] = None
    """An occurrence of a timezone transition for daylight saving time."""

    dst_start: Optional[TransitionRule] = None
    """Describes when dst goes into effect."""

    dst_end: Optional[TransitionRule] = None
    """Describes when dst ends (std starts)."""

    def to_recurring_rules(self) -> RecurringZoneRules | None:
        """Return the yearly transitions, or None if standard time always applies."""
        if self.dst is None or self.dst_start is None or self.dst_end is None:
            return None
        return RecurringZoneRules(
            (
                RecurringRule(self.dst_start, self.std.offset, self.dst.offset),
                RecurringRule(self.dst_end, self.dst.offset, self.std.offset),
            ),
            standard_offset=self.std.offset,
        )

    def to_time_zone_rules(self) -> TimeZoneRules:
        """Return rules for a zone described only by this TZ string."""
        if (recurring := self.to_recurring_rules()) is None:
            return TimeZoneRules.fixed(self.std.offset)
        return TimeZoneRules.from_recurring(recurring)


# Regexp for parsing the TZ string
_OFFSET_RE_PATTERN: re.Pattern[str] = re.compile(
    r"(?:<(?P<quoted>[a-zA-Z0-9+\-]+)>|(?P<name>[a-zA-Z]+))"  # name
    r"((?P<hour>[+-]?\d{1,2})(?::(?P<minutes>\d{2})(?::(?P<seconds>\d{2}))?)?)?"  # offset
)
_START_END_RE_PATTERN = re.compile(
    # days in julian (J prefix), zero based julian, or month.week.day (M prefix) format
    r",(?:J(?P<julian_day>\d{1,3})|(?P<day_of_year>\d{1,3})"
    r"|M(?P<month>\d{1,2})\.(?P<week_of_month>\d)\.(?P<day_of_week>\d))"
    # time
    r"(/(?P<hour>[+-]?\d{1,3})(?::(?P<minutes>\d{2})(?::(?P<seconds>\d{2}))?)?)?"
)


def _rule_occurrence_from_match(
    match: re.Match[str], default: UtcOffset | None = None
) -> RuleOccurrence:
    """Create a rule occurrence from a regex match."""
    name = match.group("quoted") or match.group("name")
    posix_offset = _parse_time(match.groupdict())
    if posix_offset is None:
        if default is None:
            raise InvalidPosixRuleError(f"Missing offset for {name}")
        return RuleOccurrence(name, default)
    if abs(posix_offset) > 24 * _HOUR:
        raise InvalidPosixRuleError(f"Offset hours must be between 0 and 24 for {name}")
    try:
        # The TZ string has the time added to local time to get UTC
        return RuleOccurrence(name, UtcOffset(-posix_offset))
    except ValueError as err:
        raise InvalidPosixRuleError(f"Offset is out of range for {name}: {err}") from err


def _date_of_year_from_match(match: re.Match[str]) -> DateOfYear:
    """Create a date of year from a start/end regex match."""
    if (julian_day := match.group("julian_day")) is not None:
        return julian_day_no_leap(int(julian_day))
    if (day_of_year := match.group("day_of_year")) is not None:
        if int(day_of_year) > 365:
            raise ValueError(f"Day of year must be between 0 and 365: {day_of_year}")
        return JulianDay(int(day_of_year) + 1)
    return month_week_day(
        int(match.group("month")),
        int(match.group("week_of_month")),
        int(match.group("day_of_week")),
    )


def _transition_rule_from_match(match: re.Match[str]) -> TransitionRule:
    """Create a transition rule from a regex match."""
    try:
        date = _date_of_year_from_match(match)
    except ValueError as err:
        raise InvalidPosixRuleError(f"Invalid rule date '{match.group(0)}': {err}") from err
    time = _parse_time(match.groupdict())
    if time is None:
        time = _DEFAULT_TIME
    elif abs(time) > 167 * _HOUR:
        raise InvalidPosixRuleError(f"Rule time must be between -167 and 167 hours: {match.group(0)}")
    return TransitionRule(date, time)


def parse_tz_rule(tz_str: str) -> PosixRule:
    """Parse the TZ string into a PosixRule object."""
    buffer = tz_str
    if (std_match := _OFFSET_RE_PATTERN.match(buffer)) is None:
        raise InvalidPosixRuleError(f"Unable to parse TZ string: {tz_str}")
    buffer = buffer[std_match.end() :]
    if (dst_match := _OFFSET_RE_PATTERN.match(buffer)) is not None:
        buffer = buffer[dst_match.end() :]
    if (dst_start := _START_END_RE_PATTERN.match(buffer)) is not None:
        buffer = buffer[dst_start.end() :]
    if (dst_end := _START_END_RE_PATTERN.match(buffer)) is not None:
        buffer = buffer[dst_end.end() :]
    if (dst_start is None) != (dst_end is None):
        raise InvalidPosixRuleError(
            f"Unable to parse TZ string, should have both or neither start and end dates: {tz_str}"
        )
    if buffer:
        raise InvalidPosixRuleError(
            f"Unable to parse TZ string, unexpected trailing data: {tz_str}"
        )
    if dst_start is not None and dst_match is None:
        raise InvalidPosixRuleError(
            f"Unable to parse TZ string, start and end dates without DST: {tz_str}"
        )

    std = _rule_occurrence_from_match(std_match)
    dst = None
    if dst_match is not None:
        # If the dst offset is omitted, it defaults to one hour ahead of standard time.
        try:
            default_dst = UtcOffset(std.offset.total_seconds + _HOUR)
        except ValueError as err:
            raise InvalidPosixRuleError(f"DST offset is out of range: {tz_str}") from err
        dst = _rule_occurrence_from_match(dst_match, default_dst)

    rule = PosixRule(
        std=std,
        dst=dst,
        dst_start=_transition_rule_from_match(dst_start) if dst_start else None,
        dst_end=_transition_rule_from_match(dst_end) if dst_end else None,
    )
    if dst is not None and rule.dst_start is not None and dst.offset == std.offset:
        raise InvalidPosixRuleError(
            f"Unable to parse TZ string, DST offset equals standard offset: {tz_str}"
        )
    _LOGGER.debug("Parsed TZ string %s: %s", tz_str, rule)
    return rule

