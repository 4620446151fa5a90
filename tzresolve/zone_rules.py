"""Library for resolving the UTC offset of a zone.

A zone is described by a table of historical transitions plus an optional
set of recurring rules that apply after the last recorded transition. The
table is searched with a binary search and the recurring rules are
projected onto the calendar years around the requested time.

Internally all instants are integer seconds since the epoch, and all local
date-times are integer seconds since 1970-01-01T00:00 on the local clock,
so that the full range of the TZif format can be represented.
"""

from __future__ import annotations

import bisect
import datetime
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .exceptions import DateTimeArithmeticError
from .offset import UtcOffset
from .offset_info import OffsetInfo, Regular, offset_info
from .rules import EPOCH_ORDINAL, SECONDS_PER_DAY, TransitionRule

__all__ = [
    "RecurringRule",
    "RecurringZoneRules",
    "TimeZoneRules",
    "ZoneTransition",
]

_LOGGER = logging.getLogger(__name__)

_EPOCH_UTC = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_EPOCH_LOCAL = datetime.datetime(1970, 1, 1)
_SECOND = datetime.timedelta(seconds=1)

# Any year works for ordering rules within a year
_REFERENCE_YEAR = 2001


def _year_of(seconds: int) -> int:
    """Return the calendar year of a (local or UTC) epoch second."""
    try:
        return datetime.date.fromordinal(EPOCH_ORDINAL + seconds // SECONDS_PER_DAY).year
    except (ValueError, OverflowError) as err:
        raise DateTimeArithmeticError(f"Epoch second {seconds} is out of range") from err


def epoch_to_datetime(seconds: int) -> datetime.datetime:
    """Return an aware UTC datetime for an epoch second."""
    try:
        return _EPOCH_UTC + datetime.timedelta(seconds=seconds)
    except OverflowError as err:
        raise DateTimeArithmeticError(f"Epoch second {seconds} is out of range") from err


def datetime_to_epoch(value: datetime.datetime) -> int:
    """Return the epoch second of an aware datetime, rounding down."""
    if value.utcoffset() is None:
        raise ValueError(f"Instant must be a timezone aware datetime: {value}")
    return (value - _EPOCH_UTC) // _SECOND


def datetime_to_local(value: datetime.datetime) -> int:
    """Return the local epoch second of a wall clock reading, rounding down."""
    return (value.replace(tzinfo=None) - _EPOCH_LOCAL) // _SECOND


@dataclass(frozen=True)
class ZoneTransition:
    """A change of the offset in effect at a specific instant."""

    instant: datetime.datetime
    offset_before: UtcOffset
    offset_after: UtcOffset


@dataclass(frozen=True)
class RecurringRule:
    """A transition that happens every year."""

    transition: TransitionRule
    offset_before: UtcOffset
    offset_after: UtcOffset

    def __str__(self) -> str:
        return f"transitioning from {self.offset_before} to {self.offset_after} on {self.transition}"


@dataclass(frozen=True)
class RecurringZoneRules:
    """A set of transitions that repeat every year."""

    rules: tuple[RecurringRule, ...]

    standard_offset: UtcOffset
    """The offset that times stated against the standard clock are read from."""

    def transitions_for_year(self, year: int) -> list[tuple[int, UtcOffset]]:
        """Return the (instant, offset after) pairs for a year in order of occurrence."""
        ordered = sorted(self.rules, key=lambda rule: rule.transition.to_local_seconds(year))
        return [
            (
                rule.transition.to_instant(year, rule.offset_before, self.standard_offset),
                rule.offset_after,
            )
            for rule in ordered
        ]

    def transitions_around(self, year: int) -> list[tuple[int, UtcOffset]]:
        """Return the transitions for a year and the years either side of it."""
        result: list[tuple[int, UtcOffset]] = []
        for current in range(
            max(year - 1, datetime.MINYEAR), min(year + 1, datetime.MAXYEAR) + 1
        ):
            result.extend(self.transitions_for_year(current))
        return result

    @property
    def offset_at_year_start(self) -> UtcOffset:
        """Return the offset in effect before the first transition of a year."""
        if not self.rules:
            return self.standard_offset
        first = min(
            self.rules, key=lambda rule: rule.transition.to_local_seconds(_REFERENCE_YEAR)
        )
        return first.offset_before


class TimeZoneRules:
    """The complete set of rules for computing the offset of a zone.

    This is either a single fixed offset, or a table of historical transitions
    followed by optional recurring rules. Instances are immutable and may be
    shared between threads.
    """

    def __init__(
        self,
        transitions: Sequence[int],
        offsets: Sequence[UtcOffset],
        recurring: RecurringZoneRules | None = None,
    ) -> None:
        """Initialize TimeZoneRules.

        The offsets must have one more element than transitions: the first
        is the offset before the initial transition and the rest are the
        offsets after each corresponding transition.
        """
        if len(offsets) != len(transitions) + 1:
            raise ValueError(
                f"Expected {len(transitions) + 1} offsets for {len(transitions)} transitions, got {len(offsets)}"
            )
        if any(a >= b for a, b in zip(transitions, transitions[1:])):
            raise ValueError("Transitions must be strictly increasing")
        self._transitions: tuple[int, ...] = tuple(transitions)
        self._offsets: tuple[UtcOffset, ...] = tuple(offsets)
        self._recurring = recurring

        # Each transition contributes the two local readings of its instant,
        # in ascending order, so local date-times can be binary searched.
        boundaries: list[int] = []
        for index, instant in enumerate(self._transitions):
            before = instant + self._offsets[index].total_seconds
            after = instant + self._offsets[index + 1].total_seconds
            boundaries.extend(sorted((before, after)))
        self._local_boundaries: tuple[int, ...] = tuple(boundaries)

    @classmethod
    def fixed(cls, offset: UtcOffset) -> TimeZoneRules:
        """Create rules for a zone that always uses the same offset."""
        return cls((), (offset,))

    @classmethod
    def from_recurring(cls, recurring: RecurringZoneRules) -> TimeZoneRules:
        """Create rules for a zone described only by recurring rules."""
        return cls((), (recurring.offset_at_year_start,), recurring)

    @property
    def transitions(self) -> tuple[int, ...]:
        """Return the historical transition instants as epoch seconds."""
        return self._transitions

    @property
    def offsets(self) -> tuple[UtcOffset, ...]:
        """Return the offsets before and after each historical transition."""
        return self._offsets

    @property
    def recurring(self) -> RecurringZoneRules | None:
        """Return the rules applied after the last historical transition."""
        return self._recurring

    @property
    def is_fixed(self) -> bool:
        """Return True if the zone always uses the same offset."""
        return not self._transitions and self._recurring is None

    def info_at_instant(self, instant: datetime.datetime) -> UtcOffset:
        """Return the offset in effect at the specified aware instant."""
        return self.offset_at_epoch(datetime_to_epoch(instant))

    def info_at_datetime(self, local: datetime.datetime) -> OffsetInfo:
        """Return how the specified wall clock reading maps onto instants."""
        return self.info_at_local(datetime_to_local(local))

    def offset_at_epoch(self, epoch: int) -> UtcOffset:
        """Return the offset in effect at the specified epoch second."""
        if self.is_fixed:
            return self._offsets[0]
        if self._recurring is not None and (
            not self._transitions or epoch >= self._transitions[-1]
        ):
            offset = self._offsets[-1]
            for instant, offset_after in self._tail_transitions(epoch + offset.total_seconds):
                if instant > epoch:
                    break
                offset = offset_after
            return offset
        # Index of the first transition after the instant, which is also the
        # index of the offset in effect at the instant.
        return self._offsets[bisect.bisect_right(self._transitions, epoch)]

    def info_at_local(self, local: int) -> OffsetInfo:
        """Return how a local epoch second maps onto instants."""
        if self.is_fixed:
            return Regular(self._offsets[0])
        if self._recurring is not None and (
            not self._local_boundaries or local >= self._local_boundaries[-1]
        ):
            offset = self._offsets[-1]
            for instant, offset_after in self._tail_transitions(local):
                low, high = sorted(
                    (instant + offset.total_seconds, instant + offset_after.total_seconds)
                )
                if local < low:
                    return Regular(offset)
                if local < high:
                    return offset_info(epoch_to_datetime(instant), offset, offset_after)
                offset = offset_after
            return Regular(offset)

        index = bisect.bisect_right(self._local_boundaries, local) - 1
        if index == -1:
            # Before the first transition
            return Regular(self._offsets[0])
        transition_index = index // 2
        if index % 2 == 0:
            # Between the two local readings of a transition
            return offset_info(
                epoch_to_datetime(self._transitions[transition_index]),
                self._offsets[transition_index],
                self._offsets[transition_index + 1],
            )
        return Regular(self._offsets[transition_index + 1])

    def transitions_between(
        self, start: datetime.datetime, end: datetime.datetime
    ) -> Iterator[ZoneTransition]:
        """Yield the transitions in [start, end) that change the offset."""
        start_epoch = datetime_to_epoch(start)
        end_epoch = datetime_to_epoch(end)
        first = bisect.bisect_left(self._transitions, start_epoch)
        for index in range(first, len(self._transitions)):
            instant = self._transitions[index]
            if instant >= end_epoch:
                return
            before, after = self._offsets[index], self._offsets[index + 1]
            if before != after:
                yield ZoneTransition(epoch_to_datetime(instant), before, after)
        if self._recurring is None:
            return
        last = self._transitions[-1] if self._transitions else None
        if last is not None and start_epoch <= last:
            offset = self._offsets[-1]
            start_year = _year_of(last)
        else:
            offset = self.offset_at_epoch(start_epoch - 1)
            start_year = _year_of(start_epoch)
        end_year = _year_of(end_epoch)
        for year in range(
            max(start_year - 1, datetime.MINYEAR), min(end_year + 1, datetime.MAXYEAR) + 1
        ):
            for instant, offset_after in self._recurring.transitions_for_year(year):
                if instant < start_epoch or (last is not None and instant <= last):
                    continue
                if instant >= end_epoch:
                    return
                if offset != offset_after:
                    yield ZoneTransition(epoch_to_datetime(instant), offset, offset_after)
                offset = offset_after

    def _tail_transitions(self, approximate_local: int) -> list[tuple[int, UtcOffset]]:
        """Return the recurring transitions near a time that follow the history."""
        assert self._recurring is not None
        result = self._recurring.transitions_around(_year_of(approximate_local))
        if self._transitions:
            last = self._transitions[-1]
            result = [item for item in result if item[0] > last]
        return result

    def __repr__(self) -> str:
        if self.is_fixed:
            return f"TimeZoneRules(fixed={self._offsets[0]})"
        return (
            f"TimeZoneRules(transitions={len(self._transitions)}, recurring={self._recurring})"
        )
