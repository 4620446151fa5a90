"""Classification of a local date-time relative to the nearest transition.

A local date-time either maps to exactly one instant (Regular), to no
instant because clocks jumped forward over it (Gap), or to two instants
because clocks were set back across it (Overlap).
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Union

from .offset import UtcOffset

__all__ = [
    "Regular",
    "Gap",
    "Overlap",
    "OffsetInfo",
    "offset_info",
]


@dataclass(frozen=True)
class Regular:
    """A local date-time that occurred exactly once."""

    offset: UtcOffset


@dataclass(frozen=True)
class Gap:
    """A local date-time that was skipped when clocks moved forward."""

    start: datetime.datetime
    """The UTC instant of the transition."""

    offset_before: UtcOffset
    offset_after: UtcOffset

    def __post_init__(self) -> None:
        if self.offset_before.total_seconds >= self.offset_after.total_seconds:
            raise ValueError(
                f"Gap requires offset_before < offset_after: {self.offset_before} >= {self.offset_after}"
            )

    @property
    def duration(self) -> datetime.timedelta:
        """Return the amount of local time skipped by the transition."""
        return self.offset_after.offset - self.offset_before.offset


@dataclass(frozen=True)
class Overlap:
    """A local date-time that occurred twice when clocks moved back."""

    start: datetime.datetime
    """The UTC instant of the transition."""

    offset_before: UtcOffset
    offset_after: UtcOffset

    def __post_init__(self) -> None:
        if self.offset_before.total_seconds <= self.offset_after.total_seconds:
            raise ValueError(
                f"Overlap requires offset_before > offset_after: {self.offset_before} <= {self.offset_after}"
            )


OffsetInfo = Union[Regular, Gap, Overlap]


def offset_info(
    start: datetime.datetime, offset_before: UtcOffset, offset_after: UtcOffset
) -> OffsetInfo:
    """Classify a transition based on how the offset changes across it."""
    if offset_before == offset_after:
        return Regular(offset_before)
    if offset_before.total_seconds < offset_after.total_seconds:
        return Gap(start, offset_before, offset_after)
    return Overlap(start, offset_before, offset_after)
