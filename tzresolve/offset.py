"""Library for parsing and representing UTC offsets."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass

__all__ = [
    "UtcOffset",
    "MAX_OFFSET_SECONDS",
    "ZERO_OFFSET",
]

MAX_OFFSET_SECONDS = 18 * 60 * 60

UTC_OFFSET_REGEX = re.compile(
    r"^([-+])([0-9]{1,2})(?:(?::([0-9]{2})(?::([0-9]{2}))?)|(?:([0-9]{2})([0-9]{2})?))?$"
)


@dataclass(frozen=True, order=True)
class UtcOffset:
    """Contains an offset from UTC to local time."""

    total_seconds: int
    """Number of seconds added to UTC to determine local time."""

    def __post_init__(self) -> None:
        """Verify the offset is within the supported range."""
        if not -MAX_OFFSET_SECONDS <= self.total_seconds <= MAX_OFFSET_SECONDS:
            raise ValueError(
                f"UTC offset must be within +/-18 hours: {self.total_seconds}s"
            )

    @classmethod
    def of(cls, hours: int = 0, minutes: int = 0, seconds: int = 0) -> UtcOffset:
        """Create an offset from components which all share the same sign."""
        return cls(hours * 3600 + minutes * 60 + seconds)

    @classmethod
    def parse(cls, value: str) -> UtcOffset:
        """Parse an offset such as +01, -05:30, +0530 or +05:30:15."""
        if not (match := UTC_OFFSET_REGEX.fullmatch(value)):
            raise ValueError(f"Expected value to match UTC offset pattern: {value}")
        sign, hours, minutes, seconds, compact_minutes, compact_seconds = match.groups()
        minutes = minutes or compact_minutes
        seconds = seconds or compact_seconds
        if int(minutes or 0) > 59 or int(seconds or 0) > 59:
            raise ValueError(f"Minutes and seconds must be below 60: {value}")
        result = int(hours) * 3600 + int(minutes or 0) * 60 + int(seconds or 0)
        if sign == "-":
            result = -result
        return cls(result)

    @property
    def offset(self) -> datetime.timedelta:
        """Return the offset as a timedelta."""
        return datetime.timedelta(seconds=self.total_seconds)

    def as_timezone(self) -> datetime.timezone:
        """Return a fixed offset datetime.timezone."""
        return datetime.timezone(self.offset)

    def __str__(self) -> str:
        """Serialize the offset in ISO 8601 format, e.g. +05:30 or Z."""
        if self.total_seconds == 0:
            return "Z"
        seconds = abs(self.total_seconds)
        parts = ["-" if self.total_seconds < 0 else "+"]
        parts.append(f"{seconds // 3600:02}:{seconds % 3600 // 60:02}")
        if seconds % 60:
            parts.append(f":{seconds % 60:02}")
        return "".join(parts)


ZERO_OFFSET = UtcOffset(0)
