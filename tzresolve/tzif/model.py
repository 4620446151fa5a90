"""Data model for the tzif library."""

from dataclasses import dataclass
from typing import Optional

from ..exceptions import MalformedDatabaseError
from ..offset import UtcOffset
from ..zone_rules import TimeZoneRules
from .posix import PosixRule


@dataclass(frozen=True)
class RawTransition:
    """An individual transition in the data block."""

    instant: int
    """A transition time, in seconds since the epoch, at which the local time type may change."""

    offset_index: int
    """Zero-based index into the local time type records in effect after the transition."""


@dataclass(frozen=True)
class OffsetRecord:
    """A local time type record."""

    utc_offset: int
    """Number of seconds added to UTC to determine local time."""

    is_dst: bool
    """Determines if local time is Daylight Savings Time (else Standard time)."""

    abbreviation_index: int
    """Offset index into the time zone designation octets."""

    abbreviation: str | None = None
    """The designation string, e.g. CET, when the table was available."""


@dataclass(frozen=True)
class ParsedDatabase:
    """The results of parsing a TZif file.

    Leap second records and the standard/wall and UT/local indicators are
    read in order to skip over them but are not retained.
    """

    version: int
    """The version of the file format (1 through 4)."""

    transitions: tuple[RawTransition, ...]
    """Local time changes, sorted by instant."""

    offsets: tuple[OffsetRecord, ...]
    """The local time type records referenced by transitions."""

    posix_tail: Optional[str] = None
    """The raw POSIX TZ string footer of a version 2+ file."""

    rule: Optional[PosixRule] = None
    """The decoded footer, describing local time changes after the last transition."""

    def to_rules(self) -> TimeZoneRules:
        """Build the rules used to resolve offsets for this zone."""
        try:
            offsets = [UtcOffset(self.offsets[0].utc_offset)]
            offsets.extend(
                UtcOffset(self.offsets[transition.offset_index].utc_offset)
                for transition in self.transitions
            )
        except ValueError as err:
            raise MalformedDatabaseError(f"Invalid local time type record: {err}") from err
        recurring = self.rule.to_recurring_rules() if self.rule else None
        if not self.transitions:
            if recurring is not None:
                return TimeZoneRules.from_recurring(recurring)
            if self.rule is not None:
                return TimeZoneRules.fixed(self.rule.std.offset)
            return TimeZoneRules.fixed(offsets[0])
        return TimeZoneRules(
            [transition.instant for transition in self.transitions], offsets, recurring
        )
