"""Exceptions for tzresolve library."""

from __future__ import annotations

from typing import Self


class TimezoneError(Exception):
    """Base exception for all tzresolve errors."""


class TimezoneParseError(TimezoneError):
    """Exception raised when time zone data could not be decoded.

    The 'message' attribute contains a human-readable message about the
    error that occurred. The 'zone_id' attribute is set once the error is
    reported through a database lookup so the caller knows which zone
    is broken.
    """

    def __init__(self, message: str, *, zone_id: str | None = None) -> None:
        """Initialize the TimezoneParseError with a message."""
        super().__init__(f"{zone_id}: {message}" if zone_id else message)
        self.message = message
        self.zone_id = zone_id

    def for_zone(self, zone_id: str) -> Self:
        """Return a copy of this error attributed to the specified zone."""
        return type(self)(self.message, zone_id=zone_id)


class TruncatedDataError(TimezoneParseError):
    """Exception raised when a buffer ends before a field is complete."""


class MalformedDatabaseError(TimezoneParseError):
    """Exception raised when TZif or blob content is structurally invalid."""


class InvalidPosixRuleError(TimezoneParseError, ValueError):
    """Exception raised when parsing a POSIX TZ rule string.

    This is a ValueError so that callers validating user supplied TZ
    strings can treat it like any other invalid value.
    """


class UnknownTimeZoneError(TimezoneError):
    """Exception raised when a time zone id is not present in the database."""

    def __init__(self, zone_id: str, message: str | None = None) -> None:
        """Initialize the UnknownTimeZoneError for the zone id."""
        super().__init__(message or f"Unknown time zone: {zone_id}")
        self.zone_id = zone_id


class DatabaseInitializationError(TimezoneError):
    """Exception raised when a time zone database could not be loaded.

    A database that failed to load is an environment problem rather than
    a problem with a single zone, so the same error is replayed for every
    subsequent call instead of retrying the load.
    """


class DateTimeArithmeticError(TimezoneError, OverflowError):
    """Exception raised when a date projection leaves the supported range."""
