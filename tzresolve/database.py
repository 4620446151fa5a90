"""Library for looking up time zone rules by zone id.

A database wraps exactly one backing store. Loading a store is an
expensive, one time operation (scanning a directory, reading a blob or
enumerating a registry) and a store that fails to load is an environment
problem rather than a problem with any single zone. The outcome of the load
is therefore captured once: a database that failed to initialize replays the
same error for every call instead of retrying the load.

Rules for individual zones are parsed on first use and cached. A zone with
corrupt data only fails lookups for that zone.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from functools import cache
from typing import Protocol

from .compat import is_windows_timezone_names_enabled
from .exceptions import (
    DatabaseInitializationError,
    TimezoneParseError,
    UnknownTimeZoneError,
)
from .offset import ZERO_OFFSET, UtcOffset
from .stores.windows_zones import default_windows_zone_names
from .tzinfo import ZoneTzInfo
from .zone_rules import TimeZoneRules

__all__ = [
    "TimeZoneDatabase",
    "RuleBasedDatabase",
    "UninitializedTimeZoneDatabase",
    "ZoneInfoDatabase",
    "LazyTimeZoneDatabase",
    "FixedOffsetDatabase",
    "initialize_once",
]

_LOGGER = logging.getLogger(__name__)


class TimeZoneDatabase(Protocol):
    """A read-only mapping of zone ids to rules."""

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return the rules for the zone, raising UnknownTimeZoneError if absent."""

    def available_ids(self) -> frozenset[str]:
        """Return the set of known zone ids."""


class ZoneInfoDatabase(ABC):
    """Conveniences shared by the database implementations."""

    @abstractmethod
    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return the rules for the zone, raising UnknownTimeZoneError if absent."""

    @abstractmethod
    def available_ids(self) -> frozenset[str]:
        """Return the set of known zone ids."""

    def tzinfo(self, zone_id: str) -> ZoneTzInfo:
        """Return a datetime.tzinfo for the zone."""
        return ZoneTzInfo(zone_id, self.rules_for_id(zone_id))


class RuleBasedDatabase(ZoneInfoDatabase):
    """A database that parses rules from a store and caches them per zone id."""

    def __init__(self, store: TimeZoneDatabase) -> None:
        """Initialize RuleBasedDatabase."""
        self._store = store
        self._cached_rules = cache(self._load_rules)

    @property
    def store(self) -> TimeZoneDatabase:
        """Return the backing store."""
        return self._store

    def _load_rules(self, zone_id: str) -> TimeZoneRules:
        _LOGGER.debug("Loading rules for %s", zone_id)
        try:
            return self._store.rules_for_id(zone_id)
        except TimezoneParseError as err:
            raise err.for_zone(zone_id) from err

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return the rules for the zone."""
        if is_windows_timezone_names_enabled() and (
            canonical_id := default_windows_zone_names().to_canonical(zone_id)
        ):
            _LOGGER.debug("Using canonical zone id %s for %s", canonical_id, zone_id)
            zone_id = canonical_id
        return self._cached_rules(zone_id)

    def available_ids(self) -> frozenset[str]:
        """Return the zone ids of the store."""
        return self._store.available_ids()


class UninitializedTimeZoneDatabase(ZoneInfoDatabase):
    """A database whose store failed to load.

    Every call raises the error captured when loading, since a broken
    database is an error rather than a problem with a single zone.
    """

    def __init__(self, error: DatabaseInitializationError) -> None:
        """Initialize UninitializedTimeZoneDatabase."""
        self._error = error

    @property
    def error(self) -> DatabaseInitializationError:
        """Return the captured error."""
        return self._error

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        raise self._error.with_traceback(None)

    def available_ids(self) -> frozenset[str]:
        raise self._error.with_traceback(None)


def _load(loader: Callable[[], TimeZoneDatabase]) -> TimeZoneDatabase:
    """Invoke the loader, reporting any failure as a DatabaseInitializationError."""
    try:
        return loader()
    except DatabaseInitializationError:
        raise
    except Exception as err:  # pylint: disable=broad-except
        raise DatabaseInitializationError(
            f"Failed to load the time zone database: {err}"
        ) from err


def initialize_once(loader: Callable[[], TimeZoneDatabase]) -> TimeZoneDatabase:
    """Load a database, capturing a failure as a database that replays it."""
    try:
        database = _load(loader)
    except DatabaseInitializationError as err:
        _LOGGER.warning("Time zone database is unavailable: %s", err)
        return UninitializedTimeZoneDatabase(err)
    if isinstance(database, ZoneInfoDatabase):
        return database
    return RuleBasedDatabase(database)


class LazyTimeZoneDatabase(ZoneInfoDatabase):
    """A database that is loaded on first use.

    The outcome of the first load, success or failure, is used for the
    lifetime of the instance. Loading happens at most once even when the
    first lookups race from multiple threads.
    """

    def __init__(self, loader: Callable[[], TimeZoneDatabase]) -> None:
        """Initialize LazyTimeZoneDatabase."""
        self._loader = loader
        self._lock = threading.Lock()
        self._database: TimeZoneDatabase | None = None

    @property
    def database(self) -> TimeZoneDatabase:
        """Return the loaded database, loading it if needed."""
        if (database := self._database) is not None:
            return database
        with self._lock:
            if self._database is None:
                self._database = initialize_once(self._loader)
            return self._database

    @property
    def is_loaded(self) -> bool:
        """Return True once a load was attempted."""
        return self._database is not None

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        return self.database.rules_for_id(zone_id)

    def available_ids(self) -> frozenset[str]:
        return self.database.available_ids()


# Prefixes of ids that are followed by an offset, e.g. UTC+1 or GMT-05:30
_OFFSET_PREFIXES = ("UTC", "GMT", "UT")
_ZERO_IDS = frozenset({"UTC", "GMT", "UT", "Z", "z"})


def _parse_fixed_offset(zone_id: str) -> UtcOffset | str | None:
    """Return the offset for a fixed offset id.

    Returns the prefix of the id as a string when it looks like a fixed
    offset id but the offset is malformed, and None if it is not one.
    """
    if zone_id in _ZERO_IDS:
        return ZERO_OFFSET
    if len(zone_id) == 1:
        return None
    if zone_id[0] in "+-":
        prefix, offset = "", zone_id
    else:
        for prefix in _OFFSET_PREFIXES:
            if zone_id.startswith((f"{prefix}+", f"{prefix}-")):
                offset = zone_id[len(prefix) :]
                break
        else:
            return None
    try:
        return UtcOffset.parse(offset)
    except ValueError:
        return prefix


class FixedOffsetDatabase(ZoneInfoDatabase):
    """A database that resolves fixed offset ids before consulting another.

    The ids UTC, GMT, UT and Z, a bare offset such as +05:30, and an offset
    after a UTC, GMT or UT prefix such as GMT-3 all resolve to a fixed
    offset.
    """

    def __init__(self, inner: TimeZoneDatabase) -> None:
        """Initialize FixedOffsetDatabase."""
        self._inner = inner

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return fixed rules for offset ids, or the rules of the inner database."""
        fixed = _parse_fixed_offset(zone_id)
        if isinstance(fixed, UtcOffset):
            return TimeZoneRules.fixed(fixed)
        if isinstance(fixed, str):
            try:
                return self._inner.rules_for_id(zone_id)
            except UnknownTimeZoneError as err:
                raise UnknownTimeZoneError(
                    zone_id,
                    f"Malformed UTC offset '{zone_id[len(fixed):]}' in zone ID '{zone_id}'",
                ) from err
        return self._inner.rules_for_id(zone_id)

    def available_ids(self) -> frozenset[str]:
        return self._inner.available_ids()
