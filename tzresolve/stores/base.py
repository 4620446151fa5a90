"""Base classes for stores holding time zone data."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..tzif.tzif import read_tzif
from ..zone_rules import TimeZoneRules

__all__ = [
    "TimeZoneStore",
    "TZifStore",
]

_LOGGER = logging.getLogger(__name__)


class TimeZoneStore(ABC):
    """A read-only source of rules for a fixed set of zone ids.

    All loading happens in the constructor so that a broken store fails
    once, up front, instead of on every lookup.
    """

    @abstractmethod
    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Return the rules for the zone, raising UnknownTimeZoneError if absent."""

    @abstractmethod
    def available_ids(self) -> frozenset[str]:
        """Return the set of zone ids known to the store."""


class TZifStore(TimeZoneStore):
    """A store where each zone is a TZif file."""

    @abstractmethod
    def read_zone(self, zone_id: str) -> bytes:
        """Return the TZif content for the zone, raising UnknownTimeZoneError if absent."""

    def rules_for_id(self, zone_id: str) -> TimeZoneRules:
        """Parse the TZif content for the zone into rules."""
        content = self.read_zone(zone_id)
        _LOGGER.debug("Parsing %d bytes of TZif data for %s", len(content), zone_id)
        return read_tzif(content).to_rules()
