"""A store reading zones from the tzdata python package.

The tzdata package ships the compiled TZif files as package resources, one
resource per zone, along with a "zones" file listing every zone id. It is
the same fallback that zoneinfo uses on platforms without system data.
"""

from __future__ import annotations

import logging
from importlib import resources

from ..exceptions import DatabaseInitializationError, UnknownTimeZoneError
from .base import TZifStore

__all__ = [
    "TzdataPackageStore",
]

_LOGGER = logging.getLogger(__name__)

_PACKAGE = "tzdata"


def _iana_key_to_resource(key: str) -> tuple[str, str]:
    """Returns the package and resource file for the specified timezone."""
    if "/" not in key:
        return f"{_PACKAGE}.zoneinfo", key
    package_loc, resource = key.rsplit("/", 1)
    package = f"{_PACKAGE}.zoneinfo." + package_loc.replace("/", ".")
    return package, resource


class TzdataPackageStore(TZifStore):
    """A store of the TZif resources in the tzdata package."""

    def __init__(self) -> None:
        """Initialize TzdataPackageStore by reading the list of zones."""
        try:
            with resources.files(_PACKAGE).joinpath("zones").open(
                "r", encoding="utf-8"
            ) as zones_file:
                self._ids = frozenset(
                    line.strip() for line in zones_file.readlines() if line.strip()
                )
        except (ModuleNotFoundError, OSError) as err:
            raise DatabaseInitializationError(
                f"Unable to load the tzdata package: {err}"
            ) from err
        except ValueError as err:
            raise DatabaseInitializationError(
                f"Invalid zone list in the tzdata package: {err}"
            ) from err
        _LOGGER.debug("Loaded %d zone ids from the tzdata package", len(self._ids))

    def read_zone(self, zone_id: str) -> bytes:
        """Read the TZif resource for the zone."""
        if zone_id not in self._ids:
            raise UnknownTimeZoneError(zone_id)
        (package, resource) = _iana_key_to_resource(zone_id)
        try:
            with resources.files(package).joinpath(resource).open("rb") as tzdata_file:
                return tzdata_file.read()
        except (ModuleNotFoundError, FileNotFoundError) as err:
            raise UnknownTimeZoneError(
                zone_id, f"Unable to load tzdata resource for {zone_id}"
            ) from err

    def available_ids(self) -> frozenset[str]:
        """Return the zones listed by the tzdata package."""
        return self._ids
