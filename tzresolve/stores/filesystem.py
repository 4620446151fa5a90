"""A store reading TZif files from a zoneinfo directory tree.

This follows the same approach as zoneinfo for locating timezone data: a
configured path is checked first, then the system TZPATH and the common
install locations. A directory is only accepted as a database if it holds
one of the zone table files that every tzdata installation ships.
"""

from __future__ import annotations

import logging
import os
import pathlib
import re
import zoneinfo
from collections.abc import Iterator

from ..exceptions import DatabaseInitializationError, UnknownTimeZoneError
from .base import TZifStore

__all__ = [
    "FilesystemStore",
    "find_tzdb_root",
    "system_default_zone",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_SEARCH_PATHS = (
    "/usr/share/zoneinfo",
    "/usr/share/lib/zoneinfo",
    "/etc/zoneinfo",
)

# Files present in every database root
_TAB_FILES = ("zone1970.tab", "zone.tab", "tab/zone_sun.tab")

# Files and directories that live in a zoneinfo directory but are not zones
_EXCLUDED_NAMES = re.compile(
    r"\+VERSION|leapseconds|localtime|posix|posixrules|right|SECURITY|src|timeconfig|Factory|.*\..*"
)

_LOCALTIME = pathlib.Path("/etc/localtime")


def system_default_zone(
    localtime: pathlib.Path = _LOCALTIME,
) -> tuple[pathlib.Path, str] | None:
    """Return the database root and zone id that the localtime link points to."""
    try:
        target = localtime.resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    parts = target.parts
    if "zoneinfo" not in parts:
        return None
    index = parts.index("zoneinfo")
    if index == len(parts) - 1:
        return None
    return pathlib.Path(*parts[: index + 1]), "/".join(parts[index + 1 :])


def is_tzdb_root(path: pathlib.Path) -> bool:
    """Return True if the directory looks like a time zone database."""
    return any((path / tab_file).is_file() for tab_file in _TAB_FILES)


def _search_paths(configured: str | os.PathLike[str] | None) -> Iterator[pathlib.Path]:
    if configured:
        yield pathlib.Path(configured)
    for search_path in zoneinfo.TZPATH:
        yield pathlib.Path(search_path)
    for search_path in DEFAULT_SEARCH_PATHS:
        yield pathlib.Path(search_path)
    if default_zone := system_default_zone():
        yield default_zone[0]


def find_tzdb_root(configured: str | os.PathLike[str] | None = None) -> pathlib.Path:
    """Return the first directory that holds a time zone database."""
    checked: list[pathlib.Path] = []
    for path in _search_paths(configured):
        if path in checked:
            continue
        checked.append(path)
        if is_tzdb_root(path):
            _LOGGER.debug("Found time zone database in %s", path)
            return path
    raise DatabaseInitializationError(
        f"Could not find the path to the timezone database, checked {[str(p) for p in checked]}"
    )


class FilesystemStore(TZifStore):
    """A store of TZif files where each zone id is a relative path."""

    def __init__(self, root: str | os.PathLike[str] | None = None) -> None:
        """Initialize FilesystemStore, searching for a root if none is given."""
        self._root = pathlib.Path(root) if root is not None else find_tzdb_root()
        if not self._root.is_dir():
            raise DatabaseInitializationError(
                f"Time zone database path is not a directory: {self._root}"
            )
        try:
            self._ids = frozenset(self._scan())
        except OSError as err:
            raise DatabaseInitializationError(
                f"Unable to list time zone database {self._root}: {err}"
            ) from err
        _LOGGER.debug("Loaded %d zone ids from %s", len(self._ids), self._root)

    @property
    def root(self) -> pathlib.Path:
        """Return the database directory."""
        return self._root

    def _scan(self) -> Iterator[str]:
        """Yield the relative path of every regular file, following symlinked files."""

        def on_error(err: OSError) -> None:
            raise err

        for dirpath, dirnames, filenames in os.walk(self._root, onerror=on_error):
            # Symlinked directories are listed but not descended into
            dirnames[:] = sorted(
                name for name in dirnames if not _EXCLUDED_NAMES.fullmatch(name)
            )
            for name in filenames:
                if _EXCLUDED_NAMES.fullmatch(name):
                    continue
                path = os.path.join(dirpath, name)
                if not os.path.isfile(path):
                    continue
                yield pathlib.Path(path).relative_to(self._root).as_posix()

    def _path_for(self, zone_id: str) -> pathlib.Path:
        if not zone_id:
            raise UnknownTimeZoneError(zone_id)
        relative = pathlib.PurePosixPath(zone_id)
        if relative.is_absolute():
            raise UnknownTimeZoneError(
                zone_id, f"Timezone ID '{zone_id}' must not begin with a '/'"
            )
        if ".." in relative.parts:
            raise UnknownTimeZoneError(
                zone_id, f"Timezone ID '{zone_id}' must not contain '..' as a component"
            )
        return self._root.joinpath(*relative.parts)

    def read_zone(self, zone_id: str) -> bytes:
        """Read the TZif file for the zone, resolving symlinks."""
        path = self._path_for(zone_id)
        if not path.is_file():
            raise UnknownTimeZoneError(zone_id)
        return path.read_bytes()

    def available_ids(self) -> frozenset[str]:
        """Return the zone ids found when the store was loaded."""
        return self._ids
