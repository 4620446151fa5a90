"""Backing stores for the time zone database."""

from .base import TimeZoneStore, TZifStore
from .blob import EmbeddedStore, IndexedBlobStore, build_indexed_blob
from .filesystem import FilesystemStore, find_tzdb_root
from .registry import RegistrySource, RegistryStore, WinregSource
from .tzdata import TzdataPackageStore
from .windows_zones import WindowsZoneNames, default_windows_zone_names

__all__ = [
    "EmbeddedStore",
    "FilesystemStore",
    "IndexedBlobStore",
    "RegistrySource",
    "RegistryStore",
    "TZifStore",
    "TimeZoneStore",
    "TzdataPackageStore",
    "WindowsZoneNames",
    "WinregSource",
    "build_indexed_blob",
    "default_windows_zone_names",
    "find_tzdb_root",
]
