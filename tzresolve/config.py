"""Configuration for selecting the backing store of the time zone database.

The system database is configured from the environment:

  - TZRESOLVE_BACKEND: one of auto, filesystem, indexed_blob, embedded,
    tzdata or registry. The default, auto, prefers the system zoneinfo
    directory and falls back to the tzdata package.
  - TZRESOLVE_TZDB_PATH: the zoneinfo directory for the filesystem backend.
  - TZRESOLVE_BLOB_PATHS: os.pathsep separated blob files for the
    indexed_blob backend, later files taking precedence.
"""

from __future__ import annotations

import enum
import logging
import os
import pathlib
from collections.abc import Mapping
from functools import cache
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .database import (
    FixedOffsetDatabase,
    LazyTimeZoneDatabase,
    RuleBasedDatabase,
    TimeZoneDatabase,
)
from .exceptions import DatabaseInitializationError
from .stores import (
    EmbeddedStore,
    FilesystemStore,
    IndexedBlobStore,
    RegistryStore,
    TimeZoneStore,
    TzdataPackageStore,
)
from .stores.blob import DEFAULT_BLOB_PATHS

__all__ = [
    "Backend",
    "DatabaseConfig",
    "open_database",
    "system_database",
]

_LOGGER = logging.getLogger(__name__)

ENV_BACKEND = "TZRESOLVE_BACKEND"
ENV_TZDB_PATH = "TZRESOLVE_TZDB_PATH"
ENV_BLOB_PATHS = "TZRESOLVE_BLOB_PATHS"


class Backend(str, enum.Enum):
    """The kind of store holding the time zone database."""

    AUTO = "auto"
    """The system zoneinfo directory if found, otherwise the tzdata package."""

    FILESYSTEM = "filesystem"
    """A zoneinfo directory of TZif files."""

    INDEXED_BLOB = "indexed_blob"
    """One or more indexed blob files."""

    EMBEDDED = "embedded"
    """An indexed blob shipped as package data."""

    TZDATA = "tzdata"
    """The tzdata python package."""

    REGISTRY = "registry"
    """The Windows registry."""


class DatabaseConfig(BaseModel):
    """Settings used to open a time zone database."""

    model_config = ConfigDict(frozen=True)

    backend: Backend = Backend.AUTO

    tzdb_path: pathlib.Path | None = None
    """The zoneinfo directory, searched for when not set."""

    blob_paths: list[pathlib.Path] = Field(
        default_factory=lambda: [pathlib.Path(path) for path in DEFAULT_BLOB_PATHS]
    )
    """Blob files read by the indexed_blob backend."""

    embedded_package: str | None = None
    """The package holding the blob for the embedded backend."""

    embedded_resource: str | None = None
    """The resource name of the blob for the embedded backend."""

    fixed_offsets: bool = True
    """Resolve ids such as UTC, Z or GMT+3 to fixed offsets."""

    @field_validator("backend", mode="before")
    @classmethod
    def parse_backend(cls, value: Any) -> Any:
        """Accept backend names in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("blob_paths", mode="before")
    @classmethod
    def parse_blob_paths(cls, value: Any) -> Any:
        """Split a path list string into separate paths."""
        if isinstance(value, str):
            return [path for path in value.split(os.pathsep) if path]
        return value

    @model_validator(mode="after")
    def verify_embedded_resource(self) -> Self:
        """Validate that the embedded backend names its resource."""
        if self.backend == Backend.EMBEDDED and (
            not self.embedded_package or not self.embedded_resource
        ):
            raise ValueError(
                "The embedded backend requires embedded_package and embedded_resource"
            )
        return self

    @model_validator(mode="after")
    def verify_blob_paths(self) -> Self:
        """Validate that the indexed_blob backend has files to read."""
        if self.backend == Backend.INDEXED_BLOB and not self.blob_paths:
            raise ValueError("The indexed_blob backend requires at least one blob path")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DatabaseConfig:
        """Create the configuration from environment variables."""
        if environ is None:
            environ = os.environ
        values: dict[str, Any] = {}
        if backend := environ.get(ENV_BACKEND):
            values["backend"] = backend
        if tzdb_path := environ.get(ENV_TZDB_PATH):
            values["tzdb_path"] = tzdb_path
        if blob_paths := environ.get(ENV_BLOB_PATHS):
            values["blob_paths"] = blob_paths
        return cls.model_validate(values)

    def create_store(self) -> TimeZoneStore:
        """Load the configured store."""
        _LOGGER.debug("Loading time zone database from %s backend", self.backend.value)
        if self.backend == Backend.FILESYSTEM:
            return FilesystemStore(self.tzdb_path)
        if self.backend == Backend.INDEXED_BLOB:
            return IndexedBlobStore(self.blob_paths)
        if self.backend == Backend.EMBEDDED:
            if not self.embedded_package or not self.embedded_resource:
                raise ValueError(
                    "The embedded backend requires embedded_package and embedded_resource"
                )
            return EmbeddedStore.from_resource(
                self.embedded_package, self.embedded_resource
            )
        if self.backend == Backend.TZDATA:
            return TzdataPackageStore()
        if self.backend == Backend.REGISTRY:
            return RegistryStore()
        try:
            return FilesystemStore(self.tzdb_path)
        except DatabaseInitializationError as err:
            _LOGGER.debug("Falling back to the tzdata package: %s", err)
        return TzdataPackageStore()


def open_database(config: DatabaseConfig | None = None) -> LazyTimeZoneDatabase:
    """Return a database that loads the configured store on first use."""
    settings = config or DatabaseConfig()

    def loader() -> TimeZoneDatabase:
        database = RuleBasedDatabase(settings.create_store())
        if settings.fixed_offsets:
            return FixedOffsetDatabase(database)
        return database

    return LazyTimeZoneDatabase(loader)


@cache
def system_database() -> LazyTimeZoneDatabase:
    """Return the shared database configured from the environment."""
    return open_database(DatabaseConfig.from_env())
