"""Exception types raised by pkg-manager.

Only NotFoundError and CycleError escape the core. CorruptStoreError is
raised while parsing the hash store and recovered by load_store().
"""

from __future__ import annotations


class PkgManagerError(Exception):
    """Base class for all pkg-manager errors."""


class NotFoundError(PkgManagerError, FileNotFoundError):
    """A directory that should be hashed does not exist."""


class CycleError(PkgManagerError, RuntimeError):
    """The package graph contains a circular dependency."""


class CorruptStoreError(PkgManagerError, ValueError):
    """The persisted hash store could not be parsed."""


class ConfigError(PkgManagerError):
    """The [tool.pkg-manager] table is invalid."""
