"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

from typing import get_args

import semver

from .models import BumpType

BUMP_TYPES: tuple[str, ...] = get_args(BumpType)


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).
    Prerelease/build metadata is not supported.
    """
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def normalize_bump_type(value: str) -> BumpType | None:
    """Return the bump type matching value (case-insensitive), or None."""
    lowered = value.strip().lower()
    if lowered in BUMP_TYPES:
        return lowered  # type: ignore[return-value]
    return None


def bump_version(version_str: str, bump_type: BumpType) -> str:
    """Increment one component of a version and return it as a string.

    Examples:
        bump_version("1.2.3", "patch") → "1.2.4"
        bump_version("1.2.3", "minor") → "1.3.0"
        bump_version("1.2", "major") → "2.0.0"
    """
    version = parse_version(version_str)
    if bump_type == "major":
        return str(version.bump_major())
    if bump_type == "minor":
        return str(version.bump_minor())
    if bump_type == "patch":
        return str(version.bump_patch())
    raise ValueError(f"Unknown bump type: {bump_type}")
