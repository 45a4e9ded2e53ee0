"""Dependency string handling.

Provides PEP 508 parsing used to tell which of a package's declared
dependencies are other members of the same workspace.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def internal_deps(
    dep_strs: Iterable[str], workspace_names: Collection[str]
) -> list[str]:
    """Filter dependency strings down to workspace members.

    Preserves first-seen order and drops duplicates, so a package listed in
    both [project].dependencies and a dependency group appears once.
    Strings that aren't valid PEP 508 requirements are ignored.

    Args:
        dep_strs: Raw dependency strings from a pyproject.toml.
        workspace_names: Canonical names of all workspace members.
    """
    found: list[str] = []
    for dep_str in dep_strs:
        try:
            name = dep_canonical_name(dep_str)
        except InvalidRequirement:
            continue
        if name in workspace_names and name not in found:
            found.append(name)
    return found
