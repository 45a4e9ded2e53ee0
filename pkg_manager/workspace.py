"""Workspace discovery for uv monorepos.

Reads [tool.uv.workspace].members from the root pyproject.toml and turns
every member directory into a PackageNode whose depends_on lists the
other members it declares as dependencies.
"""

from __future__ import annotations

import glob
from pathlib import Path

from .deps import internal_deps
from .models import PackageNode
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_workspace_member_globs,
    load_pyproject,
)


def detect_workspace(root: Path) -> bool:
    """Return True if root is a uv workspace with declared members."""
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return False
    return bool(get_workspace_member_globs(load_pyproject(pyproject)))


def scan_packages(root: Path) -> list[PackageNode]:
    """Scan the workspace and discover all member packages.

    Member globs are expanded in sorted order; directories without a
    pyproject.toml are skipped.

    Returns:
        One PackageNode per member, with internal dependencies only.
        Empty if root isn't a workspace.
    """
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return []
    member_globs = get_workspace_member_globs(load_pyproject(pyproject))

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists() and p not in member_dirs:
                member_dirs.append(p)

    # First pass: collect name, path and raw dependency strings
    found: list[tuple[str, str, list[str]]] = []
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        found.append(
            (
                get_project_name(doc, d.name),
                d.relative_to(root).as_posix(),
                get_all_dependency_strings(doc),
            )
        )

    # Second pass: keep only deps that point at other workspace members
    workspace_names = {name for name, _, _ in found}
    return [
        PackageNode(
            name=name,
            path=path,
            depends_on=tuple(
                dep for dep in internal_deps(raw_deps, workspace_names) if dep != name
            ),
        )
        for name, path, raw_deps in found
    ]
