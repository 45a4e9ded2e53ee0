"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.utils import canonicalize_name

TOOL_TABLE = "pkg-manager"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def set_project_version(path: Path, version: str) -> None:
    """Rewrite [project].version in a pyproject.toml, keeping its formatting."""
    doc = load_pyproject(path)
    if "project" not in doc:
        doc["project"] = tomlkit.table()
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    project["version"] = version
    save_pyproject(path, doc)


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect all dependency strings from a pyproject.toml.

    Gathers dependencies from three locations:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    Non-string entries (e.g. {include-group = "..."}) are skipped.
    """
    project = doc.get("project", {})
    deps: list[str] = list(project.get("dependencies", []))
    # Collect optional dependency groups (e.g., [project.optional-dependencies.dev])
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(group_deps)
    # Collect PEP 735 dependency groups (e.g., [dependency-groups.test])
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(group_deps)
    return [str(d) for d in deps if isinstance(d, str)]


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages. Returns [] when no workspace is declared.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    return [str(m) for m in members] if members else []


def get_tool_table(doc: tomlkit.TOMLDocument) -> dict[str, Any] | None:
    """Return the [tool.pkg-manager] table as plain Python data, if present."""
    table = doc.get("tool", {}).get(TOOL_TABLE)
    if table is None:
        return None
    return cast(dict[str, Any], table.unwrap())


def set_tool_table(doc: tomlkit.TOMLDocument, data: dict[str, Any]) -> None:
    """Replace the [tool.pkg-manager] table, leaving the rest of doc untouched."""
    if "tool" not in doc:
        doc["tool"] = tomlkit.table(is_super_table=True)
    tool = cast(dict[str, Any], doc["tool"])
    table = tomlkit.table()
    for key, value in data.items():
        if key == "packages":
            packages = tomlkit.aot()
            for entry in value:
                item = tomlkit.table()
                item.update(entry)
                packages.append(item)
            table["packages"] = packages
        elif key == "pre-publish":
            scripts = tomlkit.array()
            for entry in value:
                inline = tomlkit.inline_table()
                inline.update(entry)
                scripts.append(inline)
            scripts.multiline(True)
            table["pre-publish"] = scripts
        else:
            table[key] = value
    tool[TOOL_TABLE] = table
