"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

WriteTree = Callable[[Path, dict[str, bytes | str]], Path]


def _write_tree(root: Path, files: dict[str, bytes | str]) -> Path:
    """Create files under root, in the iteration order of files."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode()
        path.write_bytes(content)
    return root


@pytest.fixture
def write_tree() -> WriteTree:
    """Helper that writes a {relative path: content} mapping under a root."""
    return _write_tree


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
"""
    return tomlkit.parse(content)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A uv workspace with core ← utils ← app (arrows point at dependents)."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "root"\nversion = "0.0.0"\n\n'
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    members = {
        "core": [],
        "utils": ["core>=1.0", "requests>=2.0"],
        "app": ["Utils[extra]>=1.0", "core"],
    }
    for name, deps in members.items():
        pkg_dir = tmp_path / "packages" / name
        pkg_dir.mkdir(parents=True)
        dep_list = ", ".join(f'"{d}"' for d in deps)
        (pkg_dir / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "1.0.0"\n'
            f"dependencies = [{dep_list}]\n"
        )
    return tmp_path
