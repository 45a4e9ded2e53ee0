"""Configuration loading from [tool.pkg-manager] in the root pyproject.toml.

Example:

    [tool.pkg-manager]
    require-major-confirmation = true
    pre-publish = [{ command = "pytest", label = "Testing" }]

    [[tool.pkg-manager.packages]]
    name = "utils"
    path = "packages/utils"
    depends-on = ["core"]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError

from .errors import ConfigError
from .models import PublishConfig
from .toml import get_tool_table, load_pyproject, save_pyproject, set_tool_table

PYPROJECT = "pyproject.toml"


def config_exists(root: Path) -> bool:
    """Return True if the root pyproject.toml has a [tool.pkg-manager] table."""
    pyproject = root / PYPROJECT
    if not pyproject.exists():
        return False
    return get_tool_table(load_pyproject(pyproject)) is not None


def load_config(root: Path) -> PublishConfig:
    """Load and validate the pkg-manager configuration.

    Falls back to defaults when there is no pyproject.toml or no
    [tool.pkg-manager] table.

    Raises:
        ConfigError: If the table doesn't match the expected schema.
    """
    pyproject = root / PYPROJECT
    if not pyproject.exists():
        return PublishConfig()

    table = get_tool_table(load_pyproject(pyproject))
    if table is None:
        return PublishConfig()

    try:
        return PublishConfig.model_validate(table)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid [tool.pkg-manager] configuration:\n{exc}"
        ) from exc


def config_to_table(config: PublishConfig) -> dict[str, Any]:
    """Convert a config to the key/value layout used in pyproject.toml.

    Only non-default settings are written, except require-major-confirmation
    which is always spelled out.
    """
    data: dict[str, Any] = {
        "require-major-confirmation": config.require_major_confirmation
    }
    data.update(config.model_dump(mode="json", by_alias=True, exclude_defaults=True))
    return data


def write_config(root: Path, config: PublishConfig) -> Path:
    """Write config into the root pyproject.toml, creating the file if needed.

    Returns:
        Path to the written pyproject.toml.
    """
    pyproject = root / PYPROJECT
    doc = load_pyproject(pyproject) if pyproject.exists() else tomlkit.document()
    set_tool_table(doc, config_to_table(config))
    save_pyproject(pyproject, doc)
    return pyproject
