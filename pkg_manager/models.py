"""Data models for pkg-manager.

These Pydantic models represent the core data structures shared by the
change oracle, the dependency resolver and the publish pipeline.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BumpType = Literal["major", "minor", "patch"]

DEFAULT_HASH_STORE_PATH = ".pkg-manager/hashes.json"
DEFAULT_BUILD_COMMAND = "uv build --out-dir dist"
DEFAULT_PUBLISH_COMMAND = "uv publish"


class PackageNode(BaseModel):
    """A single package in the monorepo dependency graph.

    Attributes:
        name: Unique package identifier.
        path: Relative path from workspace root to the package directory.
        depends_on: Names of packages this one depends on. Names that are not
                    part of the graph are treated as external and ignored
                    for ordering purposes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    path: str
    depends_on: tuple[str, ...] = Field(default=(), alias="depends-on")


class PackageHashRecord(BaseModel):
    """Published content hashes for one package.

    Attributes:
        versions: Map of published version → content hash of its build output.
        last_version: The most recently recorded version, if any.
    """

    model_config = ConfigDict(populate_by_name=True)

    versions: dict[str, str] = Field(default_factory=dict)
    last_version: str | None = Field(default=None, alias="lastVersion")


class HashStore(BaseModel):
    """The persisted record of every published build hash."""

    packages: dict[str, PackageHashRecord] = Field(default_factory=dict)


class DuplicateCheck(BaseModel):
    """Result of looking up a content hash in the store."""

    is_duplicate: bool
    existing_version: str | None = None


class PrePublishScript(BaseModel):
    """A validation command run in the package directory before publishing."""

    command: str
    label: str


class PublishConfig(BaseModel):
    """Settings read from [tool.pkg-manager] in the root pyproject.toml."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    pre_publish: list[PrePublishScript] = Field(
        default_factory=list, alias="pre-publish"
    )
    packages: list[PackageNode] = Field(default_factory=list)
    hash_store_path: str = Field(
        default=DEFAULT_HASH_STORE_PATH, alias="hash-store-path"
    )
    require_major_confirmation: bool = Field(
        default=True, alias="require-major-confirmation"
    )
    build_command: str = Field(default=DEFAULT_BUILD_COMMAND, alias="build-command")
    publish_command: str = Field(
        default=DEFAULT_PUBLISH_COMMAND, alias="publish-command"
    )


class VersionBump(BaseModel):
    """Records a version change for a package.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str


class CmdResult(BaseModel):
    """Outcome of an external command.

    Attributes:
        ok: True if the command exited with status 0.
        output: Captured stdout (empty when output was streamed).
        error: Failure reason when ok is False.
    """

    ok: bool
    output: str = ""
    error: str = ""
