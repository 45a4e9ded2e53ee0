"""Publish pipeline: deps → validate → build → hash → bump → tag → publish.

This module orchestrates the pkg-manager publish process:
1. Refuse to run on a dirty git working tree
2. Build the target's workspace dependencies in dependency order
3. Run the configured pre-publish validation scripts
4. Build the package and hash its dist/ directory
5. Stop if that exact build output was already published
6. Bump the version, rebuild, and commit the bump
7. Create a git tag for the new version
8. Publish, then record the build hash for future duplicate checks

The key safeguard is step 5: publishing is skipped when nothing in the
build output changed since a previous release.
"""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

import click

from .config import load_config
from .graph import dependency_order
from .hashing import compute_directory_hash
from .models import (
    BumpType,
    PackageNode,
    PrePublishScript,
    PublishConfig,
    VersionBump,
)
from .shell import (
    commit_if_dirty,
    fatal,
    git,
    is_git_clean,
    run_or_fatal,
    step,
    warn,
)
from .store import is_duplicate, load_store, persist_store, record_publish
from .toml import (
    get_project_name,
    get_project_version,
    load_pyproject,
    set_project_version,
)
from .versions import BUMP_TYPES, bump_version, normalize_bump_type


def resolve_target_package(package: str | None, config: PublishConfig) -> str | None:
    """Pick the package to publish.

    Uses the explicit argument if given; otherwise prompts among the
    configured monorepo packages. Returns None for single-package repos.
    """
    if package:
        return package
    if not config.packages:
        return None
    names = [p.name for p in config.packages]
    for p in config.packages:
        click.echo(f"  {p.name} ({p.path})")
    return click.prompt(
        "Select package to publish", type=click.Choice(names), show_choices=False
    )


def resolve_bump_type(type_arg: str | None) -> BumpType:
    """Validate the requested bump type, or prompt for one."""
    if type_arg:
        bump_type = normalize_bump_type(type_arg)
        if bump_type is None:
            fatal(
                f"Invalid version type: {type_arg}\n"
                f"Valid types: {', '.join(BUMP_TYPES)}"
            )
        return bump_type  # type: ignore[return-value]

    return click.prompt(
        "Select version bump type",
        type=click.Choice(BUMP_TYPES, case_sensitive=False),
        default="patch",
    ).lower()


def get_package_dir(target: str | None, config: PublishConfig, root: Path) -> Path:
    """Return the directory of the target package.

    Falls back to the repository root when target is None or isn't one of
    the configured packages.
    """
    if target:
        for p in config.packages:
            if p.name == target:
                return root / p.path
    return root


def get_package_name(package_dir: Path) -> str:
    """Read the canonical package name from the package's pyproject.toml."""
    pyproject = package_dir / "pyproject.toml"
    if not pyproject.exists():
        fatal(f"pyproject.toml not found at {package_dir}")
    doc = load_pyproject(pyproject)
    if not doc.get("project", {}).get("name"):
        fatal(f"{pyproject} does not have a [project].name field")
    return get_project_name(doc, package_dir.name)


def confirm_major(
    bump_type: BumpType, config: PublishConfig, skip_confirm: bool
) -> bool:
    """Ask before a major release unless confirmation is disabled.

    Returns:
        False if the user declined.
    """
    if bump_type != "major" or not config.require_major_confirmation or skip_confirm:
        return True
    return click.confirm(
        "You are about to publish a MAJOR version. Are you sure?", default=False
    )


def build_package(name: str, package_dir: Path, build_command: str) -> None:
    """Build one package into a fresh dist/ directory.

    dist/ is cleared first so stale artifacts never leak into the hash.
    """
    click.echo(f"\n  {name} ({package_dir})")
    shutil.rmtree(package_dir / "dist", ignore_errors=True)
    run_or_fatal(f"build {name}", shlex.split(build_command), cwd=package_dir)


def build_dependencies(
    target: str,
    nodes: list[PackageNode],
    root: Path,
    build_command: str,
    *,
    dry_run: bool = False,
) -> list[PackageNode]:
    """Build every workspace package target depends on, dependencies first.

    Returns:
        The packages that were (or, in dry-run mode, would be) built.
    """
    step("Building dependencies")

    deps = dependency_order(target, nodes)
    if not deps:
        click.echo("  No dependencies to build")
    for dep in deps:
        click.echo(f"  Building dependency: {dep.name}")
        if not dry_run:
            build_package(dep.name, root / dep.path, build_command)
    return deps


def run_pre_publish_scripts(
    scripts: list[PrePublishScript], package_dir: Path, *, dry_run: bool = False
) -> None:
    """Run validation scripts (lint, tests, ...) in the package directory."""
    step("Running pre-publish scripts")

    if not scripts:
        click.echo("  No pre-publish scripts configured")
        return

    for script in scripts:
        click.secho(f"\n{script.label}...", fg="blue")
        cmd = shlex.split(script.command)
        if not cmd:
            fatal(f"Invalid command: {script.command!r}")
        if not dry_run:
            run_or_fatal(script.label, cmd, cwd=package_dir)


def check_for_duplicate(
    dist_dir: Path, store_path: Path, package_name: str, *, force: bool
) -> str:
    """Hash the build output and make sure it wasn't already published.

    Returns:
        The content hash of dist_dir.

    Raises:
        SystemExit: If the build was already published and force is False.
    """
    step("Checking for duplicate build")

    if not dist_dir.is_dir():
        fatal(
            f"dist directory not found at {dist_dir}\n"
            "Please build your package first."
        )

    current_hash = compute_directory_hash(dist_dir)
    click.secho(f"  Hash: {current_hash[:12]}...", dim=True)

    check = is_duplicate(load_store(store_path), package_name, current_hash)
    if check.is_duplicate and not force:
        fatal(
            f"This build has already been published as "
            f"{package_name}@{check.existing_version}\n"
            "No changes detected in the build output.\n"
            "Make code changes before attempting to publish.\n"
            "Or use --force to publish anyway."
        )
    if check.is_duplicate:
        warn(
            f"This build was already published as "
            f"{package_name}@{check.existing_version}\n"
            "Force flag enabled - proceeding with publish anyway."
        )
    else:
        click.echo("  No previous publish with this build output")

    return current_hash


def bump_package_version(
    package_dir: Path, bump_type: BumpType, *, dry_run: bool = False
) -> VersionBump:
    """Compute the next version and write it to [project].version."""
    step(f"Bumping version ({bump_type})")

    pyproject = package_dir / "pyproject.toml"
    old = get_project_version(load_pyproject(pyproject))
    bump = VersionBump(old=old, new=bump_version(old, bump_type))
    if not dry_run:
        set_project_version(pyproject, bump.new)
    click.secho(f"  {bump.old} → {bump.new}", fg="green")
    return bump


def tag_release(package_name: str, version: str, *, dry_run: bool = False) -> str:
    """Create the git tag {package-name}/v{version}."""
    step("Creating git tag")

    tag = f"{package_name}/v{version}"
    if not dry_run:
        git("tag", tag)
    click.echo(f"  {tag}")
    return tag


def record_hash(
    store_path: Path, package_name: str, version: str, content_hash: str
) -> None:
    """Add the published build's hash to the on-disk store."""
    store = record_publish(load_store(store_path), package_name, version, content_hash)
    persist_store(store, store_path)
    click.secho(
        f"  Recorded {package_name} → {content_hash[:12]}...", dim=True
    )


def run_publish(
    package: str | None = None,
    *,
    bump_type: str | None = None,
    force: bool = False,
    dry_run: bool = False,
    skip_confirm: bool = False,
    root: Path | None = None,
) -> None:
    """Execute the full publish pipeline.

    Args:
        package: Package to publish (monorepo only). Prompts if omitted and
                 the config lists packages.
        bump_type: "major", "minor" or "patch". Prompts if omitted.
        force: Publish even if the build output was already published.
        dry_run: Print what would happen without running or writing anything.
        skip_confirm: Skip the confirmation prompt for major bumps.
        root: Workspace root; defaults to the current directory.
    """
    root = root or Path.cwd()
    config = load_config(root)

    if not is_git_clean():
        fatal(
            "Git working directory is not clean.\n"
            "Please commit or stash your changes before publishing."
        )

    target = resolve_target_package(package, config)
    package_dir = get_package_dir(target, config, root)
    package_name = get_package_name(package_dir)

    step(f"Publishing: {package_name}")
    if dry_run:
        click.secho("  (dry-run mode - no changes will be made)", fg="yellow")

    version_type = resolve_bump_type(bump_type)
    if not confirm_major(version_type, config, skip_confirm):
        click.echo("Aborted.")
        raise SystemExit(0)

    # Phase 1: Build
    if config.packages:
        build_dependencies(
            target or package_name,
            config.packages,
            root,
            config.build_command,
            dry_run=dry_run,
        )
    run_pre_publish_scripts(config.pre_publish, package_dir, dry_run=dry_run)
    if not dry_run:
        step(f"Building {package_name}")
        build_package(package_name, package_dir, config.build_command)

    # Phase 2: Duplicate detection
    dist_dir = package_dir / "dist"
    store_path = root / config.hash_store_path
    current_hash = check_for_duplicate(dist_dir, store_path, package_name, force=force)

    # Phase 3: Release
    bump = bump_package_version(package_dir, version_type, dry_run=dry_run)
    published_hash = current_hash
    if not dry_run:
        commit_if_dirty(f"chore: bump {package_name} to {bump.new}")
        # Rebuild so the published artifacts carry the new version
        step(f"Rebuilding {package_name} {bump.new}")
        build_package(package_name, package_dir, config.build_command)
        published_hash = compute_directory_hash(dist_dir)

    tag_release(package_name, bump.new, dry_run=dry_run)

    step("Publishing")
    if not dry_run:
        run_or_fatal("publish", shlex.split(config.publish_command), cwd=package_dir)
        record_hash(store_path, package_name, bump.new, published_hash)
        commit_if_dirty(
            f"chore: update publish hashes for {package_name}@{bump.new}"
        )

    if dry_run:
        click.secho(f"\nDry run complete for {package_name}@{bump.new}", fg="yellow")
    else:
        click.secho(
            f"\nSuccessfully published {package_name}@{bump.new}",
            fg="green",
            bold=True,
        )
