"""CLI entry point for pkg-manager."""

from __future__ import annotations

from pathlib import Path

import click

from pkg_manager.config import config_exists, load_config, write_config
from pkg_manager.errors import PkgManagerError
from pkg_manager.graph import dependency_order, topological_sort
from pkg_manager.hashing import compute_directory_hash
from pkg_manager.models import PrePublishScript, PublishConfig
from pkg_manager.pipeline import run_publish
from pkg_manager.versions import BUMP_TYPES
from pkg_manager.workspace import detect_workspace, scan_packages

# Validation scripts offered by `init --script`
SCRIPT_PRESETS: dict[str, PrePublishScript] = {
    "lint": PrePublishScript(command="ruff check .", label="Linting"),
    "test": PrePublishScript(command="pytest", label="Testing"),
}


@click.group()
@click.version_option(package_name="pkg-manager")
def cli() -> None:
    """Publish packages only when their build output actually changed."""


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing configuration.")
@click.option(
    "--script",
    "scripts",
    type=click.Choice(sorted(SCRIPT_PRESETS)),
    multiple=True,
    help="Pre-publish script to add (repeatable).",
)
def init(force: bool, scripts: tuple[str, ...]) -> None:
    """Write a [tool.pkg-manager] table into pyproject.toml."""
    root = Path.cwd()

    if config_exists(root) and not force:
        raise click.ClickException(
            "Configuration already exists. Use --force to overwrite."
        )

    click.secho("Initializing pkg-manager config...", fg="blue", bold=True)

    packages = []
    if detect_workspace(root):
        click.secho("Detected uv workspace", fg="green")
        packages = scan_packages(root)
        if packages:
            click.echo(f"\nFound {len(packages)} packages:")
            for pkg in packages:
                deps = f" → [{', '.join(pkg.depends_on)}]" if pkg.depends_on else ""
                click.echo(f"  - {pkg.name} ({pkg.path}){deps}")

    config = PublishConfig(
        pre_publish=[SCRIPT_PRESETS[s] for s in scripts],
        packages=packages,
    )
    dest = write_config(root, config)

    click.secho(f"\n✓ Wrote [tool.pkg-manager] to {dest.name}", fg="green", bold=True)


@cli.command()
@click.argument("package", required=False, default=None)
@click.option(
    "-t",
    "--type",
    "bump_type",
    default=None,
    help=f"Version bump type: {', '.join(BUMP_TYPES)}.",
)
@click.option("--force", is_flag=True, help="Publish even if no changes detected.")
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without making changes."
)
@click.option(
    "--skip-confirm", is_flag=True, help="Skip the major version confirmation prompt."
)
def publish(
    package: str | None,
    bump_type: str | None,
    force: bool,
    dry_run: bool,
    skip_confirm: bool,
) -> None:
    """Publish a package with hash-based change detection.

    PACKAGE is only needed in a monorepo; you'll be prompted if omitted.
    """
    try:
        run_publish(
            package,
            bump_type=bump_type,
            force=force,
            dry_run=dry_run,
            skip_confirm=skip_confirm,
        )
    except PkgManagerError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(name="hash")
@click.argument("path", type=click.Path(path_type=Path))
def hash_cmd(path: Path) -> None:
    """Print the content hash of a build output directory."""
    try:
        click.echo(compute_directory_hash(path))
    except PkgManagerError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("package", required=False, default=None)
def order(package: str | None) -> None:
    """Print the build order of the configured packages.

    With PACKAGE, prints only what must be built before it.
    """
    try:
        nodes = load_config(Path.cwd()).packages
        if package:
            result = dependency_order(package, nodes)
        else:
            result = topological_sort(nodes)
    except PkgManagerError as exc:
        raise click.ClickException(str(exc)) from exc

    for node in result:
        click.echo(f"{node.name} ({node.path})")
