"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running shell commands
and git operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import click

from .models import CmdResult


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def run_cmd(
    label: str,
    cmd: list[str],
    *,
    cwd: Path | None = None,
    silent: bool = False,
) -> CmdResult:
    """Run an external command and report success or failure.

    Unless silent, the command line is echoed and its output streams
    directly to the terminal so users can see build progress. Silent
    commands have their output captured instead.

    Args:
        label: Short description of the operation, used in error messages.
        cmd: Command and arguments (e.g., ["uv", "build", "--out-dir", "dist"]).
        cwd: Directory to run in; defaults to the current directory.
        silent: Capture output instead of streaming it.

    Returns:
        CmdResult with ok=True and captured stdout, or ok=False and an
        error description. A missing executable is reported, not raised.
    """
    if not cmd:
        return CmdResult(ok=False, error=f"{label}: no command provided")

    if not silent:
        click.secho(f"> {' '.join(cmd)}", dim=True)

    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=silent, text=True)
    except OSError as exc:
        return CmdResult(ok=False, error=str(exc))

    if result.returncode == 0:
        return CmdResult(ok=True, output=result.stdout or "")
    return CmdResult(
        ok=False,
        error=result.stderr
        or result.stdout
        or f"Command failed with exit code {result.returncode}",
    )


def run_or_fatal(label: str, cmd: list[str], *, cwd: Path | None = None) -> str:
    """Run a command and exit the process if it fails.

    Returns:
        Captured stdout (empty for streamed commands).
    """
    result = run_cmd(label, cmd, cwd=cwd)
    if not result.ok:
        fatal(f"Failed: {label}\n{result.error}")
    return result.output


def is_git_clean() -> bool:
    """Return True if the working tree has no uncommitted changes.

    A failing `git status` (e.g. outside a repository) counts as dirty.
    """
    result = run_cmd(
        "check git status", ["git", "status", "--porcelain"], silent=True
    )
    if not result.ok:
        return False
    return result.output.strip() == ""


def commit_if_dirty(message: str) -> bool:
    """Stage everything and commit it, unless there's nothing to commit.

    Returns:
        True if a commit was created.
    """
    if is_git_clean():
        click.echo("  No changes to commit")
        return False

    run_or_fatal("stage changes", ["git", "add", "."])
    run_or_fatal("commit", ["git", "commit", "-m", message])
    return True


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the publish pipeline in terminal output.
    """
    rule = "─" * 60
    click.echo(f"\n{rule}\n{click.style(msg, fg='blue', bold=True)}\n{rule}")


def warn(msg: str) -> None:
    """Print a warning to stderr without stopping."""
    click.secho(f"Warning: {msg}", fg="yellow", err=True)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the pipeline.
    """
    click.secho(f"ERROR: {msg}", fg="red", bold=True, err=True)
    sys.exit(1)
