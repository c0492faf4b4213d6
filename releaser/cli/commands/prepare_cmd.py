"""Prepare command - write changelog entries and version constants."""

from __future__ import annotations

from pathlib import Path

import typer

from releaser.cli.commands._helpers import exit_on_release_error, resolve_request
from releaser.cli.context import build_context
from releaser.core.result import Err


def prepare(
    requests: list[str] | None = typer.Argument(
        None, help="NAME or NAME=VERSION; VERSION may also be major, minor, patch or patch2"
    ),
    ref: str | None = typer.Option(None, "--ref", help="Release at this ref (default HEAD)"),
    repo: Path | None = typer.Option(None, "--repo", help="Repository root (default: cwd)"),
) -> None:
    """Update CHANGELOG.md and the version file of every component to release."""
    ctx = build_context(repo)
    resolved = resolve_request(ctx, requests, ref)
    if not resolved:
        ctx.console.info("No components need a release")
        return

    for item in resolved:
        component = item.component
        component.changelog_file.append(item.change_set, item.version)
        result = component.version_file.update_version(item.version)
        if isinstance(result, Err):
            exit_on_release_error(result.error, ctx)
        ctx.console.success(f"{item.name} {item.version}: updated changelog and version")
