"""Perform command - run release pipelines."""

from __future__ import annotations

from pathlib import Path

import typer

from releaser.cli.commands._helpers import parse_version
from releaser.cli.context import build_context
from releaser.core.errors import ErrorCode
from releaser.release.performer import Performer


def perform(
    components: list[str] = typer.Argument(..., help="Components to release"),
    version: str | None = typer.Option(
        None, "--version", help="Assert the changelog version (single component only)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build and verify, but publish nothing"),
    ref: str | None = typer.Option(None, "--ref", help="Release at this ref (default HEAD)"),
    work_dir: Path | None = typer.Option(None, "--work-dir", help="Directory for step artifacts"),
    prechecks: bool = typer.Option(True, "--prechecks/--no-prechecks", help="Verify state first"),
    git_remote: str | None = typer.Option(None, "--remote", help="Git remote (default from settings)"),
    repo: Path | None = typer.Option(None, "--repo", help="Repository root (default: cwd)"),
) -> None:
    """Release components at the versions recorded in their changelogs."""
    if version is not None and len(components) != 1:
        raise typer.BadParameter("--version requires exactly one component")
    asserted = parse_version(version)

    ctx = build_context(repo)
    performer = Performer(
        ctx.repository,
        ctx.components,
        ctx.console,
        release_ref=ref,
        git_remote=git_remote or ctx.settings.git_remote,
        work_dir=work_dir,
        dry_run=dry_run,
        enable_prechecks=prechecks,
    )
    for name in components:
        performer.perform_release(name, assert_version=asserted)

    typer.echo(performer.build_report_text())
    if performer.error:
        raise typer.Exit(code=int(ErrorCode.PIPELINE_ERROR))
