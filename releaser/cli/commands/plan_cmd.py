"""Plan command - show which components would release, and at what versions."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from releaser.cli.commands._helpers import resolve_request
from releaser.cli.context import build_context
from releaser.output.console import Style


def plan(
    requests: list[str] | None = typer.Argument(
        None, help="NAME or NAME=VERSION; VERSION may also be major, minor, patch or patch2"
    ),
    ref: str | None = typer.Option(None, "--ref", help="Plan the release at this ref (default HEAD)"),
    json_out: bool = typer.Option(False, "--json", help="Print the plan as JSON on stdout"),
    repo: Path | None = typer.Option(None, "--repo", help="Repository root (default: cwd)"),
) -> None:
    """Resolve versions and preview changelog entries. Changes nothing."""
    ctx = build_context(repo)
    resolved = resolve_request(ctx, requests, ref)

    if json_out:
        payload = [
            {
                "component": item.name,
                "last_version": str(item.last_version) if item.last_version else None,
                "version": str(item.version),
                "semver": str(item.change_set.semver),
                "changes": [line for g in item.change_set.change_groups for line in g.prefixed_changes],
            }
            for item in resolved
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    if not resolved:
        ctx.console.info("No components need a release")
        return

    for item in resolved:
        previous = str(item.last_version) if item.last_version else "(unreleased)"
        ctx.console.header(f"{item.name}: {previous} -> {item.version}")
        entry = item.component.changelog_file.render_entry(item.change_set, item.version)
        ctx.console.print(entry.rstrip(), Style.LOG)
