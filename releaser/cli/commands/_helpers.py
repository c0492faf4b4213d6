"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from releaser.core.errors import ErrorCode
from releaser.core.result import Err
from releaser.output.console import Style
from releaser.release.errors import ReleaseError, ReleaseErrorKind
from releaser.release.request_spec import RequestSpec, ResolvedComponent
from releaser.release.semver import Semver, Version

if TYPE_CHECKING:
    from releaser.cli.context import CLIContext

_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "unknown_component": ErrorCode.USER_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "pipeline_aborted": ErrorCode.PIPELINE_ERROR,
}


def exit_code_for(error: ReleaseError) -> ErrorCode:
    return _EXIT_CODES.get(error.kind, ErrorCode.RELEASE_ERROR)


def exit_on_release_error(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    """Report error and exit with the code for its kind."""
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.LOG)
    for detail in error.details:
        if detail != error.message:
            ctx.console.print(f"  - {detail}")
    raise typer.Exit(code=int(exit_code_for(error)))


def parse_request(text: str) -> tuple[str, str | None]:
    """Split `name` or `name=version` (version may be a semver level name)."""
    name, sep, version = text.partition("=")
    name = name.strip()
    if not name or (sep and not version.strip()):
        raise typer.BadParameter(f"expected NAME or NAME=VERSION, got {text!r}")
    return name, version.strip() if sep else None


def parse_version(text: str | None) -> Version | None:
    if text is None:
        return None
    version = Version.try_parse(text)
    if version is None:
        raise typer.BadParameter(f"invalid version: {text!r}")
    return version


def semver_names() -> str:
    return ", ".join(str(level) for level in Semver if level.significant)


def resolve_request(
    ctx: CLIContext, requests: list[str] | None, ref: str | None
) -> list[ResolvedComponent]:
    """Resolve NAME[=VERSION] arguments into the full release set, or exit."""
    spec = RequestSpec(ctx.components, ctx.console)
    for text in requests or []:
        name, version = parse_request(text)
        spec.add(name, version)
    result = spec.resolve_versions(ref)
    if isinstance(result, Err):
        exit_on_release_error(result.error, ctx)
    return result.value
