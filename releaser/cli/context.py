from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from releaser.core.config import SETTINGS_FILE_NAMES, find_settings_file
from releaser.core.errors import ErrorCode
from releaser.core.result import Err
from releaser.git.repository import Repository
from releaser.output.console import ConsoleProtocol, RichConsole
from releaser.release.component import Component, build_components
from releaser.release.settings import RepoSettings, load_settings


@dataclass(frozen=True, slots=True)
class CLIContext:
    repository: Repository
    settings: RepoSettings
    components: list[Component]
    console: ConsoleProtocol


def build_context(repo_root: Path | None = None) -> CLIContext:
    console = RichConsole()
    root = (repo_root or Path.cwd()).expanduser().resolve()
    repository = Repository(root)
    if not repository.exists():
        console.error(f"not a git repository: {root}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    settings_path = find_settings_file(root)
    if settings_path is None:
        console.error(f"no release settings found in {root}")
        console.print(f"hint: create one of {', '.join(SETTINGS_FILE_NAMES)}")
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    settings_result = load_settings(settings_path)
    if isinstance(settings_result, Err):
        console.error(settings_result.error.pretty())
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    settings = settings_result.value
    return CLIContext(
        repository=repository,
        settings=settings,
        components=build_components(settings, repository),
        console=console,
    )
