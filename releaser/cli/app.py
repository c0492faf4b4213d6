from __future__ import annotations

import typer

from releaser import __version__
from releaser.cli.commands.perform_cmd import perform
from releaser.cli.commands.plan_cmd import plan
from releaser.cli.commands.prepare_cmd import prepare

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(plan)
app.command()(prepare)
app.command()(perform)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
