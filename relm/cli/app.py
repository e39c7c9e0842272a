from __future__ import annotations

import typer

from relm import __version__
from relm.cli.commands.deps_cmd import deps_app
from relm.cli.commands.release_cmd import release
from relm.cli.commands.verify_cmd import verify


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command()(verify)

# Sub-apps
app.add_typer(deps_app, name="deps", help="Edit dependency versions in package.json")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Release automation for npm packages."""


def main() -> None:
    app()
