"""maiass CLI: commit, merge, version and changelog automation for git-flow repos."""

from typing import Annotated

import typer

from maiass import __version__

from .commands import commit, config, git_info, init, release, version
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"maiass {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="maiass",
    help="Commit, merge to develop, bump versions and write changelogs",
    no_args_is_help=True,
)


@app.callback()
def main(
    show_version: Annotated[
        bool,
        typer.Option(
            "--version", "-V", callback=_show_version, is_eager=True, help="Show version and exit"
        ),
    ] = False,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)")
    ] = 0,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only show warnings and errors")] = False,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the final result as JSON on stdout")
    ] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colored output")] = False,
) -> None:
    """maiass - release automation for git repositories."""
    console = configure_logging(verbosity=verbose, quiet=quiet, no_color=no_color)
    set_output_context(OutputContext(console=console, json_mode=json_output))


app.command()(release)
app.command()(commit)
app.command()(version)
app.command("git-info")(git_info)
app.command()(init)
app.command()(config)


if __name__ == "__main__":
    app()
