"""drsync CLI - command-line interface for the submission agent."""

import typer

from drsync import __version__
from drsync.cli_commands.agent import run_command, status_command
from drsync.cli_commands.config import config_app
from drsync.cli_commands.locations import locations_app
from drsync.cli_commands.remote import remote_app
from drsync.cli_commands.submissions import (
    delete_command,
    list_command,
    submit_command,
    sync_command,
)

app = typer.Typer(
    name="drsync",
    help="drsync - offline-first DR form submissions.",
    no_args_is_help=True,
)

# Register subcommands
app.add_typer(config_app, name="config")
app.add_typer(locations_app, name="locations")
app.add_typer(remote_app, name="remote")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"drsync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """drsync - queue DR form photos offline and upload them when online."""
    pass


app.command(name="submit")(submit_command)
app.command(name="list")(list_command)
app.command(name="delete")(delete_command)
app.command(name="sync")(sync_command)
app.command(name="status")(status_command)
app.command(name="run")(run_command)


if __name__ == "__main__":
    app()
