"""Location dataset CLI commands."""

import json

import typer

from drsync.config import get_settings
from drsync.locations import LocationDirectory

locations_app = typer.Typer(
    name="locations",
    help="Browse the polling-station dataset.",
    no_args_is_help=True,
)


@locations_app.command(name="list")
def list_locations(
    codes: list[str] = typer.Argument(
        None,
        help="Parent codes: DISTRICT [COUNTY [SUB_COUNTY [PARISH]]]",
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """List the children of a location (districts when no codes are given)."""
    settings = get_settings()
    if settings.locations_path is None:
        typer.echo("No location dataset configured (set DRSYNC_LOCATIONS_FILE)", err=True)
        raise typer.Exit(1)

    codes = codes or []
    if len(codes) > 4:
        typer.echo("At most four parent codes are accepted", err=True)
        raise typer.Exit(1)

    directory = LocationDirectory.from_file(settings.locations_path)
    lookups = [
        directory.districts,
        directory.counties,
        directory.sub_counties,
        directory.parishes,
        directory.polling_stations,
    ]
    levels = lookups[len(codes)](*codes)

    if output_json:
        typer.echo(json.dumps([{"code": lv.code, "name": lv.name} for lv in levels]))
        return

    for level in levels:
        typer.echo(f"{level.code}  {level.name}")
