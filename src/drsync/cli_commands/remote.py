"""Read-side CLI commands against the collection service."""

import asyncio
import json

import typer

from drsync.config import get_settings
from drsync.sync import RemoteError, RemoteSubmissionClient

remote_app = typer.Typer(
    name="remote",
    help="Inspect submissions stored on the server.",
    no_args_is_help=True,
)


@remote_app.command(name="list")
def list_remote(
    district: str = typer.Option(None, "--district", help="Filter by district code"),
    station: str = typer.Option(None, "--station", help="Filter by polling station code"),
    limit: int = typer.Option(50, "--limit", help="Maximum rows"),
    offset: int = typer.Option(0, "--offset"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """List submissions received by the server."""
    settings = get_settings()

    async def _list() -> list[dict]:
        async with RemoteSubmissionClient(settings.server_url, settings.request_timeout) as client:
            return await client.list_submissions(
                district_code=district,
                polling_station_code=station,
                limit=limit,
                offset=offset,
            )

    try:
        rows = asyncio.run(_list())
    except RemoteError as e:
        typer.echo(f"Request failed: {e}", err=True)
        raise typer.Exit(1)

    if output_json:
        typer.echo(json.dumps(rows))
        return

    for row in rows:
        typer.echo(
            f"{row.get('id')}  {row.get('districtName')} / "
            f"{row.get('pollingStationName')}  {row.get('imageUrl')}"
        )
    typer.echo(f"{len(rows)} submission(s)")


@remote_app.command()
def stats(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Show submission totals per district."""
    settings = get_settings()

    async def _stats() -> dict:
        async with RemoteSubmissionClient(settings.server_url, settings.request_timeout) as client:
            return await client.get_stats()

    try:
        data = asyncio.run(_stats())
    except RemoteError as e:
        typer.echo(f"Request failed: {e}", err=True)
        raise typer.Exit(1)

    if output_json:
        typer.echo(json.dumps(data))
        return

    typer.echo(f"Total: {data['total']}")
    for row in data["byDistrict"]:
        typer.echo(f"  {row.get('districtName')} ({row.get('districtCode')}): {row.get('count')}")
