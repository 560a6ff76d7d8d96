"""Configuration CLI commands."""

import json

import typer

from drsync.config import get_settings

config_app = typer.Typer(
    name="config",
    help="Configuration management - view settings.",
    no_args_is_help=True,
)


@config_app.command()
def show(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show current configuration."""
    settings = get_settings()

    config_data = {
        "server_url": settings.server_url,
        "request_timeout": settings.request_timeout,
        "call_timeout": settings.call_timeout,
        "probe_interval": settings.probe_interval,
        "probe_timeout": settings.probe_timeout,
        "jpeg_quality": settings.jpeg_quality,
        "data_dir": str(settings.data_path),
        "locations_file": str(settings.locations_path) if settings.locations_path else None,
        "log_level": settings.log_level,
    }

    if output_json:
        typer.echo(json.dumps(config_data, indent=2))
        return

    typer.echo("")
    typer.echo("drsync Configuration")
    typer.echo("--------------------")
    typer.echo(f"Server URL: {settings.server_url}")
    typer.echo(f"Request timeout: {settings.request_timeout}s")
    typer.echo(f"Call timeout: {settings.call_timeout}s")
    typer.echo(f"Probe interval: {settings.probe_interval}s")
    typer.echo(f"JPEG quality: {settings.jpeg_quality}")
    typer.echo(f"Data directory: {settings.data_path}")
    typer.echo(f"Locations file: {config_data['locations_file'] or '(none)'}")
    typer.echo(f"Log level: {settings.log_level}")
    typer.echo("")
    typer.echo("Set values using environment variables with DRSYNC_ prefix")
    typer.echo("Example: DRSYNC_SERVER_URL=https://drm.example.org")
