"""Agent CLI commands: run the long-lived sync agent and show status."""

import asyncio
import json
import signal

import typer

from drsync.config import get_settings
from drsync.engine import SyncCoordinator
from drsync.logging import setup_logging
from drsync.sync import RemoteSubmissionClient, SubmissionStore


def run_command() -> None:
    """Run the sync agent until interrupted.

    Uploads queued submissions on startup and whenever the server becomes
    reachable again. Press Ctrl+C to stop.
    """
    settings = get_settings()
    setup_logging(settings.log_level, log_file=settings.log_file)

    async def _run() -> None:
        coordinator = SyncCoordinator.from_settings(settings)
        stop_event = asyncio.Event()

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop_event.set)

        await coordinator.start()
        typer.echo(
            f"drsync agent started (server: {settings.server_url}). Press Ctrl+C to stop.",
            err=True,
        )
        try:
            await stop_event.wait()
        finally:
            await coordinator.stop()

    asyncio.run(_run())


def status_command(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show queue counts and server reachability."""
    settings = get_settings()

    store = SubmissionStore(settings.store_path)
    try:
        stats = store.get_stats()
    finally:
        store.close()

    async def _probe() -> bool:
        async with RemoteSubmissionClient(settings.server_url) as client:
            return await client.check_server(timeout=settings.probe_timeout)

    online = asyncio.run(_probe())

    status_data = {
        "online": online,
        "server_url": settings.server_url,
        "queue": stats,
    }

    if output_json:
        typer.echo(json.dumps(status_data))
        return

    typer.echo("")
    typer.echo("drsync Status")
    typer.echo("-------------")
    typer.echo(f"Server: {settings.server_url} ({'online' if online else 'offline'})")
    typer.echo(f"Pending: {stats['pending'] + stats['uploading']}")
    typer.echo(f"Sent: {stats['sent']}")
    if stats["failed"] > 0:
        typer.echo(f"Failed: {stats['failed']} (run 'drsync sync' to retry)")
    typer.echo("")
