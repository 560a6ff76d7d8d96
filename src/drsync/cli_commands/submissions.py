"""Submission CLI commands: submit, list, delete, sync."""

import asyncio
import json
from pathlib import Path

import typer

from drsync.capture import PhotoError, save_photo
from drsync.config import Settings, get_settings
from drsync.engine import SyncCoordinator
from drsync.locations import LocationDirectory, LocationNotFoundError
from drsync.sync import LocationLevel, LocationPath, Submission, SubmissionStore


def _output(data: dict | list, as_json: bool, human_message: str) -> None:
    """Output data as JSON or human-readable format."""
    if as_json:
        typer.echo(json.dumps(data))
    else:
        typer.echo(human_message)


def _summary(submission: Submission) -> dict:
    return {
        "id": submission.id,
        "status": submission.status.value,
        "polling_station": submission.location.polling_station.name,
        "polling_station_code": submission.location.polling_station.code,
        "created_at": submission.created_at.isoformat(),
        "remote_image_url": submission.remote_image_url,
        "error_message": submission.error_message,
    }


def _build_location(
    settings: Settings,
    codes: tuple[str, str, str, str, str],
    names: tuple[str | None, ...],
) -> LocationPath:
    """Resolve codes against the dataset, or pair them with the given names."""
    if settings.locations_path is not None:
        directory = LocationDirectory.from_file(settings.locations_path)
        return directory.resolve(*codes)

    levels = [LocationLevel(code, name or code) for code, name in zip(codes, names)]
    return LocationPath(*levels)


def submit_command(
    image: Path = typer.Option(..., "--image", "-i", help="Photo of the DR form"),
    district: str = typer.Option(..., "--district", help="District code"),
    county: str = typer.Option(..., "--county", help="County code"),
    sub_county: str = typer.Option(..., "--sub-county", help="Sub-county code"),
    parish: str = typer.Option(..., "--parish", help="Parish code"),
    station: str = typer.Option(..., "--station", help="Polling station code"),
    district_name: str = typer.Option(None, "--district-name"),
    county_name: str = typer.Option(None, "--county-name"),
    sub_county_name: str = typer.Option(None, "--sub-county-name"),
    parish_name: str = typer.Option(None, "--parish-name"),
    station_name: str = typer.Option(None, "--station-name"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Queue a DR form photo and upload it if the server is reachable.

    Names are looked up in the configured location dataset
    (DRSYNC_LOCATIONS_FILE); without one, the --*-name options are used and
    default to the codes.
    """
    settings = get_settings()

    try:
        location = _build_location(
            settings,
            (district, county, sub_county, parish, station),
            (district_name, county_name, sub_county_name, parish_name, station_name),
        )
    except LocationNotFoundError as e:
        _output({"status": "error", "message": e.args[0]}, output_json, str(e.args[0]))
        raise typer.Exit(1)

    try:
        photo = save_photo(image, settings.images_path, quality=settings.jpeg_quality)
    except PhotoError as e:
        _output({"status": "error", "message": str(e)}, output_json, str(e))
        raise typer.Exit(1)

    async def _submit() -> tuple[Submission, bool]:
        coordinator = SyncCoordinator.from_settings(settings)
        await coordinator.start()
        try:
            submission = coordinator.create_submission(location, photo)
            online = coordinator.is_online
            await coordinator.join()
            return coordinator.store.get(submission.id) or submission, online
        finally:
            await coordinator.stop()

    submission, online = asyncio.run(_submit())

    if online:
        message = f"Submission {submission.id} saved: {submission.status.value}"
        if submission.error_message:
            message += f" ({submission.error_message})"
    else:
        message = f"Submission {submission.id} cached. Will upload when online."
    _output(_summary(submission), output_json, message)


def list_command(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """List local submissions, newest first."""
    settings = get_settings()
    store = SubmissionStore(settings.store_path)
    try:
        submissions = store.snapshot()
    finally:
        store.close()

    if output_json:
        typer.echo(json.dumps([_summary(s) for s in submissions]))
        return

    if not submissions:
        typer.echo("No submissions yet")
        return

    for s in submissions:
        typer.echo(
            f"{s.id}  {s.status.value:<9}  {s.created_at:%Y-%m-%d %H:%M}  "
            f"{s.location.district.name} / {s.location.polling_station.name}"
        )
        if s.error_message:
            typer.echo(f"    error: {s.error_message}")


def delete_command(
    submission_id: str = typer.Argument(..., help="Submission ID"),
    keep_image: bool = typer.Option(
        False, "--keep-image", help="Keep the local photo file"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Delete a local submission."""
    settings = get_settings()
    coordinator = SyncCoordinator.from_settings(settings)
    try:
        deleted = coordinator.delete_submission(submission_id, remove_image=not keep_image)
    finally:
        asyncio.run(coordinator.stop())

    if not deleted:
        _output(
            {"status": "not_found", "id": submission_id},
            output_json,
            f"No submission with id {submission_id}",
        )
        raise typer.Exit(1)

    _output({"status": "deleted", "id": submission_id}, output_json, "Submission deleted.")


def sync_command(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Upload every pending or failed submission now."""
    settings = get_settings()

    async def _sync() -> dict:
        coordinator = SyncCoordinator.from_settings(settings)
        await coordinator.start()
        try:
            await coordinator.join()
            if not coordinator.is_online:
                return {"status": "offline"}
            report = coordinator.last_drain
            return {"status": "done", **(report.to_dict() if report else {"attempted": 0})}
        finally:
            await coordinator.stop()

    result = asyncio.run(_sync())

    if result["status"] == "offline":
        _output(result, output_json, "Server unreachable; nothing uploaded.")
        raise typer.Exit(1)

    _output(
        result,
        output_json,
        f"Attempted {result.get('attempted', 0)}: "
        f"{result.get('sent', 0)} sent, {result.get('failed', 0)} failed",
    )
