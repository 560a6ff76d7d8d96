"""Sync coordinator driving queued submissions through the two-phase upload."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

from drsync.config import Settings
from drsync.logging import (
    log_state_change,
    log_submission_created,
    log_upload_failed,
    log_upload_success,
    state_logger,
    sync_logger,
)
from drsync.monitor import ConnectivityMonitor
from drsync.sync import (
    LocationPath,
    RemoteSubmissionClient,
    Submission,
    SubmissionStatus,
    SubmissionStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DrainReport:
    """Outcome of one drain pass."""

    trigger: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attempted: list[str] = field(default_factory=list)
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    # Deleted by the user while their upload was in flight
    dropped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger,
            "started_at": self.started_at.isoformat(),
            "attempted": len(self.attempted),
            "sent": len(self.sent),
            "failed": len(self.failed),
            "dropped": len(self.dropped),
        }


class SyncCoordinator:
    """Owns the retry policy for queued submissions.

    A drain is requested on start (if online), on every offline -> online
    edge, after a submission is created while online, and by sync_now().
    Requests are consumed by a single worker task, and a request that
    arrives while a drain is pending or running is dropped. Records are
    uploaded one at a time, oldest first.

    A record whose photo was already uploaded in an earlier attempt keeps
    its remote_image_url and skips straight to the metadata submission.

    Each record is claimed (moved to 'uploading') in one store transaction
    that first checks it is still pending or failed, so coordinators in
    different processes sharing the same store never upload the same
    record concurrently. A record deleted while its upload is in flight is
    abandoned before the next remote call.

    Example:
        coordinator = SyncCoordinator.from_settings(settings)
        await coordinator.start()
        coordinator.create_submission(location, "/path/to/photo.jpg")
        # ... run until stopped ...
        await coordinator.stop()
    """

    def __init__(
        self,
        store: SubmissionStore,
        monitor: ConnectivityMonitor,
        client: RemoteSubmissionClient,
        call_timeout: float = 60.0,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Durable submission store
            monitor: Reachability monitor driving reconnect drains
            client: Client for the collection service
            call_timeout: Upper bound in seconds for each read/upload/submit step
        """
        self.store = store
        self.monitor = monitor
        self.client = client
        self.call_timeout = call_timeout
        # A live drain holds a record for at most three bounded steps
        self.stale_after = timedelta(seconds=4 * call_timeout)

        self._log = sync_logger()
        self._state_log = state_logger()

        self._triggers: asyncio.Queue[str] = asyncio.Queue()
        self._draining = False
        self._drain_requested = False
        self._running = False
        self._worker_task: asyncio.Task | None = None
        self._last_drain: DrainReport | None = None
        self._change_callbacks: list[Callable[[list[Submission]], None]] = []

    @classmethod
    def from_settings(cls, config: Settings) -> "SyncCoordinator":
        """Wire the default store, client and monitor from settings."""
        store = SubmissionStore(config.store_path)
        client = RemoteSubmissionClient(
            server_url=config.server_url,
            timeout=config.request_timeout,
        )
        monitor = ConnectivityMonitor(
            lambda: client.check_server(timeout=config.probe_timeout),
            interval=config.probe_interval,
        )
        return cls(store, monitor, client, call_timeout=config.call_timeout)

    # --- State queries ---

    @property
    def submissions(self) -> list[Submission]:
        """Copies of all submissions, newest first, read from the store."""
        return self.store.snapshot()

    @property
    def pending_count(self) -> int:
        """Number of submissions not yet settled (pending or uploading)."""
        return sum(
            1
            for s in self.store.snapshot()
            if s.status in (SubmissionStatus.PENDING, SubmissionStatus.UPLOADING)
        )

    @property
    def is_syncing(self) -> bool:
        return self._draining

    @property
    def is_online(self) -> bool:
        return self.monitor.currently_online()

    @property
    def last_drain(self) -> DrainReport | None:
        return self._last_drain

    def on_change(self, callback: Callable[[list[Submission]], None]) -> None:
        """Register callback fired with the new snapshot after each store mutation.

        Args:
            callback: Function called with copies of the submissions, newest
                first; changing them does not touch the store
        """
        self._change_callbacks.append(callback)

    def _notify_change(self) -> None:
        snapshot = self.store.snapshot()
        for callback in self._change_callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error("Change callback failed: %s", e, exc_info=True)

    def get_status(self) -> dict[str, Any]:
        """Get current coordinator status.

        Returns:
            Dictionary with connectivity, sync state and store counts
        """
        stats = self.store.get_stats()
        return {
            "online": self.is_online,
            "syncing": self.is_syncing,
            "running": self._running,
            "pending_count": self.pending_count,
            "submissions": stats,
            "last_drain": self._last_drain.to_dict() if self._last_drain else None,
        }

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start the drain worker and the connectivity monitor.

        Submissions left in 'uploading' by an interrupted run are marked
        failed so the next drain retries them. A record only counts as
        interrupted once its last attempt is older than stale_after, so an
        upload still running in another process is left alone.
        """
        if self._running:
            return

        self._running = True
        self._recover_interrupted()

        self.monitor.on_transition(self._handle_transition)
        self._worker_task = asyncio.create_task(self._drain_worker())
        await self.monitor.start()

        self._log.info(
            "Sync coordinator started, online=%s, submissions=%d",
            self.is_online,
            len(self.store.snapshot()),
        )
        if self.is_online:
            self._request_drain("startup")

    def _is_interrupted(self, record: Submission) -> bool:
        if record.status != SubmissionStatus.UPLOADING:
            return False
        if record.last_attempt is None:
            return True
        return datetime.now(timezone.utc) - record.last_attempt > self.stale_after

    def _recover_interrupted(self) -> None:
        for record in self.store.snapshot():
            if self._is_interrupted(record):
                self._fail(
                    record,
                    "interrupted",
                    "Upload interrupted before completion",
                    only_if=self._is_interrupted,
                )

    async def stop(self) -> None:
        """Stop the worker and monitor, then close the store and client.

        An in-flight drain is cancelled; its current record stays
        'uploading' until a later start() or drain finds it stale.
        """
        self._running = False
        await self.monitor.stop()

        if self._worker_task and not self._worker_task.done():
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
        self._worker_task = None

        await self.client.close()
        self.store.close()
        self._log.info("Sync coordinator stopped")

    async def join(self) -> None:
        """Wait until every requested drain has finished."""
        await self._triggers.join()

    # --- Commands ---

    def create_submission(self, location: LocationPath, image_path: str | Path) -> Submission:
        """Queue a new submission and request a drain if online.

        Args:
            location: Complete five-level location selection
            image_path: Path to the locally stored photo

        Returns:
            The stored submission in 'pending' state
        """
        submission = Submission(location=location, image_path=str(image_path))
        self.store.append(submission)

        online = self.is_online
        log_submission_created(
            self._log, submission.id, location.polling_station.code, online
        )
        self._notify_change()

        if online and self._running:
            self._request_drain("created")
        return submission

    def delete_submission(self, submission_id: str, remove_image: bool = False) -> bool:
        """Delete a submission at the user's request.

        Args:
            submission_id: Submission ID
            remove_image: Also delete the local photo file

        Returns:
            True if the submission existed
        """
        record = self.store.get(submission_id)
        if record is None or not self.store.delete(submission_id):
            return False

        if remove_image:
            record.image_file.unlink(missing_ok=True)

        self._log.info(
            "Submission deleted: submission_id=%s, status=%s",
            submission_id,
            record.status.value,
        )
        self._notify_change()
        return True

    def sync_now(self) -> bool:
        """Manually request a drain.

        Returns:
            True if a drain was scheduled, False if one is already pending
            or running, the device is offline, or the coordinator is stopped
        """
        if not self._running or not self.is_online:
            return False
        return self._request_drain("manual")

    # --- Triggers ---

    def _handle_transition(self, online: bool) -> None:
        if online:
            self._request_drain("reconnect")
        else:
            self._log.info("Went offline; in-flight uploads continue until they fail")

    def _request_drain(self, trigger: str) -> bool:
        if self._draining or self._drain_requested:
            self._log.debug("Drain already in progress, dropping trigger=%s", trigger)
            return False
        self._drain_requested = True
        self._triggers.put_nowait(trigger)
        return True

    async def _drain_worker(self) -> None:
        """Background worker running requested drains one at a time."""
        while True:
            trigger = await self._triggers.get()
            try:
                self._drain_requested = False
                await self.drain(trigger)
            except Exception as e:
                self._log.error("Drain worker error: %s", e, exc_info=True)
            finally:
                self._triggers.task_done()

    # --- Drain ---


    async def drain(self, trigger: str = "manual") -> DrainReport | None:
        """Attempt every pending or failed submission once, oldest first.

        Args:
            trigger: What requested this drain (for logs and the report)

        Returns:
            DrainReport, or None if another drain is running or the device
            is offline
        """
        if self._draining:
            self._log.debug("Drain skipped, another drain is running: trigger=%s", trigger)
            return None
        if not self.is_online:
            self._log.debug("Drain skipped, offline: trigger=%s", trigger)
            return None

        self._draining = True
        report = DrainReport(trigger=trigger)
        try:
            self._recover_interrupted()
            eligible = [s.id for s in reversed(self.store.snapshot()) if s.status.is_eligible]
            self._log.info("Drain started: trigger=%s, eligible=%d", trigger, len(eligible))

            for record_id in eligible:
                record = self._claim(record_id)
                if record is None:
                    # Deleted, or claimed by another process since selection
                    continue

                report.attempted.append(record_id)
                try:
                    outcome = await self._process(record)
                except Exception as e:
                    self._log.error(
                        "Unexpected error processing submission_id=%s: %s",
                        record_id, e, exc_info=True,
                    )
                    outcome = self._fail(record, "unexpected", f"Unexpected error: {e}")

                if outcome is None:
                    report.dropped.append(record_id)
                elif outcome:
                    report.sent.append(record_id)
                else:
                    report.failed.append(record_id)
        finally:
            self._draining = False

        self._last_drain = report
        self._log.info(
            "Drain finished: trigger=%s, sent=%d, failed=%d, dropped=%d",
            trigger, len(report.sent), len(report.failed), len(report.dropped),
        )
        return report

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.call_timeout)

    def _claim(self, record_id: str) -> Submission | None:
        def mark_uploading(s: Submission) -> None:
            s.status = SubmissionStatus.UPLOADING
            s.attempts += 1
            s.last_attempt = datetime.now(timezone.utc)

        return self._transition(
            record_id, mark_uploading, only_if=lambda s: s.status.is_eligible
        )

    def _still_queued(self, record_id: str, next_phase: str) -> bool:
        if self.store.get(record_id) is not None:
            return True
        self._log.info(
            "Submission deleted during upload, stopping before %s: submission_id=%s",
            next_phase, record_id,
        )
        return False

    async def _process(self, record: Submission) -> bool | None:
        """Run the two-phase upload for one claimed submission.

        Returns:
            True if the submission reached 'sent', False if it failed, None
            if it was deleted before the upload finished
        """
        started = time.monotonic()
        record_id = record.id

        # Phase A: image upload, skipped when an earlier attempt already got a URL
        image_url = record.remote_image_url
        if image_url is None:
            try:
                data = await self._bounded(asyncio.to_thread(record.image_file.read_bytes))
            except (OSError, asyncio.TimeoutError) as e:
                return self._fail(
                    record, "read_image", f"Could not read image {record.image_path}: {e}"
                )
            if not self._still_queued(record_id, "upload_image"):
                return None

            try:
                result = await self._bounded(
                    self.client.upload_image(data, record.image_file.name)
                )
            except asyncio.TimeoutError:
                return self._fail(
                    record, "upload_image", f"Image upload timed out after {self.call_timeout}s"
                )
            if not result.success or not result.url:
                return self._fail(record, "upload_image", result.error or "Image upload failed")

            image_url = result.url
            updated = self._set_remote_image_url(record_id, image_url)
            if updated is not None:
                record = updated

        # Phase B: metadata
        if not self._still_queued(record_id, "submit_metadata"):
            return None
        try:
            submit = await self._bounded(self.client.submit_metadata(record.to_metadata()))
        except asyncio.TimeoutError:
            return self._fail(
                record, "submit_metadata", f"Submission timed out after {self.call_timeout}s"
            )
        if not submit.success:
            return self._fail(record, "submit_metadata", submit.error or "Submission failed")

        def mark_sent(s: Submission) -> None:
            s.status = SubmissionStatus.SENT
            s.error_message = None

        if self._transition(record_id, mark_sent) is None:
            self._log.info(
                "Submission deleted after its metadata was accepted: submission_id=%s",
                record_id,
            )
            return None
        log_upload_success(
            self._log, record_id, image_url, (time.monotonic() - started) * 1000.0
        )
        return True

    def _set_remote_image_url(self, record_id: str, url: str) -> Submission | None:
        def apply(s: Submission) -> None:
            if s.remote_image_url is None:
                s.remote_image_url = url

        updated = self.store.update(record_id, apply)
        if updated is not None:
            self._notify_change()
        return updated

    def _transition(
        self,
        record_id: str,
        mutator: Callable[[Submission], None],
        only_if: Callable[[Submission], bool] | None = None,
    ) -> Submission | None:
        old_states: list[str] = []

        def apply(s: Submission) -> None:
            old_states.append(s.status.value)
            mutator(s)

        updated = self.store.update(record_id, apply, only_if=only_if)
        if updated is None:
            return None
        log_state_change(self._state_log, record_id, old_states[0], updated.status.value)
        self._notify_change()
        return updated

    def _fail(
        self,
        record: Submission,
        phase: str,
        error: str,
        only_if: Callable[[Submission], bool] | None = None,
    ) -> bool:
        def mark_failed(s: Submission) -> None:
            s.status = SubmissionStatus.FAILED
            s.error_message = error

        updated = self._transition(record.id, mark_failed, only_if=only_if)
        if updated is not None:
            log_upload_failed(self._log, record.id, phase, error, updated.attempts)
        return False
