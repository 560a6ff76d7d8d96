"""Sync module for the submission store and the collection service client."""

from drsync.sync.client import (
    ImageUploadResult,
    RemoteError,
    RemoteSubmissionClient,
    SubmitResult,
)
from drsync.sync.models import LocationLevel, LocationPath, Submission, SubmissionStatus
from drsync.sync.store import SubmissionStore

__all__ = [
    "ImageUploadResult",
    "LocationLevel",
    "LocationPath",
    "RemoteError",
    "RemoteSubmissionClient",
    "Submission",
    "SubmissionStatus",
    "SubmissionStore",
    "SubmitResult",
]
