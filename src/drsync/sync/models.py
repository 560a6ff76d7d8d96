"""Submission records and their location hierarchy."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


class SubmissionStatus(str, Enum):
    """Upload lifecycle of a submission.

    pending -> uploading -> sent | failed, and failed -> uploading on retry.
    """

    PENDING = "pending"
    UPLOADING = "uploading"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_eligible(self) -> bool:
        """Whether a drain should pick this record up."""
        return self in (SubmissionStatus.PENDING, SubmissionStatus.FAILED)


@dataclass(frozen=True)
class LocationLevel:
    """One level of the location hierarchy (code plus display name)."""

    code: str
    name: str


@dataclass(frozen=True)
class LocationPath:
    """District -> county -> sub-county -> parish -> polling station."""

    district: LocationLevel
    county: LocationLevel
    sub_county: LocationLevel
    parish: LocationLevel
    polling_station: LocationLevel

    def to_dict(self) -> dict[str, str]:
        return {
            "district_code": self.district.code,
            "district_name": self.district.name,
            "county_code": self.county.code,
            "county_name": self.county.name,
            "sub_county_code": self.sub_county.code,
            "sub_county_name": self.sub_county.name,
            "parish_code": self.parish.code,
            "parish_name": self.parish.name,
            "polling_station_code": self.polling_station.code,
            "polling_station_name": self.polling_station.name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocationPath":
        return cls(
            district=LocationLevel(data["district_code"], data["district_name"]),
            county=LocationLevel(data["county_code"], data["county_name"]),
            sub_county=LocationLevel(data["sub_county_code"], data["sub_county_name"]),
            parish=LocationLevel(data["parish_code"], data["parish_name"]),
            polling_station=LocationLevel(
                data["polling_station_code"], data["polling_station_name"]
            ),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Submission:
    """A location selection paired with a locally captured photo.

    Only status, remote_image_url, error_message, attempts and last_attempt
    change after creation, and only through the coordinator.
    """

    location: LocationPath
    image_path: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: SubmissionStatus = SubmissionStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    remote_image_url: str | None = None
    error_message: str | None = None
    attempts: int = 0
    last_attempt: datetime | None = None

    @property
    def image_file(self) -> Path:
        return Path(self.image_path)

    def to_metadata(self) -> dict[str, str]:
        """Build the JSON body for the metadata submission endpoint.

        Raises:
            ValueError: If the image has not been uploaded yet.
        """
        if not self.remote_image_url:
            raise ValueError(f"submission {self.id} has no remote image url")
        loc = self.location
        return {
            "id": self.id,
            "districtCode": loc.district.code,
            "districtName": loc.district.name,
            "countyCode": loc.county.code,
            "countyName": loc.county.name,
            "subCountyCode": loc.sub_county.code,
            "subCountyName": loc.sub_county.name,
            "parishCode": loc.parish.code,
            "parishName": loc.parish.name,
            "pollingStationCode": loc.polling_station.code,
            "pollingStationName": loc.polling_station.name,
            "imageUrl": self.remote_image_url,
            "timestamp": self.created_at.isoformat(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the local snapshot."""
        return {
            "id": self.id,
            **self.location.to_dict(),
            "image_path": self.image_path,
            "remote_image_url": self.remote_image_url,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "error_message": self.error_message,
            "attempts": self.attempts,
            "last_attempt": self.last_attempt.isoformat() if self.last_attempt else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Submission":
        return cls(
            id=data["id"],
            location=LocationPath.from_dict(data),
            image_path=data["image_path"],
            remote_image_url=data.get("remote_image_url"),
            status=SubmissionStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            error_message=data.get("error_message"),
            attempts=data.get("attempts", 0),
            last_attempt=(
                datetime.fromisoformat(data["last_attempt"])
                if data.get("last_attempt")
                else None
            ),
        )
