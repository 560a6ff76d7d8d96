"""Tests for submission models."""

from datetime import datetime, timezone

import pytest

from drsync.sync import Submission, SubmissionStatus


class TestSubmission:
    def test_defaults(self, location):
        submission = Submission(location=location, image_path="/tmp/a.jpg")

        assert submission.status == SubmissionStatus.PENDING
        assert submission.remote_image_url is None
        assert submission.error_message is None
        assert submission.attempts == 0
        assert submission.created_at.tzinfo is not None
        assert len(submission.id) == 36

    def test_ids_are_unique(self, location):
        ids = {Submission(location=location, image_path="/tmp/a.jpg").id for _ in range(50)}
        assert len(ids) == 50

    def test_metadata_wire_fields(self, location):
        created = datetime(2026, 1, 15, 8, 30, tzinfo=timezone.utc)
        submission = Submission(
            location=location,
            image_path="/tmp/a.jpg",
            id="sub-1",
            created_at=created,
            remote_image_url="https://cdn/a.jpg",
        )

        assert submission.to_metadata() == {
            "id": "sub-1",
            "districtCode": "001",
            "districtName": "KALANGALA",
            "countyCode": "001",
            "countyName": "BUJUMBA",
            "subCountyCode": "002",
            "subCountyName": "MUGOYE",
            "parishCode": "003",
            "parishName": "BUGOMA",
            "pollingStationCode": "01",
            "pollingStationName": "BUGOMA P/S",
            "imageUrl": "https://cdn/a.jpg",
            "timestamp": "2026-01-15T08:30:00+00:00",
        }

    def test_metadata_requires_remote_url(self, location):
        submission = Submission(location=location, image_path="/tmp/a.jpg")

        with pytest.raises(ValueError):
            submission.to_metadata()

    def test_dict_round_trip(self, location):
        submission = Submission(
            location=location,
            image_path="/tmp/a.jpg",
            status=SubmissionStatus.FAILED,
            error_message="Timeout: read",
            attempts=2,
            last_attempt=datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc),
        )

        assert Submission.from_dict(submission.to_dict()) == submission


class TestSubmissionStatus:
    @pytest.mark.parametrize(
        "status,eligible",
        [
            (SubmissionStatus.PENDING, True),
            (SubmissionStatus.FAILED, True),
            (SubmissionStatus.UPLOADING, False),
            (SubmissionStatus.SENT, False),
        ],
    )
    def test_eligibility(self, status, eligible):
        assert status.is_eligible is eligible

    def test_values(self):
        assert [s.value for s in SubmissionStatus] == ["pending", "uploading", "sent", "failed"]
