"""Shared fixtures for drsync tests."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from drsync.engine import SyncCoordinator
from drsync.monitor import ConnectivityMonitor
from drsync.sync import (
    ImageUploadResult,
    LocationLevel,
    LocationPath,
    RemoteSubmissionClient,
    SubmissionStore,
    SubmitResult,
)

TEST_IMAGE_URL = "https://cdn/test.jpg"


class FakeProbe:
    """Reachability probe whose answer the test controls."""

    def __init__(self, online: bool = False) -> None:
        self.online = online
        self.calls = 0

    async def __call__(self) -> bool:
        self.calls += 1
        return self.online


@pytest.fixture
def location() -> LocationPath:
    return LocationPath(
        district=LocationLevel("001", "KALANGALA"),
        county=LocationLevel("001", "BUJUMBA"),
        sub_county=LocationLevel("002", "MUGOYE"),
        parish=LocationLevel("003", "BUGOMA"),
        polling_station=LocationLevel("01", "BUGOMA P/S"),
    )


@pytest.fixture
def make_image(tmp_path: Path):
    """Factory writing a small fake photo file."""

    def _make(name: str = "photo.jpg", data: bytes = b"\xff\xd8fake-jpeg\xff\xd9") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def store(tmp_path: Path):
    store = SubmissionStore(tmp_path / "submissions.db")
    yield store
    store.close()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe(online=False)


@pytest.fixture
def monitor(probe: FakeProbe) -> ConnectivityMonitor:
    # Long interval: tests drive edges through monitor.report()
    return ConnectivityMonitor(probe, interval=3600.0)


@pytest.fixture
def client() -> AsyncMock:
    client = AsyncMock(spec=RemoteSubmissionClient)
    client.upload_image.return_value = ImageUploadResult(
        success=True, url=TEST_IMAGE_URL, status_code=200
    )
    client.submit_metadata.return_value = SubmitResult(success=True, status_code=201)
    return client


@pytest.fixture
def coordinator(store, monitor, client) -> SyncCoordinator:
    return SyncCoordinator(store, monitor, client, call_timeout=5.0)
