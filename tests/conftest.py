"""Test configuration and fixtures for signvideo.

This module provides:
- Pytest configuration (markers)
- Fake collaborators (processor, broadcaster)
- Function-scoped fixtures (repository, worker, settings, API client)
"""

import asyncio
import socket
from collections.abc import Callable, Iterator
from typing import override

import pytest
from fastapi.testclient import TestClient

from signvideo.app import create_app
from signvideo.common.job_repository_impl import InMemoryJobRepository
from signvideo.common.schema_job_record import JobRecord
from signvideo.common.video_processor import VideoProcessor
from signvideo.config import Settings
from signvideo.plugins.stock_video import StockVideoConfig, StockVideoProcessor
from signvideo.utils.events import BroadcasterBase
from signvideo.worker import Worker

FAKE_VIDEO_URL = "https://videos.test/sign/clip.mp4"


# ============================================================================
# Pytest Configuration
# ============================================================================


def is_mqtt_running(host: str = "localhost", port: int = 1883, timeout: float = 2) -> bool:
    """Check if an MQTT broker is reachable on host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def pytest_runtest_setup(item):
    """Skip MQTT tests when no broker is running."""
    if item.get_closest_marker("requires_mqtt") and not is_mqtt_running():
        pytest.skip("MQTT broker not running on localhost:1883")


# ============================================================================
# Fake Collaborators
# ============================================================================


class FakeProcessor(VideoProcessor):
    """Processor with scripted behaviour.

    Args:
        url: URL returned on success
        error: Exception raised instead of returning a URL
        gate: If given, run() blocks until the event is set
    """

    def __init__(
        self,
        url: str = FAKE_VIDEO_URL,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.url: str = url
        self.error: Exception | None = error
        self.gate: asyncio.Event | None = gate
        self.calls: list[str] = []

    @property
    @override
    def processor_type(self) -> str:
        return "fake"

    @override
    async def run(self, text: str) -> str:
        self.calls.append(text)
        if self.gate is not None:
            _ = await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.url


class RecordingBroadcaster(BroadcasterBase):
    """Broadcaster that keeps every published job record."""

    def __init__(self) -> None:
        self.connected: bool = True
        self.topic_prefix: str = "test/jobs"
        self.events: list[tuple[str, str]] = []
        self.records: list[JobRecord] = []

    @override
    def publish_event(self, *, topic: str, payload: str, qos: int = 1) -> bool:
        self.events.append((topic, payload))
        return True

    @override
    def publish_job(self, record: JobRecord) -> bool:
        self.records.append(record)
        return super().publish_job(record)


# ============================================================================
# Function-Scoped Fixtures (Run Per Test)
# ============================================================================


@pytest.fixture
def job_repository() -> InMemoryJobRepository:
    """Provide a fresh in-memory job repository."""
    return InMemoryJobRepository()


@pytest.fixture
def make_processor() -> Callable[..., FakeProcessor]:
    """Factory for FakeProcessor instances."""

    def _make(**kwargs) -> FakeProcessor:
        return FakeProcessor(**kwargs)

    return _make


@pytest.fixture
def fake_processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def worker(job_repository, fake_processor, broadcaster) -> Worker:
    """Provide a Worker with no dispatch delay."""
    return Worker(
        repository=job_repository,
        processor=fake_processor,
        broadcaster=broadcaster,
        dispatch_delay=0,
    )


@pytest.fixture
def settings() -> Settings:
    """Fast settings for API tests."""
    return Settings(
        processing_delay=0.01,
        dispatch_delay=0,
        poll_interval=0.01,
        mqtt_url=None,
    )


@pytest.fixture
def stock_processor() -> StockVideoProcessor:
    return StockVideoProcessor(StockVideoConfig(delay_seconds=0.01))


@pytest.fixture
def api_client(settings, job_repository, stock_processor) -> Iterator[TestClient]:
    """Provide a FastAPI TestClient with the worker running."""
    app = create_app(settings, repository=job_repository, processor=stock_processor)
    with TestClient(app) as client:
        yield client
