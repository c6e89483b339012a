"""
Upload Test Configuration and Fixtures

Shared fixtures for upload module tests.
"""

import pytest

from core.event_bus import EventBus
from core.models.chunk_artifact import ChunkArtifact
from upload.controllers.upload_queue import UploadQueue
from upload.implementations.mock_transport import MockTransport

# =============================================================================
# ARTIFACT FIXTURES
# =============================================================================


@pytest.fixture
def make_artifact():
    """
    Factory for chunk artifacts.

    Usage:
        def test_something(make_artifact):
            first = make_artifact(1)
    """

    def _make(sequence: int = 1, payload: bytes = b"\x1a\x45\xdf\xa3chunk") -> ChunkArtifact:
        return ChunkArtifact(
            sequence=sequence,
            payload=payload,
            name=f"chunk_{sequence:03d}_2025-01-15T14-30-22-123Z.webm",
        )

    return _make


# =============================================================================
# QUEUE FIXTURES
# =============================================================================


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays"""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def mock_transport():
    """Transport that accepts everything unless scripted otherwise"""
    return MockTransport()


@pytest.fixture
def make_queue(sleep_recorder):
    """
    Factory for synchronous upload queues (no worker thread).

    Drive them with queue.process_pending() or queue.drain_once().
    """
    created = []

    def _make(transport, **kwargs) -> UploadQueue:
        kwargs.setdefault("connectivity_check", lambda: True)
        kwargs.setdefault("sleep", sleep_recorder)
        kwargs.setdefault("autostart", False)
        upload_queue = UploadQueue(transport, **kwargs)
        created.append(upload_queue)
        return upload_queue

    yield _make

    for upload_queue in created:
        upload_queue.stop(timeout=1.0)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def status_log():
    """
    Collects (chunk name, status label) pairs from on_status_change.

    Usage:
        upload_queue.on_status_change = status_log.track
    """

    class StatusLog:
        def __init__(self):
            self.entries = []

        def track(self, artifact, label):
            self.entries.append((artifact.name, label))

        def labels_for(self, name):
            return [label for entry_name, label in self.entries if entry_name == name]

    return StatusLog()
