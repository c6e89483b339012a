"""
Capture Test Configuration and Fixtures

Shared fixtures for capture module tests.
"""

import pytest

from capture.controllers.capture_session import CaptureSession
from capture.implementations.mock_capture import MockCaptureBackend
from core.constants import EventType
from core.event_bus import EventBus

DESKTOP_HINT = "Mozilla/5.0 (X11; Linux x86_64) Gecko/20100101 Firefox/128.0"


@pytest.fixture
def mock_backend():
    return MockCaptureBackend()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def published(event_bus):
    """
    Everything published on the bus, grouped by event type.

    Usage:
        assert len(published[EventType.CHUNK_READY]) == 2
    """
    events = {event_type: [] for event_type in EventType}
    for event_type in EventType:
        event_bus.subscribe(event_type, events[event_type].append)
    return events


@pytest.fixture
def make_session(mock_backend, event_bus):
    """
    Factory for capture sessions on the mock backend.

    Sessions still recording at teardown are stopped.
    """
    created = []

    def _make(**kwargs) -> CaptureSession:
        kwargs.setdefault("backend", mock_backend)
        kwargs.setdefault("event_bus", event_bus)
        kwargs.setdefault("device_hint", DESKTOP_HINT)
        kwargs.setdefault("tick_interval", 60.0)
        session = CaptureSession(**kwargs)
        created.append(session)
        return session

    yield _make

    for session in created:
        session.stop()
