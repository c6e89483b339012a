"""
Backend Test Configuration and Fixtures

Shared fixtures for the relay tests. Everything runs against
MockDriveStorage and Flask's test client; no Google account needed.
"""

import io

import pytest

from backend.app import create_app
from backend.implementations.mock_drive_storage import MockDriveStorage

FOLDER_ID = "test-folder-id"


@pytest.fixture
def storage():
    return MockDriveStorage()


@pytest.fixture
def app(storage):
    app = create_app(storage=storage, folder_id=FOLDER_ID, cors_origin="*")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def chunk_form():
    """
    Factory for multipart upload forms.

    Usage:
        client.post("/upload", data=chunk_form(b"bytes", "chunk_001.webm"))
    """

    def _make(payload: bytes = b"\x1a\x45\xdf\xa3chunk", filename=None) -> dict:
        form = {"chunk": (io.BytesIO(payload), "blob.webm", "video/webm")}
        if filename is not None:
            form["filename"] = filename
        return form

    return _make
