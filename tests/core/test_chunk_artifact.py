"""
Chunk Artifact Tests

To run:
    pytest tests/core/test_chunk_artifact.py -v
"""

import pytest

from core.constants import ChunkStatus
from core.models.chunk_artifact import ChunkArtifact


@pytest.mark.unit
def test_new_artifact_is_pending():
    artifact = ChunkArtifact(sequence=1, payload=bytearray(b"abc"), name="chunk_001.webm")

    assert artifact.status == ChunkStatus.PENDING
    assert artifact.payload == b"abc"
    assert isinstance(artifact.payload, bytes)
    assert artifact.size == 3
    assert artifact.is_terminal is False


@pytest.mark.unit
def test_ids_are_unique():
    first = ChunkArtifact(sequence=1, payload=b"x")
    second = ChunkArtifact(sequence=1, payload=b"x")

    assert first.id != second.id


@pytest.mark.unit
def test_sequence_must_be_positive():
    with pytest.raises(ValueError):
        ChunkArtifact(sequence=0, payload=b"x")


@pytest.mark.unit
def test_retry_label_tracks_count():
    artifact = ChunkArtifact(sequence=1, payload=b"x")

    artifact.mark_uploading()
    artifact.mark_retry("HTTP 500")
    assert artifact.status_label == "retry (1)"

    artifact.mark_uploading()
    artifact.mark_retry("HTTP 500")
    assert artifact.status_label == "retry (2)"
    assert artifact.attempts == 2
    assert artifact.last_error == "HTTP 500"


@pytest.mark.unit
def test_completed_clears_error():
    artifact = ChunkArtifact(sequence=1, payload=b"x")
    artifact.mark_retry("timeout")

    artifact.mark_completed("drive-1")

    assert artifact.is_terminal is True
    assert artifact.remote_id == "drive-1"
    assert artifact.last_error is None


@pytest.mark.unit
def test_to_dict_omits_payload():
    artifact = ChunkArtifact(sequence=2, payload=b"secret", name="chunk_002.webm")
    artifact.mark_failed("gave up")

    snapshot = artifact.to_dict()

    assert "payload" not in snapshot
    assert snapshot["status"] == "failed"
    assert snapshot["size"] == 6
    assert snapshot["sequence"] == 2


@pytest.mark.unit
def test_release_payload_keeps_size():
    artifact = ChunkArtifact(sequence=1, payload=b"abcdef")

    artifact.release_payload()

    assert artifact.payload == b""
    assert artifact.size == 6
