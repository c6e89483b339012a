"""
Recorder Service Tests

End-to-end runs of the service in mock mode: mock capture emitting timed
segments, the real event bus and upload queue, mock transport.

To run:
    pytest tests/test_recorder_service.py -v
"""

import signal

import pytest

import recorder_service
from capture import CaptureSource
from core.constants import ChunkStatus
from recorder_service import RecorderService, parse_args


@pytest.fixture
def make_service(monkeypatch, tmp_path):
    """Mock-mode services that leave process signal handlers alone"""
    monkeypatch.setattr(recorder_service.signal, "signal", lambda signum, handler: None)
    monkeypatch.setattr(recorder_service, "FAILED_CHUNKS_DIR", tmp_path / "failed")

    def _make(**kwargs) -> RecorderService:
        kwargs.setdefault("use_mock", True)
        kwargs.setdefault("chunk_duration", 0.05)
        kwargs.setdefault("max_duration", 0.3)
        kwargs.setdefault("drain_timeout", 5.0)
        return RecorderService(**kwargs)

    return _make


@pytest.mark.integration
def test_mock_run_delivers_every_chunk(make_service):
    service = make_service()

    exit_code = service.run()

    chunks = service.upload_queue.get_chunks()
    assert exit_code == 0
    assert chunks
    assert all(chunk.status == ChunkStatus.COMPLETED for chunk in chunks)
    assert service.transport.delivered_sequences() == list(range(1, len(chunks) + 1))


@pytest.mark.integration
def test_failed_uploads_give_exit_code_2(make_service, tmp_path):
    service = make_service()
    service.transport.default_success = False
    service.upload_queue.max_retries = 0

    exit_code = service.run()

    assert exit_code == 2
    saved = list((tmp_path / "failed").glob("chunk_*.webm"))
    assert len(saved) == len(service.upload_queue.get_chunks())


@pytest.mark.integration
def test_denied_capture_gives_exit_code_1(make_service):
    service = make_service()
    service.capture_backend.deny_access = True

    assert service.run() == 1
    assert service.upload_queue.is_running() is False


@pytest.mark.unit
def test_signals_stop_recording_then_abandon_uploads(make_service):
    service = make_service()
    service.running = True

    service._signal_handler(signal.SIGINT, None)
    assert service.running is False
    assert service._abort_drain is False

    service._signal_handler(signal.SIGTERM, None)
    assert service._abort_drain is True
    service.upload_queue.stop(timeout=1.0)


@pytest.mark.unit
def test_forced_source_reaches_session(make_service):
    service = make_service(source=CaptureSource.CAMERA)

    assert service.session.forced_source == CaptureSource.CAMERA
    service.upload_queue.stop(timeout=1.0)


@pytest.mark.unit
def test_parse_args():
    args = parse_args(
        ["--endpoint", "http://relay:5000", "--chunk-duration", "30", "--source", "camera", "--mock"],
    )

    assert args.endpoint == "http://relay:5000"
    assert args.chunk_duration == 30.0
    assert args.source == "camera"
    assert args.mock is True
    assert args.duration is None


@pytest.mark.unit
def test_offline_start_is_logged(make_service, monkeypatch, caplog):
    monkeypatch.setattr(
        recorder_service,
        "get_network_status",
        lambda: (False, "No internet connection"),
    )
    service = make_service()
    service.use_mock = False

    with caplog.at_level("WARNING", logger="recorder_service"):
        service._log_network_status()

    assert "No internet connection" in caplog.text


@pytest.mark.unit
def test_mock_run_skips_network_status(make_service, monkeypatch):
    checked = []
    monkeypatch.setattr(
        recorder_service,
        "get_network_status",
        lambda: checked.append(True) or (True, "Internet available"),
    )
    service = make_service(max_duration=0.1)

    service.run()

    assert checked == []
