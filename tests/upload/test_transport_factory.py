"""
Transport Factory Tests

To run:
    pytest tests/upload/test_transport_factory.py -v
"""

import pytest

from upload.factory import TransportFactory, create_transport
from upload.implementations.http_transport import HttpChunkTransport
from upload.implementations.mock_transport import MockTransport


@pytest.mark.unit
def test_mock_mode():
    transport = TransportFactory.create_transport(mode="mock")
    assert isinstance(transport, MockTransport)


@pytest.mark.unit
def test_http_mode_with_url():
    transport = TransportFactory.create_transport(
        mode="http",
        base_url="https://recorder-api.example.com",
        timeout=12,
    )

    assert isinstance(transport, HttpChunkTransport)
    assert transport.upload_url == "https://recorder-api.example.com/upload"
    assert transport.timeout == 12


@pytest.mark.unit
def test_http_mode_without_url_raises():
    with pytest.raises(RuntimeError):
        TransportFactory.create_transport(mode="http", base_url="")


@pytest.mark.unit
def test_auto_mode_picks_http_when_url_set():
    transport = TransportFactory.create_transport(base_url="http://localhost:5000")
    assert isinstance(transport, HttpChunkTransport)


@pytest.mark.unit
def test_auto_mode_falls_back_to_mock():
    transport = TransportFactory.create_transport(base_url="")
    assert isinstance(transport, MockTransport)


@pytest.mark.unit
def test_convenience_function_force_mock():
    transport = create_transport(force_mock=True, base_url="http://localhost:5000")
    assert isinstance(transport, MockTransport)
