"""
Mock Transport Tests

To run:
    pytest tests/upload/implementations/test_mock_transport.py -v
"""

import pytest

from upload.constants import TransferStatus
from upload.implementations.mock_transport import MockTransport


@pytest.mark.unit
def test_scripted_outcomes_then_default(make_artifact):
    transport = MockTransport(outcomes=[False, TransferStatus.NETWORK_ERROR])
    artifact = make_artifact(1)

    first = transport.send(artifact)
    second = transport.send(artifact)
    third = transport.send(artifact)

    assert first.status == TransferStatus.HTTP_ERROR
    assert first.http_status == 500
    assert second.status == TransferStatus.NETWORK_ERROR
    assert third.success is True
    assert [a["success"] for a in transport.attempts_for(1)] == [False, False, True]


@pytest.mark.unit
def test_script_appends_outcomes(make_artifact):
    transport = MockTransport()
    transport.script(False)

    assert transport.send(make_artifact(1)).success is False
    assert transport.send(make_artifact(1)).success is True


@pytest.mark.unit
def test_unconfigured_reports_configuration_error(make_artifact):
    transport = MockTransport(configured=False)

    result = transport.send(make_artifact(1))

    assert transport.is_configured() is False
    assert result.is_fatal is True


@pytest.mark.unit
def test_fail_rate_one_always_fails(make_artifact):
    transport = MockTransport(fail_rate=1.0)

    results = [transport.send(make_artifact(n)) for n in range(1, 4)]

    assert not any(result.success for result in results)
    assert transport.delivered_sequences() == []


@pytest.mark.unit
def test_on_send_hook_sees_artifact(make_artifact):
    seen = []
    transport = MockTransport(on_send=lambda artifact: seen.append(artifact.sequence))

    transport.send(make_artifact(4))

    assert seen == [4]


@pytest.mark.unit
def test_backend_status_follows_availability():
    transport = MockTransport()
    assert transport.test_connection() is True

    transport.available = False
    assert transport.test_connection() is False
    assert transport.get_backend_status() == "Backend Sleeping..."
