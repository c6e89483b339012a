"""
Network Connectivity Tests

To run:
    pytest tests/core/test_network.py -v
"""

import socket

import pytest

from core import network
from core.network import ConnectivityProbe, check_internet_connectivity


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.unit
def test_connectivity_false_on_socket_error(monkeypatch):
    def refuse(address, timeout=None):
        raise OSError("unreachable")

    monkeypatch.setattr(socket, "create_connection", refuse)

    assert check_internet_connectivity() is False


@pytest.mark.unit
def test_connectivity_true_when_socket_opens(monkeypatch):
    class FakeSocket:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    monkeypatch.setattr(socket, "create_connection", lambda address, timeout=None: FakeSocket())

    assert check_internet_connectivity(host="192.0.2.1", port=53) is True


@pytest.mark.unit
def test_probe_caches_result():
    calls = []
    clock = FakeClock()

    def check():
        calls.append(clock.now)
        return True

    probe = ConnectivityProbe(check=check, cache_seconds=2.0, clock=clock)

    assert probe() is True
    clock.now = 1.0
    assert probe.is_online() is True
    assert len(calls) == 1

    clock.now = 2.5
    probe()
    assert len(calls) == 2


@pytest.mark.unit
def test_probe_invalidate_forces_recheck():
    answers = iter([True, False])
    probe = ConnectivityProbe(check=lambda: next(answers), clock=FakeClock())

    assert probe() is True
    probe.invalidate()
    assert probe() is False


@pytest.mark.unit
def test_network_status_string(monkeypatch):
    monkeypatch.setattr(network, "check_internet_connectivity", lambda: False)

    assert network.get_network_status() == (False, "No internet connection")
