"""
Network Connectivity Checker

Reports whether the local network is up, so the upload queue can defer
attempts instead of burning retries while offline.
Uses socket connection to external host for reliability.
"""

import logging
import socket
import threading
import time
from typing import Callable, Optional, Tuple

from config.settings import (
    NETWORK_CHECK_CACHE_SECONDS,
    NETWORK_CHECK_HOST,
    NETWORK_CHECK_PORT,
    NETWORK_CHECK_TIMEOUT,
)


def check_internet_connectivity(
    host: str = NETWORK_CHECK_HOST,
    port: int = NETWORK_CHECK_PORT,
    timeout: float = NETWORK_CHECK_TIMEOUT,
) -> bool:
    """
    Check if internet connection is available.

    Attempts a socket connection to a reliable external host (Google DNS
    by default).

    Returns:
        True if internet is available, False otherwise
    """
    logger = logging.getLogger(__name__)

    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        # Network unavailable, timeout, or DNS lookup failed
        return False
    except Exception as e:
        logger.debug(f"Unexpected error in connectivity check: {e}")
        return False


class ConnectivityProbe:
    """
    Cached connectivity check.

    The upload queue asks before every drain step; caching the answer for a
    couple of seconds keeps a busy queue from opening a socket per chunk.

    Usage:
        probe = ConnectivityProbe()
        if probe.is_online():
            ...
    """

    def __init__(
        self,
        check: Optional[Callable[[], bool]] = None,
        cache_seconds: float = NETWORK_CHECK_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logging.getLogger(__name__)
        self._check = check or check_internet_connectivity
        self._cache_seconds = cache_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_result: Optional[bool] = None
        self._last_checked = 0.0

    def is_online(self) -> bool:
        """Return the cached result, re-probing once it is stale"""
        with self._lock:
            now = self._clock()
            if (
                self._last_result is not None
                and now - self._last_checked < self._cache_seconds
            ):
                return self._last_result

            result = bool(self._check())
            if result != self._last_result and self._last_result is not None:
                self.logger.info(
                    "Network connectivity restored"
                    if result
                    else "Network connectivity lost",
                )
            self._last_result = result
            self._last_checked = now
            return result

    def invalidate(self) -> None:
        """Force the next call to probe again"""
        with self._lock:
            self._last_result = None

    __call__ = is_online


def get_network_status() -> Tuple[bool, str]:
    """
    Get human-readable network status.

    Returns:
        Tuple of (is_connected, status_string)
    """
    is_connected = check_internet_connectivity()
    status = "Internet available" if is_connected else "No internet connection"
    return is_connected, status
