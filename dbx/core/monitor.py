"""
Connection monitor

Probes the endpoint's base path on a fixed interval and reduces each probe
to a ConnectionStatus. The monitor is the only writer of that status; it
never touches query results or history.
"""

import logging
import threading
from typing import Callable, Optional

from dbx.core.client import QueryClient
from dbx.core.errors import TransportError
from dbx.core.types import ConnectionStatus

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0


def classify_status(status_code: Optional[int]) -> ConnectionStatus:
    """
    Map a probe outcome to a status

    Args:
        status_code: HTTP status, or None if the request failed in transport

    Returns:
        DISCONNECTED on transport failure, SERVER_ERROR for 5xx,
        CONNECTED for everything else
    """
    if status_code is None:
        return ConnectionStatus.DISCONNECTED
    if status_code >= 500:
        return ConnectionStatus.SERVER_ERROR
    return ConnectionStatus.CONNECTED


class ConnectionMonitor:
    """Periodic health check against a QueryClient's endpoint."""

    def __init__(self, client: QueryClient, interval: float = DEFAULT_INTERVAL):
        self.client = client
        self.interval = interval
        self.status = ConnectionStatus.UNKNOWN

    def check(self) -> ConnectionStatus:
        """Run one probe and record the resulting status."""
        try:
            status_code = self.client.probe()
        except TransportError as e:
            logger.debug("Health check failed: %s", e)
            status_code = None

        status = classify_status(status_code)
        if status is not self.status:
            logger.info("Connection status changed: %s -> %s", self.status, status)
        self.status = status
        return status

    def run(self, stop: threading.Event, publish: Callable[[ConnectionStatus], None]) -> None:
        """
        Probe until ``stop`` is set, publishing every result.

        Failed probes are not retried early; the next attempt waits for the
        regular interval.

        Args:
            stop: Event that ends the loop
            publish: Called with each new status
        """
        while not stop.is_set():
            status = self.check()
            if stop.is_set():
                break
            publish(status)
            stop.wait(self.interval)
