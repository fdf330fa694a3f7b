"""Exceptions raised by the monitor connection lifecycle."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for monitor errors."""


class BrokerError(MonitorError):
    """Raised when the broker client reports a failure."""


class ConnectTimeoutError(BrokerError):
    """Raised when the broker never signals readiness within the connect timeout."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Broker not ready after {timeout_ms}ms")


class FlushError(BrokerError):
    """Raised when buffered messages could not be delivered before disconnect."""

    def __init__(self, remaining: int, timeout_ms: int) -> None:
        self.remaining = remaining
        self.timeout_ms = timeout_ms
        super().__init__(f"{remaining} message(s) still queued after {timeout_ms}ms flush")


class NotConnectedError(BrokerError):
    """Raised when producing on a client that has no live connection."""
