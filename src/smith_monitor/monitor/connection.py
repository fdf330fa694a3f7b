"""Producer connection lifecycle: idempotent connect / disconnect.

At most one connect and one disconnect are in flight at any time. Concurrent
callers receive the same future, so the underlying broker operation is issued
once and every caller observes the same outcome. The slot is cleared when the
future settles, so a failed attempt can be retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from .errors import ConnectTimeoutError

logger = logging.getLogger(__name__)

# Ceiling for draining buffered messages before teardown (10 minutes)
FLUSH_TIMEOUT_MS = 600_000

# How often the client services delivery reports and error callbacks
POLL_INTERVAL_MS = 100

ErrorSink = Callable[[str, BaseException], None]


def log_error(context: str, error: BaseException) -> None:
    """Default observability sink: log through the module logger."""
    logger.error("%s: %s", context, error, exc_info=error)


class BrokerClient(Protocol):
    """What the monitor needs from a message-broker producer."""

    def connect(
        self,
        on_ready: Callable[[], None],
        on_error: Callable[[BaseException], None],
    ) -> None: ...

    def is_connected(self) -> bool: ...

    def set_poll_interval(self, interval_ms: int) -> None: ...

    def produce(
        self,
        topic: str,
        value: bytes,
        partition: int | None = None,
        key: str | None = None,
    ) -> None: ...

    def abort(self) -> None: ...

    async def flush(self, timeout_ms: int) -> None: ...

    async def disconnect(self) -> None: ...


def _resolved() -> asyncio.Future[None]:
    fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    fut.set_result(None)
    return fut


class ProducerConnection:
    """Owns the broker client and serializes connect / disconnect calls.

    Hooks:
        on_connected    runs after readiness and poll setup, before connect() resolves
        on_disconnected runs after every teardown attempt, successful or not
    """

    def __init__(
        self,
        client: BrokerClient,
        sink: ErrorSink = log_error,
        on_connected: Callable[[], None] | None = None,
        on_disconnected: Callable[[], None] | None = None,
        connect_timeout_ms: int | None = None,
        flush_timeout_ms: int = FLUSH_TIMEOUT_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        self.client = client
        self.sink = sink
        self.on_connected = on_connected
        self.on_disconnected = on_disconnected
        self.connect_timeout_ms = connect_timeout_ms
        self.flush_timeout_ms = flush_timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self._connecting: asyncio.Future[None] | None = None
        self._disconnecting: asyncio.Future[None] | None = None

    @property
    def is_connected(self) -> bool:
        return self.client.is_connected()

    # -- connect ---------------------------------------------------------------

    def connect(self) -> asyncio.Future[None]:
        """Connect to the broker, or join the connect already in progress."""
        if self._connecting is not None:
            return self._connecting
        if self.is_connected:
            return _resolved()

        self._connecting = asyncio.ensure_future(self._connect())
        self._connecting.add_done_callback(self._clear_connecting)
        return self._connecting

    async def _connect(self) -> None:
        loop = asyncio.get_running_loop()
        ready: asyncio.Future[None] = loop.create_future()

        def on_ready() -> None:
            if not ready.done():
                ready.set_result(None)

        logger.info("Connecting producer")
        self.client.connect(on_ready=on_ready, on_error=self._on_client_error)

        if self.connect_timeout_ms is None:
            await ready
        else:
            try:
                await asyncio.wait_for(ready, timeout=self.connect_timeout_ms / 1000)
            except asyncio.TimeoutError:
                # A late readiness signal must not mark the client connected
                self.client.abort()
                raise ConnectTimeoutError(self.connect_timeout_ms) from None

        self.client.set_poll_interval(self.poll_interval_ms)
        logger.info("Producer ready")
        if self.on_connected:
            self.on_connected()

    def _clear_connecting(self, fut: asyncio.Future[None]) -> None:
        self._connecting = None

    def _on_client_error(self, error: BaseException) -> None:
        # Reported only; readiness (or the connect timeout) settles connect()
        self.sink("Error from producer", error)

    # -- disconnect ------------------------------------------------------------

    def disconnect(self) -> asyncio.Future[None]:
        """Flush and tear down the connection, or join the disconnect in progress."""
        if self._disconnecting is not None:
            return self._disconnecting
        if not self.is_connected:
            return _resolved()

        self._disconnecting = asyncio.ensure_future(self._disconnect())
        self._disconnecting.add_done_callback(self._clear_disconnecting)
        return self._disconnecting

    async def _disconnect(self) -> None:
        logger.info("Flushing producer (timeout=%dms)", self.flush_timeout_ms)
        await self.client.flush(self.flush_timeout_ms)

        try:
            await self.client.disconnect()
        finally:
            if self.on_disconnected:
                self.on_disconnected()
        logger.info("Producer disconnected")

    def _clear_disconnecting(self, fut: asyncio.Future[None]) -> None:
        self._disconnecting = None
