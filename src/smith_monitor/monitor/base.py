"""Monitor: wires connection, check runner, publisher, retry and scheduler.

Lifecycle:
    monitor = Monitor(config, check)
    await monitor.connect()      # enables itself on readiness when auto_start
    ...
    await monitor.disconnect()   # flush, tear down, force disabled
"""

from __future__ import annotations

import asyncio
import logging
from typing import cast

from .connection import (
    FLUSH_TIMEOUT_MS,
    POLL_INTERVAL_MS,
    BrokerClient,
    ErrorSink,
    ProducerConnection,
    log_error,
)
from .kafka_client import KafkaBrokerClient
from .models import CheckReportList, MonitorConfig, RetryPolicy
from .publisher import ReportPublisher
from .retry import RetryTracker
from .runner import CheckRunner, HealthCheck
from .scheduler import MonitorScheduler

logger = logging.getLogger(__name__)


class Monitor:
    """Periodically checks one target and publishes its report lists."""

    def __init__(
        self,
        config: MonitorConfig,
        check: HealthCheck,
        client: BrokerClient | None = None,
        sink: ErrorSink = log_error,
        flush_timeout_ms: int = FLUSH_TIMEOUT_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        self.config = config
        if client is None:
            client = KafkaBrokerClient(config.kafka.config, config.kafka.topic_config)

        self.runner = CheckRunner(check, config)
        self.publisher = ReportPublisher(client, config.kafka.topic, sink)
        self.retry_tracker = RetryTracker(config.interval, self.retry)
        self.connection = ProducerConnection(
            client,
            sink=sink,
            on_connected=self._on_connected,
            on_disconnected=self.disable,
            connect_timeout_ms=config.connect_timeout,
            flush_timeout_ms=flush_timeout_ms,
            poll_interval_ms=poll_interval_ms,
        )
        self.scheduler = MonitorScheduler(
            self.run,
            lambda: self.connection.is_connected,
            self.initial_interval,
            name=config.id,
        )
        self._cycle_lock = asyncio.Lock()

        if self.auto_start:
            self._auto_connect()

    # -- config passthrough ----------------------------------------------------

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def interval(self) -> int:
        return self.config.interval

    @property
    def initial_interval(self) -> int:
        return self.config.initial_interval or 0

    @property
    def retry(self) -> RetryPolicy:
        # Filled in by the MonitorConfig validator
        return cast(RetryPolicy, self.config.retry)

    @property
    def auto_start(self) -> bool:
        return self.config.auto_start

    # -- runtime state ---------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def enabled(self) -> bool:
        return self.scheduler.enabled

    @property
    def attempt(self) -> int:
        return self.retry_tracker.attempt

    @property
    def last_report_list(self) -> CheckReportList | None:
        return self.publisher.last_report_list

    @property
    def last_run(self) -> int:
        return self.publisher.last_run

    @property
    def next_run(self) -> int:
        return self.scheduler.next_run

    def enable(self) -> bool:
        """Start the periodic loop. Has no effect unless connected."""
        return self.scheduler.enable()

    def disable(self) -> None:
        self.scheduler.disable()

    # -- cycle -----------------------------------------------------------------

    async def run(self) -> CheckReportList:
        """Run one check, publish it, and reschedule if still enabled."""
        async with self._cycle_lock:
            report_list = await self.runner.run()
            self.publisher.publish(report_list)

            # Only reports[0] drives the backoff, see RetryTracker.next_delay
            if self.scheduler.enabled:
                delay = self.retry_tracker.next_delay(report_list)
                self.scheduler.rearm(delay)
            return report_list

    # -- connection ------------------------------------------------------------

    def connect(self) -> asyncio.Future[None]:
        return self.connection.connect()

    def disconnect(self) -> asyncio.Future[None]:
        return self.connection.disconnect()

    def _on_connected(self) -> None:
        if self.auto_start:
            self.enable()

    def _auto_connect(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, %s will connect on connect()", self.id)
            return
        self.connect().add_done_callback(self._auto_connect_done)

    def _auto_connect_done(self, fut: asyncio.Future[None]) -> None:
        if fut.cancelled():
            return
        error = fut.exception()
        if error is not None:
            logger.error("Auto-connect failed for %s: %s", self.id, error)
