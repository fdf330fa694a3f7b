"""confluent-kafka adapter implementing the BrokerClient contract.

librdkafka has no explicit connect step, so readiness is a metadata probe that
is retried until the cluster answers. Blocking calls (metadata, flush) run in a
worker thread; callbacks are marshalled back onto the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from confluent_kafka import KafkaError, KafkaException, Producer

from .errors import FlushError, NotConnectedError

logger = logging.getLogger(__name__)

# Per-attempt metadata request timeout while waiting for readiness (seconds)
_PROBE_TIMEOUT = 5.0


class KafkaBrokerClient:
    """Wraps a single confluent_kafka.Producer owned by one monitor."""

    def __init__(
        self,
        config: dict[str, Any],
        topic_config: dict[str, Any] | None = None,
        producer_factory: Callable[[dict[str, Any]], Any] = Producer,
    ) -> None:
        # librdkafka accepts topic-level properties at the top level
        self._config = {**(topic_config or {}), **config}
        self._producer_factory = producer_factory
        self._producer: Any = None
        self._connected = False
        self._executor: ThreadPoolExecutor | None = None
        self._probe_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None

    def connect(
        self,
        on_ready: Callable[[], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        loop = asyncio.get_running_loop()

        def error_cb(err: KafkaError) -> None:
            loop.call_soon_threadsafe(on_error, KafkaException(err))

        self.abort()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kafka-client")
        self._producer = self._producer_factory({**self._config, "error_cb": error_cb})
        self._probe_task = asyncio.create_task(
            self._await_ready(on_ready, on_error), name="kafka-ready-probe",
        )

    async def _await_ready(
        self,
        on_ready: Callable[[], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        loop = asyncio.get_running_loop()
        producer = self._producer
        while True:
            try:
                await loop.run_in_executor(self._executor, producer.list_topics, None, _PROBE_TIMEOUT)
                break
            except KafkaException as e:
                on_error(e)
        self._connected = True
        on_ready()

    def is_connected(self) -> bool:
        return self._connected

    def set_poll_interval(self, interval_ms: int) -> None:
        if self._poll_task:
            self._poll_task.cancel()
        self._poll_task = asyncio.create_task(
            self._poll_loop(interval_ms / 1000), name="kafka-poll",
        )

    async def _poll_loop(self, interval: float) -> None:
        while self._producer is not None:
            # Non-blocking: serves delivery reports and error_cb on this thread
            self._producer.poll(0)
            await asyncio.sleep(interval)

    def produce(
        self,
        topic: str,
        value: bytes,
        partition: int | None = None,
        key: str | None = None,
    ) -> None:
        if self._producer is None or not self._connected:
            raise NotConnectedError("Producer is not connected")
        kwargs: dict[str, Any] = {"value": value}
        if partition is not None:
            kwargs["partition"] = partition
        if key is not None:
            kwargs["key"] = key
        self._producer.produce(topic, **kwargs)

    async def flush(self, timeout_ms: int) -> None:
        if self._producer is None:
            return
        loop = asyncio.get_running_loop()
        remaining = await loop.run_in_executor(
            self._executor, self._producer.flush, timeout_ms / 1000,
        )
        if remaining > 0:
            raise FlushError(remaining, timeout_ms)

    def abort(self) -> None:
        """Stop any pending readiness probe and drop the producer without flushing."""
        for task in (self._poll_task, self._probe_task):
            if task and not task.done():
                task.cancel()
        self._poll_task = None
        self._probe_task = None
        self._producer = None
        self._connected = False
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    async def disconnect(self) -> None:
        self.abort()
        logger.debug("Kafka producer released")
