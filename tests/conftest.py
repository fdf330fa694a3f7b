"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from smith_monitor.monitor.models import (
    CheckReport,
    CheckReportList,
    CheckStatus,
    KafkaConfig,
    MonitorConfig,
)


class FakeBrokerClient:
    """In-memory BrokerClient. Signals readiness on the next loop tick unless told not to."""

    def __init__(self, auto_ready: bool = True) -> None:
        self.auto_ready = auto_ready
        self.connected = False
        self.connect_calls = 0
        self.poll_interval: int | None = None
        self.produced: list[dict[str, Any]] = []
        self.flush_calls: list[int] = []
        self.disconnect_calls = 0
        self.abort_calls = 0
        self.produce_error: Exception | None = None
        self.flush_error: Exception | None = None
        self.disconnect_error: Exception | None = None
        self._on_ready: Callable[[], None] | None = None
        self._on_error: Callable[[BaseException], None] | None = None

    def connect(self, on_ready: Callable[[], None], on_error: Callable[[BaseException], None]) -> None:
        self.connect_calls += 1
        self._on_ready = on_ready
        self._on_error = on_error
        if self.auto_ready:
            asyncio.get_running_loop().call_soon(self.signal_ready)

    def signal_ready(self) -> None:
        if self._on_ready is None:
            return  # aborted
        self.connected = True
        self._on_ready()

    def signal_error(self, error: BaseException) -> None:
        assert self._on_error is not None
        self._on_error(error)

    def is_connected(self) -> bool:
        return self.connected

    def set_poll_interval(self, interval_ms: int) -> None:
        self.poll_interval = interval_ms

    def produce(self, topic: str, value: bytes, partition: int | None = None, key: str | None = None) -> None:
        if self.produce_error:
            raise self.produce_error
        self.produced.append({"topic": topic, "value": value, "partition": partition, "key": key})

    def abort(self) -> None:
        self.abort_calls += 1
        self._on_ready = None
        self.connected = False

    async def flush(self, timeout_ms: int) -> None:
        self.flush_calls.append(timeout_ms)
        if self.flush_error:
            raise self.flush_error

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.disconnect_error:
            raise self.disconnect_error
        self.connected = False


class StaticCheck:
    """Check that replays outcomes in order; the last one repeats.

    Outcomes are report lists (copied on each call), dicts, or exceptions.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def check(self, config: MonitorConfig) -> Any:
        index = min(self.calls, len(self.outcomes) - 1)
        self.calls += 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, CheckReportList):
            return outcome.model_copy(deep=True)
        return outcome


def report_list(*statuses: CheckStatus, **kwargs: Any) -> CheckReportList:
    return CheckReportList(
        id=kwargs.pop("id", "mon-1"),
        name=kwargs.pop("name", "Test monitor"),
        reports=[CheckReport(status=s, message=f"{s.value} report") for s in statuses],
        **kwargs,
    )


@pytest.fixture
def broker() -> FakeBrokerClient:
    return FakeBrokerClient()


@pytest.fixture
def make_config() -> Callable[..., MonitorConfig]:
    """Factory for MonitorConfig with test-friendly defaults."""

    def _make(**overrides: Any) -> MonitorConfig:
        data: dict[str, Any] = {
            "id": "mon-1",
            "name": "Test monitor",
            "interval": 60_000,
            "auto_start": False,
            "kafka": KafkaConfig(topic="reports", config={"bootstrap.servers": "localhost:9092"}),
        }
        data.update(overrides)
        return MonitorConfig(**data)

    return _make


@pytest.fixture
def config(make_config: Callable[..., MonitorConfig]) -> MonitorConfig:
    return make_config()
