"""Pydantic models for monitor configuration and published report lists."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

REPORT_LIST_VERSION = "1.0"

# Upper bound for the default retry floor (ms)
DEFAULT_RETRY_MIN_CAP = 5000


# ── Reports ──────────────────────────────────────────────────────────────────


class CheckStatus(str, Enum):
    HEALTHY = "healthy"
    DOWN = "down"
    FAILING = "failing"
    BROKEN = "broken"


class CheckReport(BaseModel):
    """A single health verdict.

    ``status`` and ``message`` are optional here so that a check can hand back
    an incomplete report; the check runner replaces those with a broken report.
    Unknown keys are kept so the replacement can carry the original content.
    """

    model_config = ConfigDict(extra="allow")

    status: CheckStatus | None = None
    custom_status: str | None = None
    message: str | None = None
    name: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.status is not None and self.message is not None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class KafkaRouting(BaseModel):
    """Optional per-message routing hint, never part of the payload."""

    partition: int | None = None
    key: str | None = None


class CheckReportList(BaseModel):
    """Envelope grouping all reports from one check invocation."""

    version: Literal["1.0"] = REPORT_LIST_VERSION
    id: str
    name: str
    reports: list[CheckReport] = Field(default_factory=list)
    time: int | None = None  # epoch ms
    kafka: KafkaRouting | None = None

    def to_wire(self) -> bytes:
        """Serialize to the compact JSON body published on the topic."""
        return self.model_dump_json(exclude_none=True, exclude={"kafka"}).encode("utf-8")


# ── Configuration ────────────────────────────────────────────────────────────


class RetryPolicy(BaseModel):
    """Exponential backoff bounds, in milliseconds."""

    factor: float = 2
    min: int
    max: int


class KafkaConfig(BaseModel):
    topic: str
    config: dict[str, Any] = Field(default_factory=dict)  # librdkafka settings
    topic_config: dict[str, Any] | None = None


class MonitorConfig(BaseModel):
    """Static description of one monitored target."""

    id: str
    name: str
    interval: int = Field(gt=0)  # ms between healthy runs
    initial_interval: int | None = Field(default=None, ge=0)
    retry: RetryPolicy | None = None
    kafka: KafkaConfig
    auto_start: bool = True
    connect_timeout: int | None = Field(default=None, gt=0)  # ms, None = wait for readiness

    @model_validator(mode="after")
    def _apply_defaults(self) -> MonitorConfig:
        if self.initial_interval is None:
            self.initial_interval = self.interval
        else:
            self.initial_interval = min(self.initial_interval, self.interval)
        if self.retry is None:
            self.retry = RetryPolicy(
                factor=2,
                min=min(self.interval, DEFAULT_RETRY_MIN_CAP),
                max=self.interval,
            )
        return self
