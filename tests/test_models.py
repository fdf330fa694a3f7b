"""Tests for monitor configuration and report models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from smith_monitor.monitor.models import (
    CheckReport,
    CheckReportList,
    CheckStatus,
    KafkaRouting,
    MonitorConfig,
    RetryPolicy,
)


# ── MonitorConfig ────────────────────────────────────────────────────────────


class TestMonitorConfig:
    def test_initial_interval_defaults_to_interval(self, make_config) -> None:
        config = make_config(interval=5000)
        assert config.initial_interval == 5000

    def test_initial_interval_clamped(self, make_config) -> None:
        config = make_config(interval=1000, initial_interval=60_000)
        assert config.initial_interval == 1000

    def test_initial_interval_kept_when_smaller(self, make_config) -> None:
        config = make_config(interval=1000, initial_interval=0)
        assert config.initial_interval == 0

    def test_default_retry_short_interval(self, make_config) -> None:
        config = make_config(interval=1000)
        assert config.retry == RetryPolicy(factor=2, min=1000, max=1000)

    def test_default_retry_long_interval(self, make_config) -> None:
        config = make_config(interval=60_000)
        assert config.retry == RetryPolicy(factor=2, min=5000, max=60_000)

    def test_explicit_retry_kept(self, make_config) -> None:
        config = make_config(retry={"factor": 3, "min": 100, "max": 900})
        assert config.retry is not None
        assert config.retry.factor == 3
        assert config.retry.min == 100
        assert config.retry.max == 900

    def test_interval_must_be_positive(self, make_config) -> None:
        with pytest.raises(ValidationError):
            make_config(interval=0)

    def test_auto_start_defaults_true(self) -> None:
        config = MonitorConfig(id="m", name="M", interval=1000, kafka={"topic": "t"})
        assert config.auto_start is True
        assert config.connect_timeout is None


# ── Reports ──────────────────────────────────────────────────────────────────


class TestCheckReport:
    def test_status_enum_is_closed(self) -> None:
        with pytest.raises(ValidationError):
            CheckReport(status="ok", message="nope")

    def test_incomplete_report(self) -> None:
        assert not CheckReport(message="no status").is_complete
        assert not CheckReport(status=CheckStatus.HEALTHY).is_complete
        assert CheckReport(status=CheckStatus.HEALTHY, message="").is_complete

    def test_extra_keys_preserved_in_json(self) -> None:
        report = CheckReport.model_validate({"message": "hi", "latency": 12})
        assert json.loads(report.to_json()) == {"message": "hi", "latency": 12}


class TestCheckReportList:
    def test_wire_format(self) -> None:
        rl = CheckReportList(
            id="mon-1",
            name="Monitor",
            time=1700000000000,
            reports=[CheckReport(status=CheckStatus.FAILING, custom_status="lagging", message="slow")],
        )
        body = json.loads(rl.to_wire())
        assert body == {
            "version": "1.0",
            "id": "mon-1",
            "name": "Monitor",
            "time": 1700000000000,
            "reports": [{"status": "failing", "custom_status": "lagging", "message": "slow"}],
        }

    def test_wire_excludes_routing_hint(self) -> None:
        rl = CheckReportList(
            id="mon-1", name="Monitor", time=1,
            reports=[CheckReport(status=CheckStatus.HEALTHY, message="ok")],
            kafka=KafkaRouting(partition=3, key="k"),
        )
        assert "kafka" not in json.loads(rl.to_wire())

    def test_wire_is_compact(self) -> None:
        rl = CheckReportList(id="a", name="b", time=1, reports=[])
        assert b" " not in rl.to_wire()

    def test_version_is_fixed(self) -> None:
        with pytest.raises(ValidationError):
            CheckReportList(version="2.0", id="a", name="b")
