"""Monitor definition loader: parses monitor.yaml into config + check.

Example:

    id: orders-transformer
    name: Orders transformer
    interval: 60000
    retry: {factor: 2, min: 1000, max: 60000}
    kafka:
      topic: monitor-reports
      config: {bootstrap.servers: "kafka:9092"}
    check:
      type: service_stats
      url: http://orders-transformer:8080/status
      compaction: false
      watch:
        - field: transformer.errors
          message: Transformer errors are growing
          should_change: false
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .checks.http import HttpCheck
from .checks.stats import ServiceStatsCheck, WatchRule
from .config import Settings, settings
from .monitor.models import MonitorConfig
from .monitor.runner import HealthCheck

logger = logging.getLogger(__name__)


class MonitorFileError(ValueError):
    """Raised when a monitor definition cannot be loaded."""


@dataclass
class MonitorDefinition:
    config: MonitorConfig
    check: HealthCheck


def _build_check(raw: dict[str, Any]) -> HealthCheck:
    check_type = raw.get("type", "http")
    url = raw.get("url", "")
    if not url:
        raise MonitorFileError("check.url is required")
    timeout_ms = int(raw.get("timeout_ms", 10_000))

    if check_type == "http":
        return HttpCheck(url, timeout_ms=timeout_ms)
    if check_type == "service_stats":
        return ServiceStatsCheck(
            url,
            outbound=raw.get("outbound", True),
            compaction=raw.get("compaction", False),
            watch=[WatchRule(**w) for w in raw.get("watch", []) or []],
            timeout_ms=timeout_ms,
        )
    raise MonitorFileError(f"Unknown check type: {check_type}")


def parse_monitor(raw: dict[str, Any], defaults: Settings = settings) -> MonitorDefinition:
    """Build a MonitorDefinition from an already-parsed mapping."""
    data = dict(raw)
    check_raw = data.pop("check", None) or {}

    kafka = dict(data.get("kafka") or {})
    kafka.setdefault("topic", defaults.kafka_topic)
    kafka_config = dict(kafka.get("config") or {})
    kafka_config.setdefault("bootstrap.servers", defaults.kafka_bootstrap_servers)
    kafka["config"] = kafka_config
    data["kafka"] = kafka

    if "connect_timeout" not in data and defaults.connect_timeout_ms > 0:
        data["connect_timeout"] = defaults.connect_timeout_ms

    try:
        config = MonitorConfig.model_validate(data)
    except Exception as e:
        raise MonitorFileError(f"Invalid monitor config: {e}") from e

    try:
        check = _build_check(check_raw)
    except MonitorFileError:
        raise
    except (TypeError, ValueError) as e:
        raise MonitorFileError(f"Invalid check options: {e}") from e
    return MonitorDefinition(config=config, check=check)


def load_monitor_file(path: Path | str | None = None, defaults: Settings = settings) -> MonitorDefinition:
    """Read and parse a monitor YAML file."""
    path = Path(path or defaults.monitor_file)
    if not path.exists():
        raise MonitorFileError(f"Monitor file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise MonitorFileError(f"Failed to parse {path}: {e}") from e
    if not isinstance(raw, dict):
        raise MonitorFileError(f"{path} must contain a mapping")

    definition = parse_monitor(raw, defaults)
    logger.info("Loaded monitor %s from %s", definition.config.id, path)
    return definition
