"""Service stats check: detects stopped or stuck stream-processing nodes.

Polls a JSON status snapshot like:

    {"status": "running", "compaction_percentage": "42%",
     "inbound": {"total_messages": 1200, ...},
     "outbound": {"total_messages": 1180, ...}}

and reports "failing" when the node is not running or a watched counter is
stuck, "healthy" (with the pretty-printed snapshot as message) otherwise.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..monitor.models import CheckReport, CheckReportList, CheckStatus, MonitorConfig
from .change_detector import ChangeDetector, get_string_value
from .http import HttpCheck

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES = {
    "inbound.total_messages": "Service is not consuming anything new",
    "outbound.total_messages": "Service is not publishing anything new",
    "compaction_percentage": "Service is stuck while compacting",
}


@dataclass
class WatchRule:
    """Extra snapshot field to watch, with the message used when it fails."""

    field: str
    message: str
    should_change: bool = True
    detect_interval: int = 0  # ms
    ignores: list[str] = field(default_factory=list)


class ServiceStatsCheck:
    """HTTP check whose body is a service status snapshot."""

    def __init__(
        self,
        url: str,
        outbound: bool = True,
        compaction: bool = False,
        watch: list[WatchRule] | None = None,
        timeout_ms: int = 10_000,
        transport: httpx.AsyncBaseTransport | None = None,
        detector: ChangeDetector | None = None,
    ) -> None:
        self.outbound = outbound
        self.compaction = compaction
        self.messages = dict(DEFAULT_MESSAGES)
        self.detector = detector or ChangeDetector()
        self.detector.add("inbound.total_messages")
        if outbound:
            self.detector.add("outbound.total_messages", True, 10_000)
        if compaction:
            self.detector.add("compaction_percentage", True, 0, "100%")
        for rule in watch or []:
            self.detector.add(rule.field, rule.should_change, rule.detect_interval, *rule.ignores)
            self.messages[rule.field] = rule.message

        self.http = HttpCheck(url, validate=self.validate, timeout_ms=timeout_ms, transport=transport)

    async def check(self, config: MonitorConfig) -> CheckReportList:
        return await self.http.check(config)

    async def validate(self, body: str, config: MonitorConfig) -> CheckReportList:
        stats: dict[str, Any] = json.loads(body)
        message = ""
        if not self.compaction and stats.get("status") != "running":
            message = f"Service is not running `status = {stats.get('status')}`."
        elif self.detector.detect(stats):
            for failure in self.detector.detected_failures:
                value = get_string_value(stats, failure.field)
                message += f"{self.messages.get(failure.field, failure.field)} `{failure.field} = {value}`.\n"

        if message:
            status = CheckStatus.FAILING
        else:
            status = CheckStatus.HEALTHY
            message = "```\n" + json.dumps(stats, indent=4) + "\n```"

        return CheckReportList(
            id=config.id,
            name=config.name,
            reports=[CheckReport(status=status, message=message)],
        )
