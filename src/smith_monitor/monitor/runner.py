"""Check runner: invokes the pluggable check and normalizes its output.

run() always returns a valid CheckReportList:
- a failing check becomes a single "down" report carrying the error text
- a report missing status or message becomes a "broken" report carrying the
  original report as JSON
- a list without a time gets the invocation time
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from .models import CheckReport, CheckReportList, CheckStatus, MonitorConfig

logger = logging.getLogger(__name__)


class HealthCheck(Protocol):
    """Pluggable check strategy. Satisfied by HttpCheck, ServiceStatsCheck, ..."""

    async def check(self, config: MonitorConfig) -> CheckReportList | dict[str, Any]: ...


def now_ms() -> int:
    return int(time.time() * 1000)


def _error_text(error: BaseException) -> str:
    return str(error) or type(error).__name__


class CheckRunner:
    """Runs one check invocation for a monitor and returns a clean report list."""

    def __init__(self, check: HealthCheck, config: MonitorConfig) -> None:
        self.check = check
        self.config = config

    async def run(self) -> CheckReportList:
        started = now_ms()
        try:
            result = await self.check.check(self.config)
            report_list = (
                result if isinstance(result, CheckReportList)
                else CheckReportList.model_validate(result)
            )
        except Exception as e:
            logger.warning("Check %s failed: %s", self.config.id, _error_text(e))
            return self.down_list(e)

        self._normalize(report_list)
        if report_list.time is None:
            report_list.time = started
        return report_list

    def down_list(self, error: BaseException) -> CheckReportList:
        return CheckReportList(
            id=self.config.id,
            name=self.config.name,
            time=now_ms(),
            reports=[CheckReport(status=CheckStatus.DOWN, message=_error_text(error))],
        )

    def _normalize(self, report_list: CheckReportList) -> None:
        if not report_list.reports:
            logger.warning("Check %s returned no reports", self.config.id)
            report_list.reports.append(CheckReport(
                status=CheckStatus.BROKEN, message="Check returned no reports",
            ))
            return

        for i, report in enumerate(report_list.reports):
            if not report.is_complete:
                logger.warning("Check %s returned an incomplete report", self.config.id)
                report_list.reports[i] = CheckReport(
                    status=CheckStatus.BROKEN, message=report.to_json(),
                )
