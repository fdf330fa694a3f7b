"""HTTP polling check: GET an endpoint and validate its body.

A non-200 response yields a single "down" report. Connection errors and
timeouts propagate so the check runner turns them into "down" reports too.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx

from ..monitor.models import CheckReport, CheckReportList, CheckStatus, MonitorConfig

logger = logging.getLogger(__name__)

Validator = Callable[[str, MonitorConfig], Awaitable[CheckReportList]]


async def accept_body(body: str, config: MonitorConfig) -> CheckReportList:
    """Default validator: any 200 response is healthy."""
    return CheckReportList(
        id=config.id,
        name=config.name,
        reports=[CheckReport(status=CheckStatus.HEALTHY, message=body)],
    )


class HttpCheck:
    """Polls ``url`` and hands 200 bodies to ``validate``."""

    def __init__(
        self,
        url: str,
        validate: Validator = accept_body,
        timeout_ms: int = 10_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.validate = validate
        self.timeout_ms = timeout_ms
        self._transport = transport

    async def check(self, config: MonitorConfig) -> CheckReportList:
        async with httpx.AsyncClient(
            timeout=self.timeout_ms / 1000,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(self.url)

        if resp.status_code == 200:
            return await self.validate(resp.text, config)

        logger.debug("%s answered %d", self.url, resp.status_code)
        return CheckReportList(
            id=config.id,
            name=config.name,
            reports=[CheckReport(
                status=CheckStatus.DOWN,
                message=f"invalid status {resp.status_code}",
            )],
        )
