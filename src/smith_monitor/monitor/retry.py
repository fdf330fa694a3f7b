"""Backoff computation for consecutive "down" results.

Delay for the n-th consecutive failure (n starting at 0):
    round(min(retry.min * retry.factor ** n, retry.max))
Any non-"down" result resets the streak and falls back to the base interval.
"""

from __future__ import annotations

import logging
import math

from .models import CheckReportList, CheckStatus, RetryPolicy

logger = logging.getLogger(__name__)


def backoff_delay(policy: RetryPolicy, attempt: int) -> int:
    """Delay (ms) for the given zero-based attempt, saturating at ``policy.max``."""
    try:
        delay = min(policy.min * policy.factor ** attempt, policy.max)
    except OverflowError:
        delay = policy.max
    # Half-up rounding, not banker's rounding
    return int(math.floor(delay + 0.5))


class RetryTracker:
    """Tracks the consecutive-failure streak of one monitor."""

    def __init__(self, interval: int, policy: RetryPolicy) -> None:
        self.interval = interval
        self.policy = policy
        self.attempt = 0

    def next_delay(self, report_list: CheckReportList) -> int:
        """Return the delay before the next run and update the streak.

        Only the first report decides. A multi-report list whose first entry is
        healthy resets the streak even if a later entry is down.
        """
        if report_list.reports[0].status != CheckStatus.DOWN:
            if self.attempt:
                logger.info("Recovered after %d failed attempt(s)", self.attempt)
            self.attempt = 0
            return self.interval

        delay = backoff_delay(self.policy, self.attempt)
        self.attempt += 1
        logger.debug("Attempt %d down, retrying in %dms", self.attempt, delay)
        return delay
