"""Report publisher: records the latest report list and produces it to Kafka."""

from __future__ import annotations

import logging

from .connection import BrokerClient, ErrorSink, log_error
from .models import CheckReportList
from .runner import now_ms

logger = logging.getLogger(__name__)


class ReportPublisher:
    """Serializes report lists onto one topic. Produce errors never propagate."""

    def __init__(self, client: BrokerClient, topic: str, sink: ErrorSink = log_error) -> None:
        self.client = client
        self.topic = topic
        self.sink = sink
        self.last_report_list: CheckReportList | None = None
        self.last_run: int = 0  # epoch ms

    def publish(self, report_list: CheckReportList) -> bool:
        """Produce the list; return False if the client rejected it."""
        self.last_report_list = report_list
        self.last_run = now_ms()

        payload = report_list.to_wire()
        routing = report_list.kafka
        try:
            self.client.produce(
                self.topic,
                payload,
                partition=routing.partition if routing else None,
                key=routing.key if routing else None,
            )
        except Exception as e:
            self.sink(f"A problem occurred when sending message: {payload.decode('utf-8')}", e)
            return False

        logger.debug(
            "Published %s to %s: %s",
            report_list.id, self.topic, report_list.reports[0].status.value,
        )
        return True
