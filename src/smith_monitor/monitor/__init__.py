"""Monitor core: report model, retry policy, producer lifecycle, scheduler."""

from .base import Monitor
from .connection import BrokerClient, ErrorSink, ProducerConnection
from .errors import BrokerError, ConnectTimeoutError, FlushError, MonitorError, NotConnectedError
from .models import (
    CheckReport,
    CheckReportList,
    CheckStatus,
    KafkaConfig,
    KafkaRouting,
    MonitorConfig,
    RetryPolicy,
)
from .retry import RetryTracker, backoff_delay
from .runner import CheckRunner, HealthCheck
from .scheduler import MonitorScheduler
