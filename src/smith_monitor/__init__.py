"""smith-monitor: periodic health checks published to Kafka."""

__version__ = "0.1.0"
