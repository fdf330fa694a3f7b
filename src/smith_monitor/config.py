from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Monitor definition (one monitor per process)
    monitor_file: str = "monitor.yaml"

    # Kafka defaults, used when the monitor file leaves them out
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_topic: str = "monitor-reports"

    # Producer lifecycle (ms)
    connect_timeout_ms: int = 30_000  # 0 = wait for readiness forever
    flush_timeout_ms: int = 600_000  # drain ceiling on disconnect
    poll_interval_ms: int = 100

    # Logging
    log_level: str = "INFO"


settings = Settings()
