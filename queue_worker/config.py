"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from queue_worker.constants import (
    DEFAULT_ATTRIBUTES,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    DeliveryAttribute,
    TransportKind,
)
from queue_worker.exceptions import ConfigurationError
from queue_worker.types.job import PollConfiguration


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Queue
    queue_prefix: str | None = None
    queue_type: str = "default"
    environment: str = "development"
    default_visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT_SECONDS
    transport: TransportKind = TransportKind.SQS

    # AWS
    aws_region: str = "us-east-1"
    sqs_wait_time_seconds: int = 0

    # Poll Configuration
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    idle_timeout_seconds: float | None = None
    max_executions: int | None = None
    raise_exceptions: bool = False
    delivery_attributes: list[DeliveryAttribute] = list(DEFAULT_ATTRIBUTES)

    # Job registry, as "package.module:attribute"
    job_registry: str | None = None

    # Observability
    cloudwatch_namespace: str | None = None
    prometheus_port: int | None = None
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "queue-worker"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    def queue_name(self, queue_type: str | None = None) -> str:
        """
        Build the transport-level queue name for a queue type.

        Args:
            queue_type: Logical queue type. Defaults to the configured one.

        Returns:
            The name as "{prefix}-{type}-{environment}".

        Raises:
            ConfigurationError: If no queue prefix is configured.
        """
        if not self.queue_prefix:
            raise ConfigurationError("queue_prefix must be configured")
        return f"{self.queue_prefix}-{queue_type or self.queue_type}-{self.environment}"

    def poll_configuration(self, visibility_timeout: int | None = None) -> PollConfiguration:
        """Build the poll configuration for a run from these settings."""
        return PollConfiguration(
            visibility_timeout=(
                visibility_timeout if visibility_timeout is not None else self.default_visibility_timeout
            ),
            attributes=tuple(self.delivery_attributes),
            raise_exceptions=self.raise_exceptions,
            idle_timeout=self.idle_timeout_seconds,
            poll_interval=self.poll_interval_seconds,
            max_executions=self.max_executions,
            wait_time_seconds=self.sqs_wait_time_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
