"""
Worker process for executing jobs.

The worker polls the configured queue, executes jobs registered in the
configured job registry, and exits when its iteration budget or idle
timeout runs out, or after finishing the current message on
SIGHUP/SIGINT/SIGTERM.
"""

import importlib
import logging

from queue_worker.config import Settings, get_settings
from queue_worker.exceptions import ConfigurationError
from queue_worker.jobs.registry import JobRegistry
from queue_worker.observability.logging import bind_context, clear_context, setup_logging
from queue_worker.observability.metrics import setup_metrics
from queue_worker.observability.tracing import setup_tracing
from queue_worker.queue import QueueDirectory

logger = logging.getLogger(__name__)


def load_registry(path: str | None) -> JobRegistry:
    """
    Import the application's job registry and freeze it.

    Args:
        path: Import path as "package.module:attribute".

    Returns:
        The frozen registry.

    Raises:
        ConfigurationError: If the path is missing, malformed or does
            not point at a JobRegistry.
    """
    if not path or ":" not in path:
        raise ConfigurationError(
            f"job_registry must be set as 'package.module:attribute', got {path!r}"
        )

    module_name, attribute = path.split(":", 1)
    try:
        registry = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load job registry {path}: {e}") from e

    if not isinstance(registry, JobRegistry):
        raise ConfigurationError(f"{path} is not a JobRegistry")

    registry.freeze()
    logger.info(
        "Loaded job registry",
        extra={"registry": path, "definitions": [str(key) for key in registry.keys()]},
    )
    return registry


def run_worker(settings: Settings) -> None:
    """Run the worker with the given settings until it stops."""
    registry = load_registry(settings.job_registry)
    sinks = setup_metrics(settings)

    queues = QueueDirectory(settings)
    queue = queues.define_queue(settings.queue_type, default=True)

    bind_context(queue=queue.name, environment=settings.environment)
    try:
        queue.poller(registry, sinks=sinks, environment=settings.environment).run(
            settings.poll_configuration(queue.visibility_timeout)
        )
    finally:
        clear_context()


def run() -> None:
    """Run the worker."""
    settings = get_settings()
    setup_logging(settings)
    if settings.otel_enabled:
        setup_tracing(settings)

    run_worker(settings)


if __name__ == "__main__":
    run()
