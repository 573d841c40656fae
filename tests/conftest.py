"""
Pytest configuration and shared fixtures.
"""

from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from queue_worker.config import Settings
from queue_worker.jobs.registry import JobRegistry
from queue_worker.observability import tracing
from queue_worker.transport.memory import InMemoryTransport
from tests.helpers import FakeClock, FooJob, RecordingHandler, RecordingSink, UnlimitedJob


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def registry() -> JobRegistry:
    """Create a frozen registry with the test jobs."""
    registry = JobRegistry()
    registry.register(FooJob)
    registry.register(UnlimitedJob)
    registry.freeze()
    return registry


@pytest.fixture
def sink() -> RecordingSink:
    """Create a recording metrics sink."""
    return RecordingSink()


@pytest.fixture
def handler() -> RecordingHandler:
    """Create a recording handler."""
    return RecordingHandler()


@pytest.fixture
def memory_transport(clock: FakeClock) -> InMemoryTransport:
    """Create an in-memory transport on the fake clock."""
    return InMemoryTransport(name="test-queue", clock=clock)


@pytest.fixture
def prometheus_registry() -> CollectorRegistry:
    """Create an isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        queue_prefix="jobs",
        queue_type="default",
        environment="test",
        default_visibility_timeout=30,
        transport="memory",
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def foo_body() -> dict[str, Any]:
    """Create a Foo v1 job record."""
    return {"type": "Foo", "version": 1, "name": "bar"}


@pytest.fixture
def span_exporter(monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
    """Record spans from get_tracer() without touching the global provider."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(tracing, "_tracer", provider.get_tracer("queue_worker.tests"))
    return exporter
