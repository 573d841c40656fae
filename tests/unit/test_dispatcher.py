"""
Unit tests for message dispatch.
"""

from typing import Any, ClassVar

import pytest

from queue_worker.exceptions import (
    AttemptLimitExceeded,
    DecodeError,
    DefinitionNotFound,
    HandlerExecutionError,
)
from queue_worker.jobs.definition import JobDefinition
from queue_worker.jobs.registry import JobRegistry
from queue_worker.worker.dispatcher import MessageDispatcher
from queue_worker.worker.resolution import JobResolutionPolicy
from tests.helpers import FakeClock, FooJob, PickyJob, RecordingHandler, make_message


class TestMessageDispatcher:
    """Tests for MessageDispatcher."""

    @pytest.fixture
    def dispatcher(self, registry: JobRegistry, clock: FakeClock) -> MessageDispatcher:
        """Create a dispatcher on the fake clock."""
        return MessageDispatcher(
            JobResolutionPolicy(registry),
            clock_ms=lambda: round(clock() * 1000),
        )

    def test_dispatch_success(
        self,
        dispatcher: MessageDispatcher,
        handler: RecordingHandler,
        foo_body: dict[str, Any],
    ):
        """Test that a valid message is hydrated and handled once."""
        message = make_message(foo_body, receive_count=1)

        outcome = dispatcher.dispatch(message, handler)

        assert outcome.success is True
        assert outcome.error is None
        assert outcome.job_type == "Foo"
        assert outcome.message is message
        assert outcome.attempts == 1
        assert len(handler.calls) == 1

        job, received = handler.calls[0]
        assert isinstance(job, FooJob)
        assert job.name == "bar"
        assert received is message

    def test_dispatch_unregistered(self, dispatcher: MessageDispatcher, handler: RecordingHandler):
        """Test that unregistered types fail without calling the handler."""
        message = make_message({"type": "Missing", "version": 1})

        outcome = dispatcher.dispatch(message, handler)

        assert outcome.success is False
        assert isinstance(outcome.error, DefinitionNotFound)
        assert outcome.job_type == "Missing"
        assert handler.calls == []

    def test_dispatch_over_attempt_ceiling(
        self,
        dispatcher: MessageDispatcher,
        handler: RecordingHandler,
        foo_body: dict[str, Any],
    ):
        """Test that messages over the ceiling fail without calling the handler."""
        outcome = dispatcher.dispatch(make_message(foo_body, receive_count=5), handler)

        assert outcome.success is False
        assert isinstance(outcome.error, AttemptLimitExceeded)
        assert handler.calls == []

    def test_dispatch_over_ceiling_with_invalid_fields(
        self,
        dispatcher: MessageDispatcher,
        handler: RecordingHandler,
    ):
        """Test that the ceiling is checked before the job fields are validated."""
        message = make_message({"type": "Foo", "version": 1, "name": ["not", "a", "string"]}, receive_count=4)

        outcome = dispatcher.dispatch(message, handler)

        assert isinstance(outcome.error, AttemptLimitExceeded)
        assert handler.calls == []

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            "[1, 2, 3]",
            '{"version": 1}',
            '{"type": "", "version": 1}',
        ],
    )
    def test_dispatch_malformed_record(
        self,
        dispatcher: MessageDispatcher,
        handler: RecordingHandler,
        body: str,
    ):
        """Test that bodies that are not job records fail to decode."""
        outcome = dispatcher.dispatch(make_message(body), handler)

        assert outcome.success is False
        assert isinstance(outcome.error, DecodeError)
        assert outcome.error.body == body
        assert outcome.job_type == "unknown"
        assert handler.calls == []

    @pytest.mark.parametrize(
        "body",
        ['{"type": "Foo"}', '{"type": "Foo", "version": "one"}'],
    )
    def test_dispatch_invalid_version_keeps_type(
        self,
        dispatcher: MessageDispatcher,
        handler: RecordingHandler,
        body: str,
    ):
        """Test that a readable type is reported even when the version is not."""
        outcome = dispatcher.dispatch(make_message(body), handler)

        assert isinstance(outcome.error, DecodeError)
        assert outcome.error.job_type == "Foo"
        assert outcome.job_type == "Foo"
        assert handler.calls == []

    def test_dispatch_validator_raising_other_errors(self, handler: RecordingHandler):
        """Test that any exception raised while hydrating becomes a decode failure."""
        registry = JobRegistry()
        registry.register(PickyJob)
        dispatcher = MessageDispatcher(JobResolutionPolicy(registry))

        outcome = dispatcher.dispatch(
            make_message({"type": "Picky", "version": 1, "size": -1}),
            handler,
        )

        assert isinstance(outcome.error, DecodeError)
        assert isinstance(outcome.error.__cause__, TypeError)
        assert outcome.job_type == "Picky"
        assert handler.calls == []

    def test_dispatch_hydration_failure(self, dispatcher: MessageDispatcher, handler: RecordingHandler):
        """Test that a record that does not match its definition fails to decode."""
        outcome = dispatcher.dispatch(make_message({"type": "Unlimited", "version": 2}), handler)

        assert isinstance(outcome.error, DecodeError)
        assert outcome.job_type == "Unlimited"
        assert handler.calls == []

    def test_dispatch_handler_failure(self, dispatcher: MessageDispatcher, foo_body: dict[str, Any]):
        """Test that handler exceptions are wrapped with the original as cause."""
        cause = RuntimeError("boom")
        handler = RecordingHandler(error=cause)

        outcome = dispatcher.dispatch(make_message(foo_body), handler)

        assert outcome.success is False
        assert isinstance(outcome.error, HandlerExecutionError)
        assert outcome.error.error is cause
        assert outcome.error.__cause__ is cause
        assert len(handler.calls) == 1

    def test_dispatch_default_handler_executes_job(self, clock: FakeClock):
        """Test that the default handler calls the job's execute with the message."""

        class Tracked(JobDefinition):
            job_type = "tracked"
            executed: ClassVar[list[Any]] = []

            def execute(self, message):
                Tracked.executed.append(message)

        registry = JobRegistry()
        registry.register(Tracked)
        dispatcher = MessageDispatcher(JobResolutionPolicy(registry))
        message = make_message({"type": "tracked", "version": 1})

        outcome = dispatcher.dispatch(message)

        assert outcome.success is True
        assert Tracked.executed == [message]

    def test_dispatch_timing(self, registry: JobRegistry, clock: FakeClock, foo_body: dict[str, Any]):
        """Test that the outcome spans from the given start to handler completion."""
        dispatcher = MessageDispatcher(
            JobResolutionPolicy(registry),
            clock_ms=lambda: round(clock() * 1000),
        )
        started_at_ms = round(clock() * 1000)

        outcome = dispatcher.dispatch(
            make_message(foo_body),
            lambda job, message: clock.advance(0.25),
            started_at_ms=started_at_ms,
        )

        assert outcome.started_at_ms == started_at_ms
        assert outcome.duration_ms == 250
