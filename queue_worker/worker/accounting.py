"""
Iteration budget and idle-time accounting for a poll run.
"""

from dataclasses import dataclass

from queue_worker.types.job import PollConfiguration


@dataclass
class RunState:
    """
    Mutable state of one poll run.
    Created when the run starts and discarded when it ends.
    """

    last_message_at: float
    remaining_executions: int | None = None
    iterations: int = 0


class ExecutionAccounting:
    """
    Decides whether a poll run may start another iteration.

    Both checks are advisory: they are consulted between iterations and
    never interrupt one in progress.
    """

    def __init__(self, config: PollConfiguration):
        self._max_executions = config.max_executions
        self._idle_timeout = config.idle_timeout

    def start(self, now: float) -> RunState:
        """Create the state for a new run."""
        return RunState(last_message_at=now, remaining_executions=self._max_executions)

    def budget_exhausted(self, state: RunState) -> bool:
        """Check if the configured iteration budget has been used up."""
        return state.remaining_executions is not None and state.remaining_executions <= 0

    def idle_expired(self, state: RunState, now: float) -> bool:
        """Check if no message has been received for longer than the idle timeout."""
        return self._idle_timeout is not None and (now - state.last_message_at) > self._idle_timeout

    def should_continue(self, state: RunState, now: float) -> bool:
        """Check if another iteration may run."""
        return not self.budget_exhausted(state) and not self.idle_expired(state, now)

    def record_message(self, state: RunState, now: float) -> None:
        """Record that a message was received."""
        state.last_message_at = now

    def record_iteration(self, state: RunState) -> None:
        """Charge one iteration against the budget, message or not."""
        state.iterations += 1
        if state.remaining_executions is not None:
            state.remaining_executions -= 1
