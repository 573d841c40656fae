"""
The poll loop and its collaborators.
"""

from queue_worker.worker.accounting import ExecutionAccounting, RunState
from queue_worker.worker.dispatcher import JobHandler, MessageDispatcher, execute_job
from queue_worker.worker.poller import PollLoop
from queue_worker.worker.resolution import JobResolutionPolicy
from queue_worker.worker.shutdown import ShutdownController

__all__ = [
    "PollLoop",
    "MessageDispatcher",
    "JobHandler",
    "execute_job",
    "JobResolutionPolicy",
    "ExecutionAccounting",
    "RunState",
    "ShutdownController",
]
