"""
Job definitions and the registry that resolves them.
"""

from queue_worker.jobs.definition import JobDefinition
from queue_worker.jobs.registry import JobRegistry

__all__ = [
    "JobDefinition",
    "JobRegistry",
]
