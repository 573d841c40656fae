"""
Queue Worker

A durable queue consumer: polls a message queue, resolves each message to a
registered, versioned job definition, enforces per-job attempt ceilings,
executes the job and reports execution metrics, with graceful signal-driven
shutdown and bounded-lifetime runs.
"""

__version__ = "1.0.0"
