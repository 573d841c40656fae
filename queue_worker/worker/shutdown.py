"""
Graceful shutdown handling for the poll loop.

This module provides scoped signal handling for:
- SIGHUP, SIGINT (Ctrl+C) and SIGTERM
- Deferring shutdown to the next iteration boundary
- Restoring whatever handlers were installed before the run
"""

import logging
import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import FrameType
from typing import Any, TypeVar

from queue_worker.constants import SHUTDOWN_SIGNALS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shutdown_signals() -> list[signal.Signals]:
    """Get the shutdown signals available on this platform."""
    return [getattr(signal, name) for name in SHUTDOWN_SIGNALS if hasattr(signal, name)]


class ShutdownController:
    """
    Records shutdown requests from signals without interrupting work.

    The signal handlers only set a flag; the poll loop checks
    shutdown_requested once each iteration has fully completed.
    """

    def __init__(self) -> None:
        self._shutdown_requested = False

    @property
    def shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._shutdown_requested

    def request_shutdown(self) -> None:
        """Request shutdown after the current iteration."""
        self._shutdown_requested = True

    def handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """
        Handle a shutdown signal.

        Args:
            signum: The signal number received.
            frame: The current stack frame (unused).
        """
        signal_name = signal.Signals(signum).name
        logger.info(
            f"Caught {signal_name}; finishing current message and quitting",
            extra={"signal": signal_name},
        )
        self.request_shutdown()

    @contextmanager
    def installed(self) -> Iterator["ShutdownController"]:
        """
        Install the shutdown handlers for the duration of the block.

        The previously installed handlers are restored when the block
        exits, whether it returns or raises.
        """
        self._shutdown_requested = False
        previous: dict[signal.Signals, Any] = {}

        logger.debug("Trapping shutdown signals")
        try:
            for sig in shutdown_signals():
                previous[sig] = signal.signal(sig, self.handle_signal)
            yield self
        finally:
            logger.debug("Restoring previous signal handlers")
            for sig, handler in previous.items():
                # None means the previous handler was not installed from Python
                signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    def wrap(self, run_body: Callable[[], T]) -> T:
        """Run a callable with the shutdown handlers installed."""
        with self.installed():
            return run_body()
