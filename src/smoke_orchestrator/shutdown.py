"""Signal-driven shutdown for a smoke run.

Handles both Windows (``signal.signal``) and Unix
(``loop.add_signal_handler``) signal registration with a reentrancy guard.
On SIGINT / SIGTERM the supervised children are terminated and the
in-flight scenario task is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.smoke_orchestrator.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GracefulShutdown:
    """Routes SIGINT / SIGTERM to the supervisor's shutdown.

    Usage::

        shutdown = GracefulShutdown(supervisor)
        shutdown.install(task=asyncio.current_task())
        try:
            ...
        finally:
            shutdown.uninstall()
    """

    def __init__(self, supervisor: ProcessSupervisor | None = None) -> None:
        self._should_stop = False
        self._supervisor = supervisor
        self._task: asyncio.Task[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: asyncio.Future[None] | None = None
        self._handling = False  # reentrancy guard
        self.signal_received: int | None = None

    @property
    def should_stop(self) -> bool:
        """Whether a shutdown signal has been received."""
        return self._should_stop

    def install(self, task: asyncio.Task[Any] | None = None) -> None:
        """Register signal handlers for SIGINT and SIGTERM.

        On Windows, uses ``signal.signal`` directly.
        On Unix, uses ``loop.add_signal_handler`` if a running event loop
        is available, falling back to ``signal.signal``.

        Args:
            task: The task to cancel when a signal arrives.
        """
        self._task = task
        if sys.platform == "win32":
            for sig in _SIGNALS:
                signal.signal(sig, self._signal_handler)
            return
        try:
            self._loop = asyncio.get_running_loop()
            for sig in _SIGNALS:
                self._loop.add_signal_handler(sig, self._async_handler, sig)
        except RuntimeError:
            # No running loop -- fall back to signal.signal
            self._loop = None
            for sig in _SIGNALS:
                signal.signal(sig, self._signal_handler)

    def uninstall(self) -> None:
        """Restore default signal handling."""
        if self._loop is not None:
            for sig in _SIGNALS:
                self._loop.remove_signal_handler(sig)
            self._loop = None
        self._task = None

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """Synchronous signal handler (Windows / fallback)."""
        if self._handling:
            return  # reentrancy guard
        self._handling = True
        logger.warning("Received signal %s -- terminating child processes", signum)
        self.signal_received = signum
        self._should_stop = True
        self._stop_run()
        self._handling = False

    def _async_handler(self, signum: int = signal.SIGTERM) -> None:
        """Async-compatible signal handler (Unix)."""
        if self._handling:
            return  # reentrancy guard
        self._handling = True
        logger.warning("Received signal %s -- terminating child processes", signum)
        self.signal_received = signum
        self._should_stop = True
        self._stop_run()
        self._handling = False

    def _stop_run(self) -> None:
        """Schedule child termination and abandon the in-flight scenario."""
        if self._supervisor is not None and self._pending is None:
            try:
                self._pending = asyncio.ensure_future(self._supervisor.shutdown())
            except RuntimeError:
                logger.warning("No running event loop; children not terminated from handler")
        if self._task is not None and not self._task.done():
            self._task.cancel()
