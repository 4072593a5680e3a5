"""Transient status-bar messages."""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

READY = "Ready"

Scheduler = Callable[[int, Callable[[], None]], object]


class StatusReporter:
    """Shows a status or error message and clears it after a timeout.

    Usage:
        status = StatusReporter(scheduler=root.after, on_change=label_var.set)
        status.status("File saved successfully")
        status.error("Failed to save file: disk full")

    Only the most recent message is cleared by its timer; an older timer
    firing after a newer message was shown does nothing.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        on_change: Optional[Callable[[str], None]] = None,
        status_timeout_ms: int = 3000,
        error_timeout_ms: int = 5000,
    ) -> None:
        self.scheduler = scheduler
        self.on_change = on_change
        self.status_timeout_ms = status_timeout_ms
        self.error_timeout_ms = error_timeout_ms
        self.message = READY
        self._generation = 0

    def status(self, message: str) -> None:
        """Show a neutral message."""
        self._show(message, self.status_timeout_ms)

    def error(self, message: str) -> None:
        """Show an error message."""
        logger.debug(f"User-visible error: {message}")
        self._show(f"Error: {message}", self.error_timeout_ms)

    def clear(self) -> None:
        self._generation += 1
        self._set(READY)

    def _show(self, message: str, timeout_ms: int) -> None:
        self._generation += 1
        generation = self._generation
        self._set(message)
        if self.scheduler is not None:
            self.scheduler(timeout_ms, lambda: self._expire(generation))

    def _expire(self, generation: int) -> None:
        if generation == self._generation:
            self._set(READY)

    def _set(self, message: str) -> None:
        self.message = message
        if self.on_change is not None:
            self.on_change(message)
