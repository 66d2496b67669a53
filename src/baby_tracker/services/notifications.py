"""Transient user notifications."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from baby_tracker.services.scheduling import Clock, utc_now

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Interface for showing a short-lived message to the user."""

    def success(self, message: str) -> None:
        """Show a success message."""

    def error(self, message: str) -> None:
        """Show an error message."""


@dataclass(frozen=True)
class Toast:
    """A message shown until it expires."""

    message: str
    level: str
    expires_at: datetime


@dataclass
class ToastNotifier(Notifier):
    """Single-slot toast; a new message replaces the previous one."""

    duration_seconds: float = 2.5
    clock: Clock = utc_now
    _toast: Toast | None = None

    def success(self, message: str) -> None:
        logger.info("Toast: %s", message)
        self._show(message, "success")

    def error(self, message: str) -> None:
        logger.warning("Toast: %s", message)
        self._show(message, "error")

    def current(self) -> Toast | None:
        """Return the visible toast, if it has not expired."""
        if self._toast is None:
            return None
        if self.clock() >= self._toast.expires_at:
            self._toast = None
            return None
        return self._toast

    def _show(self, message: str, level: str) -> None:
        expires_at = self.clock() + timedelta(seconds=self.duration_seconds)
        self._toast = Toast(message=message, level=level, expires_at=expires_at)
