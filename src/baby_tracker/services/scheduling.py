"""Clock and periodic tick scheduling."""

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


class Ticker(Protocol):
    """Invokes a callback at a fixed interval until stopped."""

    @property
    def running(self) -> bool:
        """Return True while ticks are scheduled."""

    def start(self, callback: Callable[[], None]) -> None:
        """Start ticking, replacing any previous callback."""

    def stop(self) -> None:
        """Stop ticking."""


@dataclass
class AsyncioTicker(Ticker):
    """Ticker backed by a task on the running event loop."""

    interval_seconds: float = 1.0
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(callback))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, callback: Callable[[], None]) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            while True:
                await asyncio.sleep(self.interval_seconds)
                callback()
