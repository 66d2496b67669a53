"""Feeding stopwatch with pause/resume, persistence and rest countdown."""

import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from pydantic import ValidationError

from baby_tracker.adapters.timer_state_store import TimerStateStore
from baby_tracker.domain.records import FeedingLog, FeedingSide
from baby_tracker.domain.timer import PanelPhase, RunState, TimerSnapshot
from baby_tracker.errors import BabyTrackerError
from baby_tracker.services.formatting import format_clock
from baby_tracker.services.notifications import Notifier
from baby_tracker.services.scheduling import Clock, Ticker, utc_now

logger = logging.getLogger(__name__)

DEFAULT_REST_SECONDS = 180


class TimerStateError(BabyTrackerError):
    """Raised when an event is not valid in the current timer state."""


@dataclass
class RestCountdown:
    """Fixed-length countdown shown after a feeding is logged."""

    ticker: Ticker
    notifier: Notifier
    on_finished: Callable[[], None]
    duration_seconds: int = DEFAULT_REST_SECONDS
    remaining_seconds: int = 0

    @property
    def active(self) -> bool:
        return self.remaining_seconds > 0

    @property
    def display(self) -> str:
        return format_clock(self.remaining_seconds)

    def start(self) -> None:
        self.remaining_seconds = self.duration_seconds
        self.ticker.start(self.tick)

    def tick(self) -> None:
        """Advance one second; finishing notifies and closes the panel."""
        if not self.active:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds <= 0:
            self.cancel()
            self.notifier.success("Rest time is over!")
            self.on_finished()

    def skip(self) -> None:
        """Finish immediately without a notification."""
        self.cancel()
        self.on_finished()

    def cancel(self) -> None:
        self.ticker.stop()
        self.remaining_seconds = 0


@dataclass
class FeedingTimerService:
    """State machine for the feeding panel.

    Elapsed time is always derived from clock deltas, never from counting
    display ticks, so a suspended process or a reload does not skew it.
    """

    store: TimerStateStore
    display_ticker: Ticker
    rest_ticker: Ticker
    notifier: Notifier
    feeding_sink: Callable[[FeedingLog], Awaitable[None]]
    clock: Clock = utc_now
    rest_seconds: int = DEFAULT_REST_SECONDS
    selected_side: FeedingSide | None = None
    run_state: RunState = RunState.IDLE
    accumulated_seconds: int = 0
    segment_start: datetime | None = None
    panel_open: bool = False
    display: str = "00:00"
    rest: RestCountdown = field(init=False)

    def __post_init__(self) -> None:
        self.rest = RestCountdown(
            ticker=self.rest_ticker,
            notifier=self.notifier,
            on_finished=self._close_after_rest,
            duration_seconds=self.rest_seconds,
        )

    @property
    def phase(self) -> PanelPhase:
        if self.rest.active:
            return PanelPhase.RESTING
        if self.run_state is not RunState.IDLE:
            return PanelPhase.TIMING
        if self.panel_open:
            return PanelPhase.CHOOSING_SIDE
        return PanelPhase.CLOSED

    def elapsed_seconds(self) -> int:
        """Return banked time plus the current running segment."""
        if self.run_state is RunState.RUNNING and self.segment_start is not None:
            delta = (self.clock() - self.segment_start).total_seconds()
            return self.accumulated_seconds + max(math.floor(delta), 0)
        return self.accumulated_seconds

    def open_panel(self) -> None:
        """Show the side chooser, discarding any previous session."""
        self._reset()
        self.store.clear()
        self.panel_open = True

    def select_side(self, side: FeedingSide) -> None:
        """Start timing a feeding on the given side."""
        if self.run_state is not RunState.IDLE:
            raise TimerStateError("A feeding is already being timed")
        self.rest.cancel()
        self.panel_open = True
        self.selected_side = side
        self.accumulated_seconds = 0
        self.segment_start = self.clock()
        self.run_state = RunState.RUNNING
        self._start_display()
        self._persist()
        logger.info("Feeding timer started", extra={"side": side.value})

    def pause(self) -> None:
        if self.run_state is not RunState.RUNNING:
            raise TimerStateError("Timer is not running")
        self.accumulated_seconds = self.elapsed_seconds()
        self.segment_start = None
        self.run_state = RunState.PAUSED
        self.display_ticker.stop()
        self._refresh_display()
        self._persist()

    def resume(self) -> None:
        if self.run_state is not RunState.PAUSED:
            raise TimerStateError("Timer is not paused")
        self.segment_start = self.clock()
        self.run_state = RunState.RUNNING
        self._start_display()
        self._persist()

    def toggle_pause(self) -> None:
        if self.run_state is RunState.PAUSED:
            self.resume()
        else:
            self.pause()

    async def stop(self) -> FeedingLog | None:
        """Finish the feeding, start the rest countdown and log it.

        Returns None when no feeding is being timed.
        """
        if self.run_state is RunState.IDLE or self.selected_side is None:
            return None
        ended_at = self.clock()
        duration = self.elapsed_seconds()
        feeding = FeedingLog(
            side=self.selected_side,
            start_time=ended_at - timedelta(seconds=duration),
            duration_seconds=duration,
            ended_at=ended_at,
        )
        self.display_ticker.stop()
        self.store.clear()
        self.selected_side = None
        self.run_state = RunState.IDLE
        self.accumulated_seconds = 0
        self.segment_start = None
        self.display = format_clock(0)
        self.rest.start()
        logger.info(
            "Feeding timer stopped",
            extra={"side": feeding.side.value, "duration": duration},
        )
        await self.feeding_sink(feeding)
        return feeding

    def close(self) -> None:
        """Discard the session without logging and close the panel."""
        self._reset()
        self.store.clear()

    def skip_rest(self) -> None:
        self.rest.skip()

    def restore(self) -> bool:
        """Rehydrate a persisted session; malformed data is discarded."""
        raw = self.store.load()
        if not raw:
            return False
        try:
            snapshot = TimerSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.info("Discarding malformed timer state")
            self.store.clear()
            return False
        if snapshot.run_state is RunState.IDLE or (
            snapshot.run_state is RunState.RUNNING and snapshot.segment_start is None
        ):
            self.store.clear()
            return False

        self.panel_open = True
        self.selected_side = snapshot.selected_side
        self.accumulated_seconds = snapshot.accumulated_seconds
        self.run_state = snapshot.run_state
        if snapshot.run_state is RunState.RUNNING:
            self.segment_start = snapshot.segment_start
            self._start_display()
        else:
            self.segment_start = None
            self._refresh_display()
        return True

    def snapshot(self) -> TimerSnapshot | None:
        if self.selected_side is None or self.run_state is RunState.IDLE:
            return None
        return TimerSnapshot(
            selected_side=self.selected_side,
            run_state=self.run_state,
            accumulated_seconds=self.accumulated_seconds,
            segment_start=(
                self.segment_start if self.run_state is RunState.RUNNING else None
            ),
        )

    def _persist(self) -> None:
        snapshot = self.snapshot()
        if snapshot is None:
            self.store.clear()
            return
        self.store.save(snapshot.model_dump_json())

    def _start_display(self) -> None:
        self.display_ticker.start(self._refresh_display)
        self._refresh_display()

    def _refresh_display(self) -> None:
        self.display = format_clock(self.elapsed_seconds())

    def _reset(self) -> None:
        self.display_ticker.stop()
        self.rest.cancel()
        self.selected_side = None
        self.run_state = RunState.IDLE
        self.accumulated_seconds = 0
        self.segment_start = None
        self.panel_open = False
        self.display = format_clock(0)

    def _close_after_rest(self) -> None:
        self._reset()
        self.store.clear()
