"""Domain models for the feeding timer."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from baby_tracker.domain.records import FeedingSide


class RunState(str, Enum):
    """Run state of the feeding stopwatch."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class PanelPhase(str, Enum):
    """Visible phase of the feeding panel."""

    CLOSED = "closed"
    CHOOSING_SIDE = "choosing_side"
    TIMING = "timing"
    RESTING = "resting"


class TimerSnapshot(BaseModel):
    """Persisted timer session tuple.

    `segment_start` is only set while running.
    """

    selected_side: FeedingSide
    run_state: RunState
    accumulated_seconds: int = Field(default=0, ge=0)
    segment_start: datetime | None = None

    @field_validator("segment_start")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
