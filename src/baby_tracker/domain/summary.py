"""Domain models for derived statistics."""

from dataclasses import dataclass, field
from datetime import date, datetime

from baby_tracker.domain.records import EventRecord


@dataclass(frozen=True)
class DailySummary:
    """Aggregates over today's records."""

    feeding_count: int = 0
    total_feeding_minutes: int = 0
    last_feeding_time: datetime | None = None
    temperature_count: int = 0
    latest_temperature: float | None = None
    latest_temperature_time: datetime | None = None
    pee_count: int = 0
    poop_count: int = 0
    vitamin_d_given: bool = False
    vitamin_d_record_id: str | None = None
    vitamin_k_given: bool = False
    vitamin_k_record_id: str | None = None


@dataclass
class DayGroup:
    """History records that share a local calendar day."""

    day: date | None
    label: str
    records: list[EventRecord] = field(default_factory=list)
