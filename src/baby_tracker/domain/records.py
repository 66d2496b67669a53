"""Domain models for logged events."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum


class EventType(str, Enum):
    """Kinds of events stored in the record table."""

    PEE = "pee"
    POOP = "poop"
    FEEDING = "feeding"
    TEMPERATURE = "temperature"
    VITAMIN_D = "vitamin_d"
    VITAMIN_K = "vitamin_k"


class FeedingSide(str, Enum):
    """Breast side used for a feeding."""

    LEFT = "left"
    RIGHT = "right"


VITAMIN_TYPES = (EventType.VITAMIN_D, EventType.VITAMIN_K)


@dataclass(frozen=True)
class EventRecord:
    """A record as returned by the record store."""

    id: str
    fields: dict[str, object]

    @property
    def type(self) -> str:
        return str(self.fields.get("Type") or "")

    @property
    def timestamp(self) -> datetime | None:
        return parse_timestamp(self.fields.get("Timestamp"))

    @property
    def start_time(self) -> datetime | None:
        return parse_timestamp(self.fields.get("StartTime"))

    @property
    def side(self) -> str | None:
        value = self.fields.get("Side")
        return str(value) if value else None

    @property
    def duration_seconds(self) -> int:
        value = self.fields.get("Duration")
        if isinstance(value, int | float):
            return int(value)
        return 0

    @property
    def temperature(self) -> float | None:
        value = self.fields.get("Temperature")
        if isinstance(value, int | float):
            return float(value)
        return None

    @classmethod
    def from_api(cls, payload: dict[str, object]) -> "EventRecord":
        """Build a record from an API `{id, fields}` object."""
        fields = payload.get("fields")
        return cls(
            id=str(payload.get("id", "")),
            fields=dict(fields) if isinstance(fields, dict) else {},
        )


@dataclass(frozen=True)
class RecordPage:
    """One page of a list call."""

    records: list[EventRecord]
    offset: str | None = None


@dataclass(frozen=True)
class SortSpec:
    """Sort clause for list calls."""

    field: str
    direction: str = "asc"


@dataclass(frozen=True)
class FeedingLog:
    """A completed feeding measured by the timer."""

    side: FeedingSide
    start_time: datetime
    duration_seconds: int
    ended_at: datetime


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing `Z`."""
    if not isinstance(value, str) or not value:
        return None
    raw = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as UTC ISO-8601 with milliseconds and `Z`."""
    formatted = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return formatted.replace("+00:00", "Z")
