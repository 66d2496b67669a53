"""Display strings derived from records, summaries and timer state."""

import math
from datetime import datetime
from zoneinfo import ZoneInfo

from baby_tracker.domain.records import EventRecord, EventType

SECONDS_PER_MINUTE = 60
MINUTES_PER_HOUR = 60

EVENT_ICONS = {
    EventType.FEEDING.value: "\U0001f37c",
    EventType.TEMPERATURE.value: "\U0001f321",
    EventType.PEE.value: "\U0001f4a7",
    EventType.POOP.value: "\U0001f4a9",
    EventType.VITAMIN_D.value: "☀️",
    EventType.VITAMIN_K.value: "\U0001f48a",
}

VITAMIN_LABELS = {
    EventType.VITAMIN_D: "Vitamin D",
    EventType.VITAMIN_K: "Vitamin K",
}


def format_clock(total_seconds: int) -> str:
    """Format seconds as `MM:SS`; minutes are not wrapped at an hour."""
    seconds = max(int(total_seconds), 0)
    minutes, rest = divmod(seconds, SECONDS_PER_MINUTE)
    return f"{minutes:02d}:{rest:02d}"


def format_time_since(then: datetime, now: datetime) -> str:
    """Return a relative label like `just now`, `5m ago` or `2h 3m ago`."""
    diff_minutes = math.floor((now - then).total_seconds() / SECONDS_PER_MINUTE)
    if diff_minutes < 1:
        return "just now"
    if diff_minutes < MINUTES_PER_HOUR:
        return f"{diff_minutes}m ago"
    hours, minutes = divmod(diff_minutes, MINUTES_PER_HOUR)
    return f"{hours}h {minutes}m ago"


def format_today_label(now: datetime, tz: ZoneInfo) -> str:
    local = now.astimezone(tz)
    return f"{local:%A}, {local:%B} {local.day}"


def side_label(side: str | None) -> str:
    return side.capitalize() if side else ""


def duration_minutes(duration_seconds: int) -> int:
    """Round a duration to whole minutes, halves rounding up."""
    return math.floor(duration_seconds / SECONDS_PER_MINUTE + 0.5)


def describe_event(record: EventRecord) -> str:
    """Return the one-line description shown in the history list."""
    record_type = record.type
    if record_type == EventType.FEEDING.value:
        minutes = duration_minutes(record.duration_seconds)
        return f"Feeding – {side_label(record.side)}, {minutes} min"
    if record_type == EventType.TEMPERATURE.value:
        return f"Temperature: {record.temperature or 0:.1f} °C"
    if record_type == EventType.PEE.value:
        return "Pee diaper"
    if record_type == EventType.POOP.value:
        return "Poop diaper"
    if record_type == EventType.VITAMIN_D.value:
        return "Vitamin D given"
    if record_type == EventType.VITAMIN_K.value:
        return "Vitamin K given"
    return record_type or "Unknown"


def event_icon(record: EventRecord) -> str:
    return EVENT_ICONS.get(record.type, "")


def event_time(record: EventRecord, tz: ZoneInfo) -> str:
    """Return `HH:MM`; feedings show when they started."""
    moment = None
    if record.type == EventType.FEEDING.value:
        moment = record.start_time
    moment = moment or record.timestamp
    if moment is None:
        return ""
    return f"{moment.astimezone(tz):%H:%M}"


def temperature_detail(count: int) -> str:
    return f"{count} reading{'' if count == 1 else 's'}"
