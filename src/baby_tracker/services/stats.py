"""Daily statistics and history grouping over event records."""

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from baby_tracker.domain.records import EventRecord, EventType
from baby_tracker.domain.summary import DailySummary, DayGroup

UNKNOWN_DAY_LABEL = "Unknown date"


def local_day_bounds(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return local midnight and the following local midnight for `now`."""
    local_now = now.astimezone(tz)
    start = datetime.combine(local_now.date(), datetime.min.time(), tzinfo=tz)
    next_day = local_now.date() + timedelta(days=1)
    end = datetime.combine(next_day, datetime.min.time(), tzinfo=tz)
    return start, end


def compute_daily_summary(records: Iterable[EventRecord]) -> DailySummary:
    """Aggregate records in a single pass.

    Durations are summed in seconds and rounded to minutes once at the end.
    "Most recent" fields compare timestamps, so input order does not matter
    for them. Duplicate vitamin records resolve to the last one seen.
    """
    feeding_count = 0
    total_duration_seconds = 0
    last_feeding_time: datetime | None = None
    temperature_count = 0
    latest_temperature: float | None = None
    latest_temperature_time: datetime | None = None
    pee_count = 0
    poop_count = 0
    vitamin_ids: dict[str, str | None] = {}

    for record in records:
        timestamp = record.timestamp
        record_type = record.type
        if record_type == EventType.FEEDING.value:
            feeding_count += 1
            total_duration_seconds += record.duration_seconds
            if timestamp and (
                last_feeding_time is None or timestamp > last_feeding_time
            ):
                last_feeding_time = timestamp
        elif record_type == EventType.TEMPERATURE.value:
            temperature_count += 1
            if timestamp and (
                latest_temperature_time is None or timestamp > latest_temperature_time
            ):
                latest_temperature = record.temperature
                latest_temperature_time = timestamp
        elif record_type == EventType.PEE.value:
            pee_count += 1
        elif record_type == EventType.POOP.value:
            poop_count += 1
        elif record_type in (EventType.VITAMIN_D.value, EventType.VITAMIN_K.value):
            vitamin_ids[record_type] = record.id

    return DailySummary(
        feeding_count=feeding_count,
        total_feeding_minutes=_round_half_up(total_duration_seconds / 60),
        last_feeding_time=last_feeding_time,
        temperature_count=temperature_count,
        latest_temperature=latest_temperature,
        latest_temperature_time=latest_temperature_time,
        pee_count=pee_count,
        poop_count=poop_count,
        vitamin_d_given=EventType.VITAMIN_D.value in vitamin_ids,
        vitamin_d_record_id=vitamin_ids.get(EventType.VITAMIN_D.value),
        vitamin_k_given=EventType.VITAMIN_K.value in vitamin_ids,
        vitamin_k_record_id=vitamin_ids.get(EventType.VITAMIN_K.value),
    )


def group_records_by_day(
    records: Iterable[EventRecord], tz: ZoneInfo
) -> list[DayGroup]:
    """Partition records by local calendar day, keeping their input order."""
    groups: dict[date | None, DayGroup] = {}
    for record in records:
        timestamp = record.timestamp
        day = timestamp.astimezone(tz).date() if timestamp else None
        group = groups.get(day)
        if group is None:
            label = day_label(day) if day else UNKNOWN_DAY_LABEL
            group = DayGroup(day=day, label=label)
            groups[day] = group
        group.records.append(record)
    return list(groups.values())


def day_label(day: date) -> str:
    """Return a long day label such as `Monday, October 19, 2026`."""
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
