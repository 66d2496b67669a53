"""Logging and deleting individual events."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from baby_tracker.adapters.airtable_client import RecordStoreClient
from baby_tracker.domain.records import (
    EventRecord,
    EventType,
    FeedingLog,
    format_timestamp,
)
from baby_tracker.services.formatting import duration_minutes, side_label
from baby_tracker.services.notifications import Notifier
from baby_tracker.services.scheduling import Clock, utc_now
from baby_tracker.services.sync import SyncService

logger = logging.getLogger(__name__)

MIN_TEMPERATURE = 34.0
MAX_TEMPERATURE = 42.0
DEFAULT_TEMPERATURE = 37.0
TEMPERATURE_STEP = 0.1


@dataclass
class TemperatureStepper:
    """Temperature input adjusted in tenths of a degree."""

    value: float = DEFAULT_TEMPERATURE

    def reset(self) -> float:
        self.value = DEFAULT_TEMPERATURE
        return self.value

    def adjust(self, delta: float) -> float:
        """Shift by `delta`, rounding to one decimal and clamping to range."""
        adjusted = round(self.value + delta, 1)
        self.value = min(max(adjusted, MIN_TEMPERATURE), MAX_TEMPERATURE)
        return self.value


def validate_temperature(value: float) -> float:
    """Return the reading rounded to one decimal, rejecting out-of-range values."""
    if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        raise ValueError(
            f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE} °C"
        )
    return round(value, 1)


@dataclass
class EventLogService:
    """Creates and deletes event records, then re-syncs derived views."""

    client: RecordStoreClient
    notifier: Notifier
    sync_service: SyncService
    clock: Clock = utc_now

    async def log_pee(self) -> EventRecord:
        return await self._log(
            {"Type": EventType.PEE.value}, "Pee diaper logged"
        )

    async def log_poop(self) -> EventRecord:
        return await self._log(
            {"Type": EventType.POOP.value}, "Poop diaper logged"
        )

    async def log_temperature(self, temperature: float) -> EventRecord:
        value = validate_temperature(temperature)
        return await self._log(
            {"Type": EventType.TEMPERATURE.value, "Temperature": value},
            f"Temperature logged ({value:.1f} °C)",
        )

    async def log_feeding(self, feeding: FeedingLog) -> EventRecord:
        """Record a feeding measured by the timer; `Timestamp` is its end."""
        minutes = duration_minutes(feeding.duration_seconds)
        return await self._log(
            {
                "Type": EventType.FEEDING.value,
                "Timestamp": format_timestamp(feeding.ended_at),
                "Side": feeding.side.value,
                "StartTime": format_timestamp(feeding.start_time),
                "Duration": feeding.duration_seconds,
            },
            f"Feeding logged ({side_label(feeding.side.value)}, {minutes} min)",
        )

    async def delete_entry(self, record_id: str, confirm: Callable[[], bool]) -> bool:
        """Delete a record once the user confirms; returns False if declined."""
        if not confirm():
            return False
        await self.client.delete_record(record_id)
        logger.info("Deleted entry", extra={"record_id": record_id})
        self.notifier.success("Entry deleted")
        await self.sync_service.refresh_all()
        return True

    async def _log(self, fields: dict[str, object], message: str) -> EventRecord:
        payload = {"Timestamp": format_timestamp(self.clock()), **fields}
        record = await self.client.create_record(payload)
        logger.info("Logged event", extra={"type": payload["Type"], "id": record.id})
        self.notifier.success(message)
        await self.sync_service.refresh_all()
        return record
