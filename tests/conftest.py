"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from baby_tracker.adapters.airtable_client import RecordStoreClient
from baby_tracker.adapters.timer_state_store import TimerStateStore
from baby_tracker.config import Settings
from baby_tracker.containers import AppContainer
from baby_tracker.domain.records import EventRecord, RecordPage, SortSpec
from baby_tracker.errors import RecordStoreError
from baby_tracker.services.credentials import CredentialsService
from baby_tracker.services.events import EventLogService, TemperatureStepper
from baby_tracker.services.notifications import Notifier, ToastNotifier
from baby_tracker.services.scheduling import Ticker
from baby_tracker.services.sync import SyncService
from baby_tracker.services.timer import FeedingTimerService
from baby_tracker.services.vitamins import VitaminToggleCoordinator

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=UTC)


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class ManualTicker(Ticker):
    """Ticker driven by the test."""

    callback: Callable[[], None] | None = None
    starts: int = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        self.callback = None

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


@dataclass
class InMemoryTimerStateStore(TimerStateStore):
    """In-memory timer state store for tests."""

    payload: str | None = None
    saves: int = 0

    def load(self) -> str | None:
        return self.payload

    def save(self, payload: str) -> None:
        self.payload = payload
        self.saves += 1

    def clear(self) -> None:
        self.payload = None


@dataclass
class RecordingNotifier(Notifier):
    """Notifier that records every message."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))


@dataclass
class InMemoryRecordStore(RecordStoreClient):
    """In-memory record store that pages newest first."""

    records: list[EventRecord] = field(default_factory=list)
    page_size: int = 100
    created: list[dict[str, object]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    list_calls: list[dict[str, object]] = field(default_factory=list)
    create_error: RecordStoreError | None = None
    delete_error: RecordStoreError | None = None
    list_error: RecordStoreError | None = None
    next_id: int = 1

    async def create_record(self, fields: dict[str, object]) -> EventRecord:
        if self.create_error is not None:
            raise self.create_error
        self.created.append(fields)
        record = EventRecord(id=f"rec{self.next_id}", fields=dict(fields))
        self.next_id += 1
        self.records.append(record)
        return record

    async def delete_record(self, record_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(record_id)
        self.records = [record for record in self.records if record.id != record_id]

    async def list_records(
        self,
        *,
        filter_formula: str | None = None,
        sort: list[SortSpec] | None = None,
        page_size: int | None = None,
        offset: str | None = None,
    ) -> RecordPage:
        self.list_calls.append(
            {"filter_formula": filter_formula, "page_size": page_size, "offset": offset}
        )
        if self.list_error is not None:
            raise self.list_error
        ordered = sorted(
            self.records,
            key=lambda record: record.timestamp or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )
        size = page_size or self.page_size
        start = int(offset) if offset else 0
        end = start + size
        next_offset = str(end) if end < len(ordered) else None
        return RecordPage(records=ordered[start:end], offset=next_offset)


def make_record(
    record_id: str, record_type: str, timestamp: datetime, **fields: object
) -> EventRecord:
    """Build a record the way the record store returns it."""
    stamp = timestamp.astimezone(UTC).isoformat().replace("+00:00", "Z")
    return EventRecord(
        id=record_id, fields={"Type": record_type, "Timestamp": stamp, **fields}
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def timer_store() -> InMemoryTimerStateStore:
    return InMemoryTimerStateStore()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        airtable_token="pat-test",
        airtable_base_id="appTEST",
        airtable_table_name="BabyLog",
        timer_state_path=str(tmp_path / "timer_state.json"),
        timezone="UTC",
    )


@pytest.fixture
def container(
    settings: Settings,
    clock: FakeClock,
    record_store: InMemoryRecordStore,
    timer_store: InMemoryTimerStateStore,
) -> AppContainer:
    timezone = ZoneInfo(settings.timezone)
    toast_notifier = ToastNotifier(clock=clock)
    sync_service = SyncService(client=record_store, timezone=timezone, clock=clock)
    event_log_service = EventLogService(
        client=record_store,
        notifier=toast_notifier,
        sync_service=sync_service,
        clock=clock,
    )
    timer_service = FeedingTimerService(
        store=timer_store,
        display_ticker=ManualTicker(),
        rest_ticker=ManualTicker(),
        notifier=toast_notifier,
        feeding_sink=event_log_service.log_feeding,
        clock=clock,
    )
    vitamin_coordinator = VitaminToggleCoordinator(
        client=record_store,
        notifier=toast_notifier,
        refresh=sync_service.refresh_all,
        clock=clock,
    )
    sync_service.summary_listeners.append(vitamin_coordinator.sync_from_summary)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        timezone=timezone,
        credentials_service=CredentialsService.from_settings(settings),
        notifier=toast_notifier,
        record_client=record_store,
        sync_service=sync_service,
        event_log_service=event_log_service,
        timer_service=timer_service,
        vitamin_coordinator=vitamin_coordinator,
        temperature_stepper=TemperatureStepper(),
        close_resources=close_resources,
    )
