"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

from baby_tracker.adapters.airtable_client import HttpxAirtableClient, RecordStoreClient
from baby_tracker.adapters.timer_state_store import JsonFileTimerStateStore
from baby_tracker.config import Settings
from baby_tracker.services.credentials import CredentialsService
from baby_tracker.services.events import EventLogService, TemperatureStepper
from baby_tracker.services.notifications import ToastNotifier
from baby_tracker.services.scheduling import AsyncioTicker
from baby_tracker.services.sync import SyncService
from baby_tracker.services.timer import FeedingTimerService
from baby_tracker.services.vitamins import VitaminToggleCoordinator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    timezone: ZoneInfo
    credentials_service: CredentialsService
    notifier: ToastNotifier
    record_client: RecordStoreClient
    sync_service: SyncService
    event_log_service: EventLogService
    timer_service: FeedingTimerService
    vitamin_coordinator: VitaminToggleCoordinator
    temperature_stepper: TemperatureStepper
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timezone = ZoneInfo(resolved_settings.timezone)
    credentials_service = CredentialsService.from_settings(resolved_settings)
    notifier = ToastNotifier(duration_seconds=resolved_settings.toast_seconds)
    record_client = HttpxAirtableClient.create(
        credentials=credentials_service,
        notifier=notifier,
        api_url=resolved_settings.airtable_api_url,
        retry_delay_seconds=resolved_settings.rate_limit_delay_seconds,
        max_retries=resolved_settings.rate_limit_max_retries,
    )
    sync_service = SyncService(
        client=record_client,
        timezone=timezone,
        page_size=resolved_settings.history_page_size,
    )
    event_log_service = EventLogService(
        client=record_client,
        notifier=notifier,
        sync_service=sync_service,
    )
    timer_service = FeedingTimerService(
        store=JsonFileTimerStateStore(Path(resolved_settings.timer_state_path)),
        display_ticker=AsyncioTicker(),
        rest_ticker=AsyncioTicker(),
        notifier=notifier,
        feeding_sink=event_log_service.log_feeding,
        rest_seconds=resolved_settings.rest_seconds,
    )
    vitamin_coordinator = VitaminToggleCoordinator(
        client=record_client,
        notifier=notifier,
        refresh=sync_service.refresh_all,
    )
    sync_service.summary_listeners.append(vitamin_coordinator.sync_from_summary)

    async def close_resources() -> None:
        timer_service.display_ticker.stop()
        timer_service.rest_ticker.stop()
        await record_client.close()

    return AppContainer(
        settings=resolved_settings,
        timezone=timezone,
        credentials_service=credentials_service,
        notifier=notifier,
        record_client=record_client,
        sync_service=sync_service,
        event_log_service=event_log_service,
        timer_service=timer_service,
        vitamin_coordinator=vitamin_coordinator,
        temperature_stepper=TemperatureStepper(),
        close_resources=close_resources,
    )
