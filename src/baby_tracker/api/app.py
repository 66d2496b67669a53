"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from baby_tracker.api.models import (
    SettingsRequest,
    TemperatureAdjustRequest,
    TemperatureRequest,
    VitaminRequest,
)
from baby_tracker.app_logging import configure_logging
from baby_tracker.containers import AppContainer
from baby_tracker.domain.records import (
    VITAMIN_TYPES,
    EventRecord,
    EventType,
    FeedingSide,
)
from baby_tracker.domain.summary import DailySummary, DayGroup
from baby_tracker.errors import (
    NotConfiguredError,
    RecordStoreConnectionError,
    RecordStoreError,
    UnauthorizedError,
)
from baby_tracker.services.formatting import (
    describe_event,
    event_icon,
    event_time,
    format_time_since,
    format_today_label,
    temperature_detail,
)
from baby_tracker.services.timer import FeedingTimerService, TimerStateError


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if state_container.timer_service.restore():
            logger.info("Restored feeding timer session")
        if state_container.credentials_service.is_configured():
            await state_container.sync_service.refresh_all()
        else:
            state_container.credentials_service.request_configuration()
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RecordStoreError)
    async def record_store_error(
        request: Request, exc: RecordStoreError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=_status_for(exc), content={"detail": str(exc)}
        )

    @app.exception_handler(TimerStateError)
    async def timer_state_error(request: Request, exc: TimerStateError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/today")
    async def today(request: Request) -> dict[str, object]:
        """Return the last computed summary for today."""
        state_container: AppContainer = request.app.state.container
        return _serialize_summary(state_container, state_container.sync_service.summary)

    @app.get("/history")
    async def history(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return _serialize_history(state_container)

    @app.post("/history/more")
    async def history_more(request: Request) -> dict[str, object]:
        """Load the next history page."""
        state_container: AppContainer = request.app.state.container
        await state_container.sync_service.load_history_page()
        return _serialize_history(state_container)

    @app.post("/refresh")
    async def refresh(request: Request) -> dict[str, object]:
        """Re-fetch today and reset history."""
        state_container: AppContainer = request.app.state.container
        await state_container.sync_service.refresh_all()
        return {
            "today": _serialize_summary(
                state_container, state_container.sync_service.summary
            ),
            "history": _serialize_history(state_container),
        }

    @app.post("/events/pee", status_code=status.HTTP_201_CREATED)
    async def log_pee(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        record = await state_container.event_log_service.log_pee()
        return _serialize_record(state_container, record)

    @app.post("/events/poop", status_code=status.HTTP_201_CREATED)
    async def log_poop(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        record = await state_container.event_log_service.log_poop()
        return _serialize_record(state_container, record)

    @app.post("/temperature/open")
    async def open_temperature(request: Request) -> dict[str, float]:
        """Open the temperature input; this closes the feeding panel."""
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.close()
        return {"temperature": state_container.temperature_stepper.reset()}

    @app.post("/temperature/adjust")
    async def adjust_temperature(
        body: TemperatureAdjustRequest, request: Request
    ) -> dict[str, float]:
        state_container: AppContainer = request.app.state.container
        return {"temperature": state_container.temperature_stepper.adjust(body.delta)}

    @app.post("/events/temperature", status_code=status.HTTP_201_CREATED)
    async def log_temperature(
        body: TemperatureRequest, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        value = body.temperature
        if value is None:
            value = state_container.temperature_stepper.value
        try:
            record = await state_container.event_log_service.log_temperature(value)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        return _serialize_record(state_container, record)

    @app.delete("/events/{record_id}")
    async def delete_event(
        record_id: str, request: Request, confirm: bool = False
    ) -> dict[str, bool]:
        """Delete an entry; requires `confirm=true`."""
        state_container: AppContainer = request.app.state.container
        deleted = await state_container.event_log_service.delete_entry(
            record_id, confirm=lambda: confirm
        )
        return {"deleted": deleted}

    @app.get("/timer")
    async def timer(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/open")
    async def timer_open(request: Request) -> dict[str, object]:
        """Open the feeding panel, discarding any previous session."""
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.open_panel()
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/side/{side}")
    async def timer_select_side(
        side: FeedingSide, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.select_side(side)
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/pause")
    async def timer_pause(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.pause()
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/resume")
    async def timer_resume(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.resume()
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/stop")
    async def timer_stop(request: Request) -> dict[str, object]:
        """Stop timing, log the feeding and start the rest countdown."""
        state_container: AppContainer = request.app.state.container
        feeding = await state_container.timer_service.stop()
        payload = _serialize_timer(state_container.timer_service)
        payload["logged_duration_seconds"] = (
            feeding.duration_seconds if feeding else None
        )
        return payload

    @app.post("/timer/close")
    async def timer_close(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.close()
        return _serialize_timer(state_container.timer_service)

    @app.post("/timer/rest/skip")
    async def timer_skip_rest(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.timer_service.skip_rest()
        return _serialize_timer(state_container.timer_service)

    @app.post("/vitamins/{vitamin}")
    async def toggle_vitamin(
        vitamin: EventType, body: VitaminRequest, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        if vitamin not in VITAMIN_TYPES:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        given = await state_container.vitamin_coordinator.toggle(vitamin, body.given)
        return {"vitamin": vitamin.value, "given": given}

    @app.get("/settings")
    async def get_settings(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        credentials = state_container.credentials_service
        return {
            "configured": credentials.is_configured(),
            "configuration_requested": credentials.configuration_requested,
            "base_id": credentials.current.base_id,
            "table_name": credentials.current.table_name,
        }

    @app.put("/settings")
    async def save_settings(
        body: SettingsRequest, request: Request
    ) -> dict[str, object]:
        """Save credentials and refresh everything."""
        state_container: AppContainer = request.app.state.container
        try:
            state_container.credentials_service.save(
                body.token, body.base_id, body.table_name
            )
        except ValueError as exc:
            state_container.notifier.error(str(exc))
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        state_container.notifier.success("Settings saved")
        await state_container.sync_service.refresh_all()
        return await get_settings(request)

    @app.get("/toast")
    async def toast(request: Request) -> dict[str, object] | None:
        state_container: AppContainer = request.app.state.container
        current = state_container.notifier.current()
        if current is None:
            return None
        return {"message": current.message, "level": current.level}

    return app


def _status_for(exc: RecordStoreError) -> int:
    if isinstance(exc, NotConfiguredError):
        return status.HTTP_412_PRECONDITION_FAILED
    if isinstance(exc, UnauthorizedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, RecordStoreConnectionError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_502_BAD_GATEWAY


def _serialize_record(
    container: AppContainer, record: EventRecord
) -> dict[str, object]:
    return {
        "id": record.id,
        "type": record.type,
        "icon": event_icon(record),
        "description": describe_event(record),
        "time": event_time(record, container.timezone),
        "fields": record.fields,
    }


def _serialize_summary(
    container: AppContainer, summary: DailySummary
) -> dict[str, object]:
    now = container.sync_service.clock()
    last_feed = (
        f"Last feed: {format_time_since(summary.last_feeding_time, now)}"
        if summary.last_feeding_time
        else ""
    )
    latest_temperature = (
        f"{summary.latest_temperature:.1f}°"
        if summary.latest_temperature is not None
        else "–"
    )
    return {
        "date_label": format_today_label(now, container.timezone),
        "feeding_count": summary.feeding_count,
        "feeding_detail": f"{summary.total_feeding_minutes} min",
        "last_feed": last_feed,
        "temperature": latest_temperature,
        "temperature_detail": (
            temperature_detail(summary.temperature_count)
            if summary.latest_temperature is not None
            else ""
        ),
        "pee_count": summary.pee_count,
        "poop_count": summary.poop_count,
        "vitamin_d": summary.vitamin_d_given,
        "vitamin_k": summary.vitamin_k_given,
    }


def _serialize_group(container: AppContainer, group: DayGroup) -> dict[str, object]:
    return {
        "label": group.label,
        "records": [_serialize_record(container, record) for record in group.records],
    }


def _serialize_history(container: AppContainer) -> dict[str, object]:
    history = container.sync_service.history
    return {
        "groups": [
            _serialize_group(container, group)
            for group in container.sync_service.history_groups()
        ],
        "has_more": history.has_more,
        "empty": history.is_empty,
        "loading": history.loading,
    }


def _serialize_timer(timer: FeedingTimerService) -> dict[str, object]:
    return {
        "phase": timer.phase.value,
        "side": timer.selected_side.value if timer.selected_side else None,
        "run_state": timer.run_state.value,
        "elapsed_seconds": timer.elapsed_seconds(),
        "display": timer.display,
        "rest_remaining_seconds": timer.rest.remaining_seconds,
        "rest_display": timer.rest.display,
    }
