"""Today and history synchronization against the record store."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from baby_tracker.adapters.airtable_client import RecordStoreClient
from baby_tracker.domain.records import EventRecord, SortSpec, format_timestamp
from baby_tracker.domain.summary import DailySummary, DayGroup
from baby_tracker.errors import BabyTrackerError
from baby_tracker.services.scheduling import Clock, utc_now
from baby_tracker.services.stats import (
    compute_daily_summary,
    group_records_by_day,
    local_day_bounds,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "Timestamp"
NEWEST_FIRST = [SortSpec(field=TIMESTAMP_FIELD, direction="desc")]


@dataclass
class HistoryState:
    """Pages of history loaded so far."""

    records: list[EventRecord] = field(default_factory=list)
    offset: str | None = None
    pages_loaded: int = 0
    loading: bool = False

    @property
    def has_more(self) -> bool:
        return self.offset is not None

    @property
    def is_empty(self) -> bool:
        return self.pages_loaded > 0 and not self.records


@dataclass
class SyncService:
    """Fetches today's records and paged history, and derives summaries."""

    client: RecordStoreClient
    timezone: ZoneInfo
    page_size: int = 100
    clock: Clock = utc_now
    summary: DailySummary = field(default_factory=DailySummary)
    history: HistoryState = field(default_factory=HistoryState)
    summary_listeners: list[Callable[[DailySummary], None]] = field(
        default_factory=list
    )

    async def fetch_today_records(self) -> list[EventRecord]:
        """Return all of today's records, newest first, across every page."""
        start, end = local_day_bounds(self.clock(), self.timezone)
        formula = (
            f"AND({{{TIMESTAMP_FIELD}}} >= '{format_timestamp(start)}', "
            f"{{{TIMESTAMP_FIELD}}} < '{format_timestamp(end)}')"
        )
        records: list[EventRecord] = []
        offset: str | None = None
        while True:
            page = await self.client.list_records(
                filter_formula=formula,
                sort=NEWEST_FIRST,
                page_size=self.page_size,
                offset=offset,
            )
            records.extend(page.records)
            offset = page.offset
            if not offset:
                return records

    async def refresh_today(self) -> DailySummary:
        """Recompute today's summary from scratch."""
        records = await self.fetch_today_records()
        self.summary = compute_daily_summary(records)
        for listener in self.summary_listeners:
            listener(self.summary)
        return self.summary

    async def load_history_page(self) -> bool:
        """Append the next history page; returns False when skipped.

        A load already running causes the call to be skipped. A reset during
        a load discards that load's page.
        """
        state = self.history
        if state.loading:
            return False
        if state.pages_loaded and not state.has_more:
            return False
        state.loading = True
        try:
            page = await self.client.list_records(
                sort=NEWEST_FIRST,
                page_size=self.page_size,
                offset=state.offset,
            )
        finally:
            state.loading = False
        if self.history is not state:
            return False
        state.records.extend(page.records)
        state.offset = page.offset
        state.pages_loaded += 1
        return True

    async def refresh_history(self) -> None:
        """Drop every loaded page and load the first one again."""
        self.history = HistoryState()
        await self.load_history_page()

    async def refresh_all(self) -> None:
        """Refresh today and history together; failures are logged."""
        await asyncio.gather(
            self._guarded(self.refresh_today, "Today refresh failed"),
            self._guarded(self.refresh_history, "History refresh failed"),
        )

    def history_groups(self) -> list[DayGroup]:
        return group_records_by_day(self.history.records, self.timezone)

    async def _guarded(self, refresh: Callable, message: str) -> None:
        try:
            await refresh()
        except BabyTrackerError:
            logger.exception(message)
