"""Daily vitamin toggles backed by create/delete on the record store."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from baby_tracker.adapters.airtable_client import RecordStoreClient
from baby_tracker.domain.records import VITAMIN_TYPES, EventType, format_timestamp
from baby_tracker.domain.summary import DailySummary
from baby_tracker.errors import RecordStoreError
from baby_tracker.services.formatting import VITAMIN_LABELS
from baby_tracker.services.notifications import Notifier
from baby_tracker.services.scheduling import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class VitaminState:
    """Whether a vitamin was given today and the record that says so."""

    given: bool = False
    record_id: str | None = None


def _initial_states() -> dict[EventType, VitaminState]:
    return {vitamin: VitaminState() for vitamin in VITAMIN_TYPES}


@dataclass
class VitaminToggleCoordinator:
    """Two independent toggles sharing one in-flight guard."""

    client: RecordStoreClient
    notifier: Notifier
    refresh: Callable[[], Awaitable[None]]
    clock: Clock = utc_now
    states: dict[EventType, VitaminState] = field(default_factory=_initial_states)
    busy: bool = False

    async def toggle(self, vitamin: EventType, given: bool) -> bool:
        """Apply a toggle and return the state the control should show.

        While another toggle is in flight the attempt is reverted without a
        network call. A failed create or delete also reverts.
        """
        if vitamin not in self.states:
            raise ValueError(f"{vitamin} is not a vitamin")
        state = self.states[vitamin]
        if self.busy:
            return state.given
        if given == state.given:
            return state.given

        self.busy = True
        try:
            if given:
                await self._give(vitamin, state)
            else:
                await self._remove(vitamin, state)
            await self.refresh()
        except RecordStoreError:
            logger.info("Vitamin toggle reverted", extra={"vitamin": vitamin.value})
        finally:
            self.busy = False
        return self.states[vitamin].given

    def sync_from_summary(self, summary: DailySummary) -> None:
        """Align toggles with what today's records say."""
        self.states[EventType.VITAMIN_D] = VitaminState(
            given=summary.vitamin_d_given, record_id=summary.vitamin_d_record_id
        )
        self.states[EventType.VITAMIN_K] = VitaminState(
            given=summary.vitamin_k_given, record_id=summary.vitamin_k_record_id
        )

    async def _give(self, vitamin: EventType, state: VitaminState) -> None:
        record = await self.client.create_record(
            {"Type": vitamin.value, "Timestamp": format_timestamp(self.clock())}
        )
        state.given = True
        state.record_id = record.id
        self.notifier.success(f"{VITAMIN_LABELS[vitamin]} logged")

    async def _remove(self, vitamin: EventType, state: VitaminState) -> None:
        if state.record_id:
            await self.client.delete_record(state.record_id)
            self.notifier.success(f"{VITAMIN_LABELS[vitamin]} removed")
        state.given = False
        state.record_id = None
