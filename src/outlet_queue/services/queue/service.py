"""High-level orchestration for queue admission, transitions and snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ...config import Settings, settings
from ...errors import NotFound
from ...models.domain import EntryStatus, Priority, QueueAggregate, QueueEntry
from ...persistence.base import QueueRepository
from ..directory import OutletDirectory
from .admission import AdmissionController
from .ledger import QueueLedger
from .locks import OutletDayLocks
from .transitions import ServiceTransitionEngine


@dataclass(slots=True)
class QueueSnapshot:
    outlet_id: str
    business_day: date
    currently_serving: Optional[str]
    total_waiting: int
    total_served: int
    average_wait_seconds: int
    next_tokens: list[str]
    peak_hours: dict[int, int] = field(default_factory=dict)


def local_clock(config: Settings) -> Callable[[], datetime]:
    zone = ZoneInfo(config.timezone)
    return lambda: datetime.now(zone)


class QueueService:
    """Entry point used by the HTTP layer.

    One instance per repository handle; every collaborator receives the same
    repository, configuration and clock.
    """

    def __init__(
        self,
        repository: QueueRepository,
        config: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or settings
        self.repository = repository
        self.clock = clock or local_clock(self.config)
        self.directory = OutletDirectory(repository)
        self.ledger = QueueLedger(repository, self.config, self.clock)
        locks = OutletDayLocks(self.config.lock_timeout_seconds)
        self._locks = locks
        self.admission = AdmissionController(repository, self.directory, self.ledger, locks, self.config, self.clock)
        self.transitions = ServiceTransitionEngine(
            repository, self.directory, self.ledger, locks, self.config, self.clock
        )

    def today(self) -> date:
        return self.clock().date()

    def register(
        self,
        name: str,
        contact: str,
        service_type: str,
        outlet_id: str,
        priority: Priority | str | None = Priority.NORMAL,
        email: Optional[str] = None,
    ) -> QueueEntry:
        return self.admission.register(name, contact, service_type, outlet_id, priority=priority, email=email)

    def transition(
        self,
        entry_id: str,
        target_status: EntryStatus | str,
        officer_id: Optional[str] = None,
    ) -> QueueEntry:
        return self.transitions.transition(entry_id, target_status, officer_id)

    def submit_feedback(self, entry_id: str, rating: int, comment: Optional[str] = None) -> QueueEntry:
        return self.transitions.submit_feedback(entry_id, rating, comment)

    def get_queue_snapshot(self, outlet_id: str, day: Optional[date] = None) -> QueueSnapshot:
        outlet = self.directory.get_outlet(outlet_id)
        day = day or self.today()
        aggregate = self.ledger.load_aggregate(outlet.id, day)
        waiting = self.ledger.waiting(outlet.id, day)
        return QueueSnapshot(
            outlet_id=outlet.id,
            business_day=day,
            currently_serving=aggregate.currently_serving,
            total_waiting=aggregate.total_waiting,
            total_served=aggregate.total_served,
            average_wait_seconds=aggregate.average_wait_seconds,
            next_tokens=[entry.token for entry in waiting[: self.config.next_tokens_limit]],
            peak_hours=dict(sorted(aggregate.peak_hours.items())),
        )

    def get_entry(self, token: str, outlet_id: str, day: Optional[date] = None) -> QueueEntry:
        normalized = (token or "").strip().upper()
        day = day or self.today()
        entry = self.repository.find_by_token(outlet_id, day, normalized)
        if entry is None:
            raise NotFound(
                f"Token '{normalized}' not found at outlet '{outlet_id}' on {day}.",
                data={"token": normalized, "outletId": outlet_id, "day": day.isoformat()},
            )
        return entry

    def get_entry_by_id(self, entry_id: str) -> QueueEntry:
        entry = self.repository.get_entry(entry_id)
        if entry is None:
            raise NotFound(f"Queue entry '{entry_id}' not found.", data={"entryId": entry_id})
        return entry

    def reconcile(self, outlet_id: str, day: Optional[date] = None) -> QueueAggregate:
        """Re-derive positions, estimates and the aggregate from the ledger."""
        outlet = self.directory.get_outlet(outlet_id)
        day = day or self.today()
        with self._locks.hold(outlet.id, day):
            self.ledger.resequence(outlet, day)
            return self.ledger.reconcile(outlet.id, day)
