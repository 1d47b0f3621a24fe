"""Status state machine for queue entries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ...config import Settings
from ...errors import InvalidTransition, NotFound, ValidationError
from ...models.domain import TERMINAL_STATUSES, EntryStatus, Feedback, QueueAggregate, QueueEntry
from ...persistence.base import QueueRepository
from ..directory import OutletDirectory
from .ledger import QueueLedger, currently_serving
from .locks import OutletDayLocks
from .retry import retry_on_conflict

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[EntryStatus, frozenset[EntryStatus]] = {
    EntryStatus.WAITING: frozenset({EntryStatus.BEING_SERVED, EntryStatus.CANCELLED}),
    EntryStatus.BEING_SERVED: frozenset({EntryStatus.COMPLETED, EntryStatus.CANCELLED}),
    **{status: frozenset() for status in TERMINAL_STATUSES},
}


def coerce_status(value: EntryStatus | str) -> EntryStatus:
    if isinstance(value, EntryStatus):
        return value
    try:
        return EntryStatus(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in EntryStatus)
        raise ValidationError(f"Unknown status '{value}'. Expected one of: {allowed}.") from exc


class ServiceTransitionEngine:
    def __init__(
        self,
        repository: QueueRepository,
        directory: OutletDirectory,
        ledger: QueueLedger,
        locks: OutletDayLocks,
        config: Settings,
        clock: Callable[[], datetime],
    ) -> None:
        self._repository = repository
        self._directory = directory
        self._ledger = ledger
        self._locks = locks
        self._config = config
        self._clock = clock

    def _load(self, entry_id: str) -> QueueEntry:
        entry = self._repository.get_entry(entry_id)
        if entry is None:
            raise NotFound(f"Queue entry '{entry_id}' not found.", data={"entryId": entry_id})
        return entry

    def _retry(self, operation: Callable, description: str):
        return retry_on_conflict(
            operation,
            max_retries=self._config.write_max_retries,
            backoff_seconds=self._config.write_backoff_seconds,
            description=description,
        )

    def transition(
        self,
        entry_id: str,
        target: EntryStatus | str,
        officer_id: Optional[str] = None,
    ) -> QueueEntry:
        target = coerce_status(target)
        officer_id = (officer_id or "").strip() or None

        entry = self._load(entry_id)
        day = entry.business_day
        with self._locks.hold(entry.outlet_id, day):
            self._ledger.load_aggregate(entry.outlet_id, day)
            updated, previous = self._retry(
                lambda: self._apply(entry_id, target, officer_id),
                f"transition of entry {entry_id} to {target.value}",
            )
            if previous is EntryStatus.WAITING:
                self._ledger.resequence(self._directory.get_outlet(entry.outlet_id), day)
            serving = currently_serving(self._ledger.being_served(entry.outlet_id, day))
            self._ledger.apply(
                entry.outlet_id,
                day,
                lambda aggregate: self._record(aggregate, updated, previous, serving),
            )

        logger.info(
            f"Entry {updated.token} at outlet {updated.outlet_id}: {previous.value} -> {updated.status.value}"
        )
        return updated

    def _apply(
        self,
        entry_id: str,
        target: EntryStatus,
        officer_id: Optional[str],
    ) -> tuple[QueueEntry, EntryStatus]:
        # Re-read on every attempt: a concurrent writer may have moved the entry.
        entry = self._load(entry_id)
        previous = entry.status
        if target not in ALLOWED_TRANSITIONS[previous]:
            raise InvalidTransition(entry.id, previous.value, target.value)
        if target is EntryStatus.BEING_SERVED and officer_id is None:
            raise ValidationError("An officer is required to start serving a customer.")

        now = self._clock()
        if target is EntryStatus.BEING_SERVED:
            entry.service_started_at = now
            entry.actual_wait_seconds = max(0, int((now - entry.registered_at).total_seconds()))
            entry.officer_id = officer_id
        elif target is EntryStatus.COMPLETED:
            entry.service_ended_at = now
        entry.status = target
        entry.queue_position = None
        return self._repository.update_entry(entry), previous

    @staticmethod
    def _record(
        aggregate: QueueAggregate,
        entry: QueueEntry,
        previous: EntryStatus,
        serving: Optional[str],
    ) -> None:
        if previous is EntryStatus.WAITING:
            aggregate.total_waiting = max(0, aggregate.total_waiting - 1)
        if entry.status is EntryStatus.COMPLETED:
            aggregate.total_served += 1
            if entry.actual_wait_seconds is not None:
                aggregate.wait_seconds_total += entry.actual_wait_seconds
                aggregate.wait_samples += 1
        aggregate.currently_serving = serving

    def submit_feedback(self, entry_id: str, rating: int, comment: Optional[str] = None) -> QueueEntry:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5.")
        comment = (comment or "").strip() or None

        def _run() -> QueueEntry:
            entry = self._load(entry_id)
            if entry.status is not EntryStatus.COMPLETED:
                raise ValidationError(
                    f"Feedback can only be submitted for completed visits (entry is {entry.status.value})."
                )
            if entry.feedback is not None:
                raise ValidationError(f"Feedback for {entry.token} has already been submitted.")
            entry.feedback = Feedback(rating=rating, comment=comment, submitted_at=self._clock())
            return self._repository.update_entry(entry)

        updated = self._retry(_run, f"feedback for entry {entry_id}")
        logger.info(f"Feedback {rating}/5 recorded for {updated.token} at outlet {updated.outlet_id}")
        return updated
