"""The authoritative per-outlet, per-day queue and its cached aggregate."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from ...config import Settings
from ...errors import WriteConflict
from ...models.domain import EntryStatus, Outlet, QueueAggregate, QueueEntry
from ...persistence.base import QueueRepository
from .estimator import estimate_wait
from .retry import retry_on_conflict

logger = logging.getLogger(__name__)


def currently_serving(entries: Sequence[QueueEntry]) -> str | None:
    """Token of the entry whose service started most recently."""
    serving = [
        entry
        for entry in entries
        if entry.status is EntryStatus.BEING_SERVED and entry.service_started_at is not None
    ]
    if not serving:
        return None
    return max(serving, key=lambda entry: (entry.service_started_at, entry.sequence)).token


class QueueLedger:
    def __init__(self, repository: QueueRepository, config: Settings, clock: Callable[[], datetime]) -> None:
        self._repository = repository
        self._config = config
        self._clock = clock
        self._zone = ZoneInfo(config.timezone)

    def _retry(self, operation: Callable, description: str):
        return retry_on_conflict(
            operation,
            max_retries=self._config.write_max_retries,
            backoff_seconds=self._config.write_backoff_seconds,
            description=description,
        )

    def registration_hour(self, entry: QueueEntry) -> int:
        """Hour of registration on the business clock.

        Databases hand ``timestamptz`` values back in UTC, so aware timestamps
        are converted to the configured zone before bucketing.
        """
        registered = entry.registered_at
        if registered.tzinfo is not None:
            registered = registered.astimezone(self._zone)
        return registered.hour

    def waiting(self, outlet_id: str, day: date) -> list[QueueEntry]:
        """Waiting entries in registration order."""
        return self._repository.list_entries(outlet_id, day, [EntryStatus.WAITING])

    def being_served(self, outlet_id: str, day: date) -> list[QueueEntry]:
        return self._repository.list_entries(outlet_id, day, [EntryStatus.BEING_SERVED])

    def resequence(self, outlet: Outlet, day: date) -> list[QueueEntry]:
        """Reassign positions 1..N in registration order and refresh estimates.

        Only entries whose position or estimate changed are written back.
        """

        def _run() -> list[QueueEntry]:
            refreshed: list[QueueEntry] = []
            for position, entry in enumerate(self.waiting(outlet.id, day), start=1):
                estimate = estimate_wait(position, outlet, entry.priority)
                if entry.queue_position != position or entry.estimated_wait_seconds != estimate:
                    entry.queue_position = position
                    entry.estimated_wait_seconds = estimate
                    entry = self._repository.update_entry(entry)
                refreshed.append(entry)
            return refreshed

        return self._retry(_run, f"resequencing outlet {outlet.id} on {day}")

    def rebuild_aggregate(self, outlet_id: str, day: date) -> QueueAggregate:
        """Recompute the aggregate from the entries alone (not persisted)."""
        entries = self._repository.list_entries(outlet_id, day)
        aggregate = QueueAggregate(outlet_id=outlet_id, business_day=day)
        for entry in entries:
            hour = self.registration_hour(entry)
            aggregate.peak_hours[hour] = aggregate.peak_hours.get(hour, 0) + 1
            if entry.status is EntryStatus.WAITING:
                aggregate.total_waiting += 1
            elif entry.status is EntryStatus.COMPLETED:
                aggregate.total_served += 1
                if entry.actual_wait_seconds is not None:
                    aggregate.wait_seconds_total += entry.actual_wait_seconds
                    aggregate.wait_samples += 1
        aggregate.currently_serving = currently_serving(entries)
        return aggregate

    def load_aggregate(self, outlet_id: str, day: date) -> QueueAggregate:
        """Return the aggregate, creating it from the ledger if this day has none yet."""
        aggregate = self._repository.get_aggregate(outlet_id, day)
        if aggregate is not None:
            return aggregate

        created = self.rebuild_aggregate(outlet_id, day)
        created.last_updated = self._clock()
        try:
            return self._repository.save_aggregate(created)
        except WriteConflict:
            # Another writer created it first.
            existing = self._repository.get_aggregate(outlet_id, day)
            if existing is None:
                raise
            return existing

    def apply(self, outlet_id: str, day: date, mutate: Callable[[QueueAggregate], None]) -> QueueAggregate:
        """Read, mutate and save the aggregate, retrying on concurrent updates."""

        def _run() -> QueueAggregate:
            aggregate = self.load_aggregate(outlet_id, day)
            mutate(aggregate)
            aggregate.last_updated = self._clock()
            return self._repository.save_aggregate(aggregate)

        return self._retry(_run, f"updating queue aggregate of outlet {outlet_id} on {day}")

    def reconcile(self, outlet_id: str, day: date) -> QueueAggregate:
        """Overwrite the cached aggregate with one recomputed from the ledger."""

        def _replace(aggregate: QueueAggregate) -> None:
            rebuilt = self.rebuild_aggregate(outlet_id, day)
            if (rebuilt.total_waiting, rebuilt.total_served) != (aggregate.total_waiting, aggregate.total_served):
                logger.warning(
                    f"Queue aggregate drift for outlet {outlet_id} on {day}: "
                    f"waiting {aggregate.total_waiting}->{rebuilt.total_waiting}, "
                    f"served {aggregate.total_served}->{rebuilt.total_served}"
                )
            aggregate.currently_serving = rebuilt.currently_serving
            aggregate.total_served = rebuilt.total_served
            aggregate.total_waiting = rebuilt.total_waiting
            aggregate.wait_seconds_total = rebuilt.wait_seconds_total
            aggregate.wait_samples = rebuilt.wait_samples
            aggregate.peak_hours = rebuilt.peak_hours

        return self.apply(outlet_id, day, _replace)
