"""Customer registration: validation, token issuance and queue placement."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Callable, Optional

from ...config import Settings
from ...errors import CapacityExceeded, DuplicateRegistration, ValidationError
from ...models.domain import Outlet, Priority, QueueAggregate, QueueEntry
from ...persistence.base import QueueRepository
from ..directory import OutletDirectory
from .estimator import estimate_wait
from .ledger import QueueLedger
from .locks import OutletDayLocks
from .retry import retry_on_conflict

logger = logging.getLogger(__name__)


def format_token(sequence: int, prefix: str = "T", digits: int = 3) -> str:
    return f"{prefix}{sequence:0{digits}d}"


def coerce_priority(value: Priority | str | None) -> Priority:
    if value is None or value == "":
        return Priority.NORMAL
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in Priority)
        raise ValidationError(f"Unknown priority '{value}'. Expected one of: {allowed}.") from exc


def _required(**fields: Optional[str]) -> dict[str, str]:
    cleaned = {key: (value or "").strip() for key, value in fields.items()}
    missing = [key for key, value in cleaned.items() if not value]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", data={"missing": missing})
    return cleaned


class AdmissionController:
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

    def register(
        self,
        name: str,
        contact: str,
        service_type: str,
        outlet_id: str,
        priority: Priority | str | None = Priority.NORMAL,
        email: Optional[str] = None,
    ) -> QueueEntry:
        fields = _required(name=name, contact=contact, service_type=service_type, outlet_id=outlet_id)
        priority = coerce_priority(priority)
        email = (email or "").strip().lower() or None
        if email is not None and "@" not in email:
            raise ValidationError(f"Invalid email address '{email}'.")

        outlet = self._directory.get_outlet(fields["outlet_id"])
        if not outlet.is_active:
            raise ValidationError(f"Outlet '{outlet.id}' is not accepting customers.")
        if not self._directory.accepts_service(outlet, fields["service_type"]):
            raise ValidationError(
                f"Service type '{fields['service_type']}' is not offered at outlet '{outlet.id}'.",
                data={"serviceTypes": list(outlet.service_types)},
            )

        now = self._clock()
        if (
            self._config.enforce_operating_hours
            and outlet.operating_hours is not None
            and not outlet.operating_hours.is_open(now)
        ):
            raise ValidationError(f"Outlet '{outlet.id}' is closed at {now:%A %H:%M}.")

        day = now.date()
        with self._locks.hold(outlet.id, day):
            created = retry_on_conflict(
                lambda: self._admit(outlet, day, now, fields, priority, email),
                max_retries=self._config.write_max_retries,
                backoff_seconds=self._config.write_backoff_seconds,
                description=f"registration at outlet {outlet.id}",
            )
            waiting = self._ledger.resequence(outlet, day)
            self._ledger.apply(outlet.id, day, lambda aggregate: self._count_arrival(aggregate, created))

        entry = next((item for item in waiting if item.id == created.id), created)
        logger.info(
            f"Registered {entry.token} at outlet {outlet.id} for {entry.service_type} "
            f"(position {entry.queue_position}, priority {entry.priority.value})"
        )
        return entry

    def _admit(
        self,
        outlet: Outlet,
        day: date,
        now: datetime,
        fields: dict[str, str],
        priority: Priority,
        email: Optional[str],
    ) -> QueueEntry:
        # Materialise the aggregate before the ledger changes so a lazily
        # created one is not counted twice.
        self._ledger.load_aggregate(outlet.id, day)

        existing = self._repository.find_active_by_contact(outlet.id, day, fields["contact"])
        if existing is not None:
            raise DuplicateRegistration(existing)

        waiting_count = len(self._ledger.waiting(outlet.id, day))
        if waiting_count >= outlet.capacity:
            if self._config.capacity_policy == "reject":
                raise CapacityExceeded(outlet.id, outlet.capacity)
            logger.warning(
                f"Outlet {outlet.id} is over capacity ({waiting_count} waiting, capacity {outlet.capacity})"
            )

        sequence = self._repository.count_registrations(outlet.id, day) + 1
        position = waiting_count + 1
        entry = QueueEntry(
            id=uuid.uuid4().hex,
            outlet_id=outlet.id,
            business_day=day,
            sequence=sequence,
            token=format_token(sequence, self._config.token_prefix, self._config.token_digits),
            name=fields["name"],
            contact=fields["contact"],
            email=email,
            service_type=fields["service_type"],
            priority=priority,
            registered_at=now,
            queue_position=position,
            estimated_wait_seconds=estimate_wait(position, outlet, priority),
        )
        return self._repository.create_entry(entry)

    def _count_arrival(self, aggregate: QueueAggregate, entry: QueueEntry) -> None:
        aggregate.total_waiting += 1
        hour = self._ledger.registration_hour(entry)
        aggregate.peak_hours[hour] = aggregate.peak_hours.get(hour, 0) + 1
