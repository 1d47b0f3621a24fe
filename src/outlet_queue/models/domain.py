"""Domain models for outlets, queue entries and daily queue aggregates."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional


class Priority(str, Enum):
    NORMAL = "normal"
    VIP = "vip"
    SENIOR = "senior"
    DISABLED = "disabled"


class EntryStatus(str, Enum):
    WAITING = "waiting"
    BEING_SERVED = "being_served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({EntryStatus.WAITING, EntryStatus.BEING_SERVED})
TERMINAL_STATUSES = frozenset({EntryStatus.COMPLETED, EntryStatus.CANCELLED})

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(slots=True)
class ServiceType:
    """An entry in the service catalog customers pick from at registration."""

    id: str
    name: str
    category: str
    estimated_minutes: float
    is_active: bool = True


@dataclass(slots=True)
class OperatingHours:
    open: time
    close: time
    days: tuple[str, ...] = WEEKDAYS

    def is_open(self, at: datetime) -> bool:
        if WEEKDAYS[at.weekday()] not in self.days:
            return False
        return self.open <= at.time() < self.close


@dataclass(slots=True)
class OutletConfiguration:
    """Per-outlet tuning for wait-time estimates."""

    average_service_minutes: float
    minimum_wait_minutes: float
    max_queue_length: int = 100
    priority_multipliers: dict[str, float] = field(
        default_factory=lambda: {"vip": 0.5, "senior": 0.8, "disabled": 0.7}
    )

    def multiplier_for(self, priority: Priority) -> float:
        if priority is Priority.NORMAL:
            return 1.0
        return self.priority_multipliers.get(priority.value, 1.0)


@dataclass(slots=True)
class Outlet:
    """A physical service location; read-only from the queue core."""

    id: str
    name: str
    location: str
    address: str
    capacity: int
    service_types: tuple[str, ...]
    configuration: OutletConfiguration
    operating_hours: Optional[OperatingHours] = None
    is_active: bool = True


@dataclass(slots=True)
class Feedback:
    rating: int
    comment: Optional[str]
    submitted_at: datetime


@dataclass(slots=True)
class QueueEntry:
    """One customer registration at one outlet on one business day."""

    id: str
    outlet_id: str
    business_day: date
    sequence: int
    token: str
    name: str
    contact: str
    service_type: str
    registered_at: datetime
    estimated_wait_seconds: int
    priority: Priority = Priority.NORMAL
    status: EntryStatus = EntryStatus.WAITING
    email: Optional[str] = None
    queue_position: Optional[int] = None
    actual_wait_seconds: Optional[int] = None
    service_started_at: Optional[datetime] = None
    service_ended_at: Optional[datetime] = None
    officer_id: Optional[str] = None
    feedback: Optional[Feedback] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(slots=True)
class QueueAggregate:
    """Cached daily summary of an outlet's ledger.

    Every field can be recomputed from the entries of the same outlet and day;
    ``wait_seconds_total`` and ``wait_samples`` let the average be maintained
    incrementally instead of rescanning completed entries on every transition.
    """

    outlet_id: str
    business_day: date
    currently_serving: Optional[str] = None
    total_served: int = 0
    total_waiting: int = 0
    wait_seconds_total: int = 0
    wait_samples: int = 0
    peak_hours: dict[int, int] = field(default_factory=dict)
    last_updated: Optional[datetime] = None
    version: int = 0

    @property
    def average_wait_seconds(self) -> int:
        if not self.wait_samples:
            return 0
        return round(self.wait_seconds_total / self.wait_samples)
