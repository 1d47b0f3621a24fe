from datetime import datetime, time, timedelta, timezone

import pytest

from outlet_queue.config import Settings
from outlet_queue.models.domain import OperatingHours, Outlet, OutletConfiguration, ServiceType
from outlet_queue.persistence.memory import InMemoryQueueRepository
from outlet_queue.services.queue.service import QueueService


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> datetime:
        self.now = self.now + timedelta(minutes=minutes)
        return self.now


def make_outlet(
    outlet_id: str = "O1",
    *,
    capacity: int = 50,
    average: float = 10.0,
    minimum: float = 5.0,
    service_types: tuple[str, ...] = ("bill-payments", "new-connections"),
    is_active: bool = True,
    operating_hours: OperatingHours | None = None,
) -> Outlet:
    return Outlet(
        id=outlet_id,
        name=f"Outlet {outlet_id}",
        location="City",
        address="1 Main Street",
        capacity=capacity,
        service_types=service_types,
        configuration=OutletConfiguration(average_service_minutes=average, minimum_wait_minutes=minimum),
        operating_hours=operating_hours,
        is_active=is_active,
    )


def make_service(*outlets: Outlet, clock: FakeClock, **overrides) -> QueueService:
    repository = InMemoryQueueRepository(
        outlets or (make_outlet(),),
        (ServiceType(id="bill-payments", name="Bill Payments", category="Billing", estimated_minutes=8),),
    )
    config = Settings(write_backoff_seconds=0.0, **overrides)
    return QueueService(repository, config, clock)


@pytest.fixture
def clock() -> FakeClock:
    # A Monday morning.
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(clock: FakeClock) -> QueueService:
    return make_service(clock=clock)


@pytest.fixture
def office_hours() -> OperatingHours:
    return OperatingHours(open=time(8, 30), close=time(17, 0), days=("monday", "tuesday"))
