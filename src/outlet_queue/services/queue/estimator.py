"""Wait-time estimation for customers still in line."""

from __future__ import annotations

from ...models.domain import Outlet, Priority


def estimate_wait(position: int, outlet: Outlet, priority: Priority = Priority.NORMAL) -> int:
    """Estimated wait in seconds for the customer at ``position``.

    Linear in the number of customers ahead plus the customer's own service
    time, floored at the outlet's minimum wait, then scaled by the outlet's
    multiplier for the priority class.
    """
    if position < 1:
        raise ValueError("position must be >= 1")
    configuration = outlet.configuration
    average = configuration.average_service_minutes * 60
    minimum = configuration.minimum_wait_minutes * 60
    base = max((position - 1) * average + average, minimum)
    return round(base * configuration.multiplier_for(priority))
