"""Exception taxonomy raised by the queue core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models.domain import QueueEntry


class QueueError(Exception):
    """Base class for every error the queue core raises on purpose."""

    retryable = False

    def __init__(self, message: str, *, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}


class ValidationError(QueueError):
    """Missing or malformed input."""


class NotFound(QueueError):
    """A referenced record does not exist."""


class OutletNotFound(NotFound):
    def __init__(self, outlet_id: str) -> None:
        super().__init__(f"Outlet '{outlet_id}' not found.", data={"outletId": outlet_id})
        self.outlet_id = outlet_id


class DuplicateRegistration(QueueError):
    """The contact already holds an active entry at this outlet today."""

    def __init__(self, existing: "QueueEntry") -> None:
        super().__init__(
            f"Already registered today with token {existing.token}. Please check your queue status.",
            data={
                "existingToken": existing.token,
                "entryId": existing.id,
                "queuePosition": existing.queue_position,
                "status": existing.status.value,
            },
        )
        self.existing = existing


class CapacityExceeded(QueueError):
    def __init__(self, outlet_id: str, capacity: int) -> None:
        super().__init__(
            f"Outlet '{outlet_id}' has reached its queue capacity of {capacity}.",
            data={"outletId": outlet_id, "capacity": capacity},
        )


class InvalidTransition(QueueError):
    def __init__(self, entry_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move entry '{entry_id}' from {current} to {target}.",
            data={"entryId": entry_id, "currentStatus": current, "targetStatus": target},
        )


class RepositoryError(QueueError):
    """Persistence is unavailable or failed; callers may retry with backoff."""

    retryable = True


class WriteConflict(RepositoryError):
    """A uniqueness or version check rejected a write."""
