"""Repository contract shared by every persistence backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from ..models.domain import EntryStatus, Outlet, QueueAggregate, QueueEntry, ServiceType


class QueueRepository(ABC):
    """Storage for outlets, queue entries and daily aggregates.

    Writes to entries and aggregates are optimistic: the caller passes the
    record with the version it read, and the backend raises ``WriteConflict``
    if the stored version has moved on. Implementations raise
    ``RepositoryError`` for any backend failure and never invent data.
    """

    @abstractmethod
    def get_outlet(self, outlet_id: str) -> Optional[Outlet]:
        raise NotImplementedError

    @abstractmethod
    def list_outlets(self) -> list[Outlet]:
        raise NotImplementedError

    @abstractmethod
    def list_service_types(self) -> list[ServiceType]:
        raise NotImplementedError

    @abstractmethod
    def create_entry(self, entry: QueueEntry) -> QueueEntry:
        """Insert a new entry; (outlet, day, token) must be unique."""
        raise NotImplementedError

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[QueueEntry]:
        raise NotImplementedError

    @abstractmethod
    def find_by_token(self, outlet_id: str, day: date, token: str) -> Optional[QueueEntry]:
        raise NotImplementedError

    @abstractmethod
    def find_active_by_contact(self, outlet_id: str, day: date, contact: str) -> Optional[QueueEntry]:
        raise NotImplementedError

    @abstractmethod
    def list_entries(
        self,
        outlet_id: str,
        day: date,
        statuses: Optional[Iterable[EntryStatus]] = None,
    ) -> list[QueueEntry]:
        """Entries for one outlet and day, ordered by issuance sequence."""
        raise NotImplementedError

    @abstractmethod
    def count_registrations(self, outlet_id: str, day: date) -> int:
        raise NotImplementedError

    @abstractmethod
    def update_entry(self, entry: QueueEntry) -> QueueEntry:
        raise NotImplementedError

    @abstractmethod
    def get_aggregate(self, outlet_id: str, day: date) -> Optional[QueueAggregate]:
        raise NotImplementedError

    @abstractmethod
    def save_aggregate(self, aggregate: QueueAggregate) -> QueueAggregate:
        """Insert when ``aggregate.version`` is 0, otherwise update optimistically."""
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        """Release the underlying handle."""
