"""In-process repository used for single-node deployments and tests."""

from __future__ import annotations

import copy
import threading
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config import Settings
from ..data.outlet_records import load_directory_file
from ..errors import WriteConflict
from ..models.domain import ACTIVE_STATUSES, EntryStatus, Outlet, QueueAggregate, QueueEntry, ServiceType
from .base import QueueRepository


class InMemoryQueueRepository(QueueRepository):
    """Dictionary-backed repository.

    Stored records are never handed out directly; every read and write goes
    through a deep copy so that a caller mutating its copy cannot bypass the
    version check.
    """

    def __init__(
        self,
        outlets: Sequence[Outlet] = (),
        service_types: Sequence[ServiceType] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._outlets = {outlet.id: outlet for outlet in outlets}
        self._service_types = list(service_types)
        self._entries: dict[str, QueueEntry] = {}
        self._tokens: dict[tuple[str, date, str], str] = {}
        self._aggregates: dict[tuple[str, date], QueueAggregate] = {}

    @classmethod
    def from_file(cls, source: Path | None = None, config: Settings | None = None) -> "InMemoryQueueRepository":
        outlets, service_types = load_directory_file(source, config)
        return cls(outlets, service_types)

    def get_outlet(self, outlet_id: str) -> Optional[Outlet]:
        outlet = self._outlets.get(outlet_id)
        return copy.deepcopy(outlet) if outlet else None

    def list_outlets(self) -> list[Outlet]:
        return [copy.deepcopy(outlet) for outlet in self._outlets.values()]

    def list_service_types(self) -> list[ServiceType]:
        return [copy.deepcopy(item) for item in self._service_types]

    def create_entry(self, entry: QueueEntry) -> QueueEntry:
        key = (entry.outlet_id, entry.business_day, entry.token)
        with self._lock:
            if key in self._tokens:
                raise WriteConflict(f"Token {entry.token} already issued for outlet {entry.outlet_id}.")
            if entry.id in self._entries:
                raise WriteConflict(f"Entry {entry.id} already exists.")
            stored = copy.deepcopy(entry)
            stored.version = 1
            self._entries[stored.id] = stored
            self._tokens[key] = stored.id
            return copy.deepcopy(stored)

    def get_entry(self, entry_id: str) -> Optional[QueueEntry]:
        with self._lock:
            entry = self._entries.get(entry_id)
            return copy.deepcopy(entry) if entry else None

    def find_by_token(self, outlet_id: str, day: date, token: str) -> Optional[QueueEntry]:
        with self._lock:
            entry_id = self._tokens.get((outlet_id, day, token))
            return copy.deepcopy(self._entries[entry_id]) if entry_id else None

    def find_active_by_contact(self, outlet_id: str, day: date, contact: str) -> Optional[QueueEntry]:
        for entry in self.list_entries(outlet_id, day, ACTIVE_STATUSES):
            if entry.contact == contact:
                return entry
        return None

    def list_entries(
        self,
        outlet_id: str,
        day: date,
        statuses: Optional[Iterable[EntryStatus]] = None,
    ) -> list[QueueEntry]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            matches = [
                copy.deepcopy(entry)
                for entry in self._entries.values()
                if entry.outlet_id == outlet_id
                and entry.business_day == day
                and (wanted is None or entry.status in wanted)
            ]
        return sorted(matches, key=lambda item: item.sequence)

    def count_registrations(self, outlet_id: str, day: date) -> int:
        with self._lock:
            return sum(1 for (oid, d, _) in self._tokens if oid == outlet_id and d == day)

    def update_entry(self, entry: QueueEntry) -> QueueEntry:
        with self._lock:
            current = self._entries.get(entry.id)
            if current is None:
                raise WriteConflict(f"Entry {entry.id} no longer exists.")
            if current.version != entry.version:
                raise WriteConflict(
                    f"Entry {entry.id} changed concurrently (expected version {entry.version}, found {current.version})."
                )
            stored = copy.deepcopy(entry)
            stored.version = current.version + 1
            self._entries[stored.id] = stored
            return copy.deepcopy(stored)

    def get_aggregate(self, outlet_id: str, day: date) -> Optional[QueueAggregate]:
        with self._lock:
            aggregate = self._aggregates.get((outlet_id, day))
            return copy.deepcopy(aggregate) if aggregate else None

    def save_aggregate(self, aggregate: QueueAggregate) -> QueueAggregate:
        key = (aggregate.outlet_id, aggregate.business_day)
        with self._lock:
            current = self._aggregates.get(key)
            current_version = current.version if current else 0
            if current_version != aggregate.version:
                raise WriteConflict(
                    f"Queue aggregate for {aggregate.outlet_id} on {aggregate.business_day} changed concurrently."
                )
            stored = copy.deepcopy(aggregate)
            stored.version = current_version + 1
            self._aggregates[key] = stored
            return copy.deepcopy(stored)
