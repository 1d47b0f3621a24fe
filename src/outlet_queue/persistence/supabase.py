"""Supabase-backed repository for queue entries and daily aggregates."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ..config import Settings, settings
from ..data.outlet_records import outlet_from_record, service_type_from_record
from ..errors import RepositoryError, WriteConflict
from ..models.domain import (
    ACTIVE_STATUSES,
    EntryStatus,
    Feedback,
    Outlet,
    Priority,
    QueueAggregate,
    QueueEntry,
    ServiceType,
)
from .base import QueueRepository

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _iso(value: datetime | date | None) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def entry_to_row(entry: QueueEntry) -> dict[str, Any]:
    feedback = None
    if entry.feedback is not None:
        feedback = {
            "rating": entry.feedback.rating,
            "comment": entry.feedback.comment,
            "submitted_at": _iso(entry.feedback.submitted_at),
        }
    return {
        "id": entry.id,
        "outlet_id": entry.outlet_id,
        "business_day": _iso(entry.business_day),
        "sequence": entry.sequence,
        "token_number": entry.token,
        "name": entry.name,
        "phone_number": entry.contact,
        "email": entry.email,
        "service_type": entry.service_type,
        "priority": entry.priority.value,
        "status": entry.status.value,
        "registration_time": _iso(entry.registered_at),
        "queue_position": entry.queue_position,
        "estimated_wait_time": entry.estimated_wait_seconds,
        "actual_wait_time": entry.actual_wait_seconds,
        "service_start_time": _iso(entry.service_started_at),
        "service_end_time": _iso(entry.service_ended_at),
        "assigned_officer_id": entry.officer_id,
        "feedback": feedback,
        "version": entry.version,
    }


def entry_from_row(row: dict[str, Any]) -> QueueEntry:
    feedback = None
    if row.get("feedback"):
        raw = row["feedback"]
        feedback = Feedback(
            rating=int(raw["rating"]),
            comment=raw.get("comment"),
            submitted_at=_parse_datetime(raw.get("submitted_at")),
        )
    return QueueEntry(
        id=str(row["id"]),
        outlet_id=str(row["outlet_id"]),
        business_day=_parse_date(row["business_day"]),
        sequence=int(row["sequence"]),
        token=row["token_number"],
        name=row["name"],
        contact=row["phone_number"],
        email=row.get("email"),
        service_type=row["service_type"],
        priority=Priority(row.get("priority") or Priority.NORMAL.value),
        status=EntryStatus(row["status"]),
        registered_at=_parse_datetime(row["registration_time"]),
        queue_position=row.get("queue_position"),
        estimated_wait_seconds=int(row.get("estimated_wait_time") or 0),
        actual_wait_seconds=row.get("actual_wait_time"),
        service_started_at=_parse_datetime(row.get("service_start_time")),
        service_ended_at=_parse_datetime(row.get("service_end_time")),
        officer_id=row.get("assigned_officer_id"),
        feedback=feedback,
        version=int(row.get("version") or 0),
    )


def aggregate_to_row(aggregate: QueueAggregate) -> dict[str, Any]:
    return {
        "outlet_id": aggregate.outlet_id,
        "business_day": _iso(aggregate.business_day),
        "currently_serving": aggregate.currently_serving,
        "total_served": aggregate.total_served,
        "total_waiting": aggregate.total_waiting,
        "wait_seconds_total": aggregate.wait_seconds_total,
        "wait_samples": aggregate.wait_samples,
        "peak_hour_data": [{"hour": hour, "count": count} for hour, count in sorted(aggregate.peak_hours.items())],
        "last_updated": _iso(aggregate.last_updated),
    }


def aggregate_from_row(row: dict[str, Any]) -> QueueAggregate:
    return QueueAggregate(
        outlet_id=str(row["outlet_id"]),
        business_day=_parse_date(row["business_day"]),
        currently_serving=row.get("currently_serving"),
        total_served=int(row.get("total_served") or 0),
        total_waiting=int(row.get("total_waiting") or 0),
        wait_seconds_total=int(row.get("wait_seconds_total") or 0),
        wait_samples=int(row.get("wait_samples") or 0),
        peak_hours={int(item["hour"]): int(item["count"]) for item in (row.get("peak_hour_data") or [])},
        last_updated=_parse_datetime(row.get("last_updated")),
        version=int(row.get("version") or 0),
    )


class SupabaseQueueRepository(QueueRepository):
    """Repository over the ``outlets``, ``service_types``, ``customers`` and ``queues`` tables.

    Expects a unique index on ``customers (outlet_id, business_day, token_number)``
    and on ``queues (outlet_id, business_day)``.
    """

    def __init__(self, client: Client, config: Settings | None = None) -> None:
        self._client: Client | None = client
        self._config = config or settings

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RepositoryError("Supabase repository has been closed.")
        return self._client

    def _execute(self, query: Any, action: str) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise WriteConflict(f"Unique constraint violated while trying to {action}.") from exc
            logger.error(f"Supabase error while trying to {action}: {exc.message}")
            raise RepositoryError(f"Failed to {action}: {exc.message}") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Supabase unreachable while trying to {action}: {exc}")
            raise RepositoryError(f"Failed to {action}: {exc}") from exc
        return response.data or []

    def get_outlet(self, outlet_id: str) -> Optional[Outlet]:
        rows = self._execute(
            self.client.table("outlets").select("*").eq("id", outlet_id).limit(1),
            "load outlet",
        )
        return outlet_from_record(rows[0], self._config) if rows else None

    def list_outlets(self) -> list[Outlet]:
        rows = self._execute(self.client.table("outlets").select("*").order("name"), "list outlets")
        return [outlet_from_record(row, self._config) for row in rows]

    def list_service_types(self) -> list[ServiceType]:
        rows = self._execute(
            self.client.table("service_types").select("*").order("name"), "list service types"
        )
        return [service_type_from_record(row) for row in rows]

    def create_entry(self, entry: QueueEntry) -> QueueEntry:
        row = entry_to_row(entry)
        row["version"] = 1
        rows = self._execute(self.client.table("customers").insert(row), "register customer")
        return entry_from_row(rows[0]) if rows else entry_from_row(row)

    def get_entry(self, entry_id: str) -> Optional[QueueEntry]:
        rows = self._execute(
            self.client.table("customers").select("*").eq("id", entry_id).limit(1), "load customer"
        )
        return entry_from_row(rows[0]) if rows else None

    def find_by_token(self, outlet_id: str, day: date, token: str) -> Optional[QueueEntry]:
        rows = self._execute(
            self.client.table("customers")
            .select("*")
            .eq("outlet_id", outlet_id)
            .eq("business_day", day.isoformat())
            .eq("token_number", token)
            .limit(1),
            "look up token",
        )
        return entry_from_row(rows[0]) if rows else None

    def find_active_by_contact(self, outlet_id: str, day: date, contact: str) -> Optional[QueueEntry]:
        rows = self._execute(
            self.client.table("customers")
            .select("*")
            .eq("outlet_id", outlet_id)
            .eq("business_day", day.isoformat())
            .eq("phone_number", contact)
            .in_("status", [status.value for status in ACTIVE_STATUSES])
            .order("sequence")
            .limit(1),
            "check duplicate registration",
        )
        return entry_from_row(rows[0]) if rows else None

    def list_entries(
        self,
        outlet_id: str,
        day: date,
        statuses: Optional[Iterable[EntryStatus]] = None,
    ) -> list[QueueEntry]:
        query = (
            self.client.table("customers")
            .select("*")
            .eq("outlet_id", outlet_id)
            .eq("business_day", day.isoformat())
        )
        if statuses is not None:
            query = query.in_("status", [status.value for status in statuses])
        rows = self._execute(query.order("sequence"), "list queue entries")
        return [entry_from_row(row) for row in rows]

    def count_registrations(self, outlet_id: str, day: date) -> int:
        try:
            response = (
                self.client.table("customers")
                .select("id", count="exact")
                .eq("outlet_id", outlet_id)
                .eq("business_day", day.isoformat())
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            logger.error(f"Failed to count registrations for {outlet_id}: {exc}")
            raise RepositoryError(f"Failed to count registrations: {exc}") from exc
        return int(response.count or 0)

    def update_entry(self, entry: QueueEntry) -> QueueEntry:
        row = entry_to_row(entry)
        row["version"] = entry.version + 1
        rows = self._execute(
            self.client.table("customers").update(row).eq("id", entry.id).eq("version", entry.version),
            "update customer",
        )
        if not rows:
            raise WriteConflict(f"Entry {entry.id} changed concurrently or no longer exists.")
        return entry_from_row(rows[0])

    def get_aggregate(self, outlet_id: str, day: date) -> Optional[QueueAggregate]:
        rows = self._execute(
            self.client.table("queues")
            .select("*")
            .eq("outlet_id", outlet_id)
            .eq("business_day", day.isoformat())
            .limit(1),
            "load queue aggregate",
        )
        return aggregate_from_row(rows[0]) if rows else None

    def save_aggregate(self, aggregate: QueueAggregate) -> QueueAggregate:
        row = aggregate_to_row(aggregate)
        row["version"] = aggregate.version + 1
        if aggregate.version == 0:
            rows = self._execute(self.client.table("queues").insert(row), "create queue aggregate")
        else:
            rows = self._execute(
                self.client.table("queues")
                .update(row)
                .eq("outlet_id", aggregate.outlet_id)
                .eq("business_day", aggregate.business_day.isoformat())
                .eq("version", aggregate.version),
                "update queue aggregate",
            )
            if not rows:
                raise WriteConflict(
                    f"Queue aggregate for {aggregate.outlet_id} on {aggregate.business_day} changed concurrently."
                )
        return aggregate_from_row(rows[0]) if rows else aggregate_from_row(row)

    def ping(self) -> bool:
        self._execute(self.client.table("outlets").select("id").limit(1), "reach database")
        return True

    def close(self) -> None:
        self._client = None
