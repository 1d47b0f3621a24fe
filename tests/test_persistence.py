from datetime import date, datetime, timezone

import pytest

from conftest import make_outlet
from outlet_queue.errors import WriteConflict
from outlet_queue.models.domain import EntryStatus, QueueAggregate, QueueEntry
from outlet_queue.persistence.memory import InMemoryQueueRepository

DAY = date(2026, 3, 2)


def _entry(entry_id: str, sequence: int, contact: str = "0771000001") -> QueueEntry:
    return QueueEntry(
        id=entry_id,
        outlet_id="O1",
        business_day=DAY,
        sequence=sequence,
        token=f"T{sequence:03d}",
        name="Customer",
        contact=contact,
        service_type="bill-payments",
        registered_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
        estimated_wait_seconds=600,
        queue_position=sequence,
    )


def test_token_is_unique_per_outlet_and_day():
    repository = InMemoryQueueRepository([make_outlet()])
    repository.create_entry(_entry("a", 1))

    with pytest.raises(WriteConflict):
        repository.create_entry(_entry("b", 1))

    assert repository.count_registrations("O1", DAY) == 1


def test_update_is_version_checked():
    repository = InMemoryQueueRepository([make_outlet()])
    stored = repository.create_entry(_entry("a", 1))
    stale = repository.get_entry("a")

    stored.status = EntryStatus.CANCELLED
    updated = repository.update_entry(stored)
    assert updated.version == stored.version + 1

    stale.status = EntryStatus.BEING_SERVED
    with pytest.raises(WriteConflict):
        repository.update_entry(stale)


def test_returned_records_are_copies():
    repository = InMemoryQueueRepository([make_outlet()])
    entry = repository.create_entry(_entry("a", 1))

    entry.status = EntryStatus.CANCELLED

    assert repository.get_entry("a").status is EntryStatus.WAITING


def test_list_entries_filters_status_and_orders_by_sequence():
    repository = InMemoryQueueRepository([make_outlet()])
    repository.create_entry(_entry("b", 2, contact="2"))
    repository.create_entry(_entry("a", 1, contact="1"))
    cancelled = repository.get_entry("b")
    cancelled.status = EntryStatus.CANCELLED
    repository.update_entry(cancelled)

    assert [e.id for e in repository.list_entries("O1", DAY)] == ["a", "b"]
    assert [e.id for e in repository.list_entries("O1", DAY, [EntryStatus.WAITING])] == ["a"]
    assert repository.find_active_by_contact("O1", DAY, "2") is None
    assert repository.find_active_by_contact("O1", DAY, "1").id == "a"
    assert repository.find_by_token("O1", DAY, "T002").id == "b"


def test_aggregate_insert_then_optimistic_update():
    repository = InMemoryQueueRepository([make_outlet()])
    created = repository.save_aggregate(QueueAggregate(outlet_id="O1", business_day=DAY))
    assert created.version == 1

    with pytest.raises(WriteConflict):
        repository.save_aggregate(QueueAggregate(outlet_id="O1", business_day=DAY))

    created.total_waiting = 3
    assert repository.save_aggregate(created).version == 2
    assert repository.get_aggregate("O1", DAY).total_waiting == 3
