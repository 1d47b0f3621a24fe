from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from conftest import FakeClock, make_service
from outlet_queue.models.domain import EntryStatus


def _register(service, contact: str):
    return service.register(
        name=f"Customer {contact}", contact=contact, service_type="bill-payments", outlet_id="O1"
    )


def test_snapshot_creates_aggregate_lazily_and_is_idempotent(service):
    assert service.repository.get_aggregate("O1", service.today()) is None

    first = service.get_queue_snapshot("O1")
    second = service.get_queue_snapshot("O1")

    assert first == second
    assert first.total_waiting == 0
    assert first.currently_serving is None
    assert service.repository.get_aggregate("O1", service.today()) is not None


def test_snapshot_for_past_day_is_built_from_ledger(service, clock):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")
    yesterday = service.today()
    clock.advance(24 * 60)

    snapshot = service.get_queue_snapshot("O1", yesterday)

    assert snapshot.business_day == yesterday
    assert snapshot.currently_serving == "T001"
    assert service.get_queue_snapshot("O1").currently_serving is None


def test_next_tokens_are_limited(clock):
    service = make_service(clock=clock, next_tokens_limit=3)
    for i in range(5):
        _register(service, f"07710000{i:02d}")

    assert service.get_queue_snapshot("O1").next_tokens == ["T001", "T002", "T003"]


def test_rebuild_matches_incrementally_maintained_aggregate(service, clock):
    entries = [_register(service, f"07710000{i:02d}") for i in range(4)]
    clock.advance(7)
    service.transition(entries[0].id, "being_served", officer_id="OFF-1")
    clock.advance(3)
    service.transition(entries[0].id, "completed")
    service.transition(entries[1].id, "being_served", officer_id="OFF-1")
    service.transition(entries[2].id, "cancelled")

    day = service.today()
    stored = service.repository.get_aggregate("O1", day)
    rebuilt = service.ledger.rebuild_aggregate("O1", day)

    for name in ("currently_serving", "total_served", "total_waiting", "wait_seconds_total", "wait_samples", "peak_hours"):
        assert getattr(rebuilt, name) == getattr(stored, name), name


def test_reconcile_repairs_drifted_aggregate(service):
    _register(service, "0771000001")
    _register(service, "0771000002")
    day = service.today()

    drifted = service.repository.get_aggregate("O1", day)
    drifted.total_waiting = 40
    drifted.currently_serving = "T999"
    service.repository.save_aggregate(drifted)

    repaired = service.reconcile("O1")

    assert repaired.total_waiting == 2
    assert repaired.currently_serving is None
    assert service.get_queue_snapshot("O1").total_waiting == 2


def test_reconcile_repairs_gapped_positions(service):
    entries = [_register(service, f"07710000{i:02d}") for i in range(3)]
    broken = service.repository.get_entry(entries[1].id)
    broken.status = EntryStatus.CANCELLED
    broken.queue_position = None
    service.repository.update_entry(broken)

    service.reconcile("O1")

    waiting = service.ledger.waiting("O1", service.today())
    assert [(entry.token, entry.queue_position) for entry in waiting] == [("T001", 1), ("T003", 2)]


def test_resequence_writes_only_changed_entries(service, monkeypatch):
    for i in range(3):
        _register(service, f"07710000{i:02d}")
    writes = []
    original = service.repository.update_entry

    def counting_update(entry):
        writes.append(entry.token)
        return original(entry)

    monkeypatch.setattr(service.repository, "update_entry", counting_update)
    outlet = service.directory.get_outlet("O1")

    service.ledger.resequence(outlet, service.today())

    assert writes == []


def test_entries_are_scoped_by_day(service):
    _register(service, "0771000001")

    assert service.repository.list_entries("O1", date(2026, 3, 1)) == []
    assert service.repository.count_registrations("O1", date(2026, 3, 1)) == 0


def test_peak_hours_use_business_zone_when_storage_returns_utc(monkeypatch):
    colombo = ZoneInfo("Asia/Colombo")
    service = make_service(clock=FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=colombo)), timezone="Asia/Colombo")
    repository = service.repository
    original = repository.create_entry

    def store_as_utc(entry):
        # timestamptz columns come back normalised to UTC
        entry.registered_at = entry.registered_at.astimezone(timezone.utc)
        return original(entry)

    monkeypatch.setattr(repository, "create_entry", store_as_utc)
    _register(service, "0771000001")

    day = service.today()
    assert repository.get_entry(service.ledger.waiting("O1", day)[0].id).registered_at.hour == 3
    assert repository.get_aggregate("O1", day).peak_hours == {9: 1}
    assert service.ledger.rebuild_aggregate("O1", day).peak_hours == {9: 1}
