import pytest

from conftest import make_outlet, make_service
from outlet_queue.errors import InvalidTransition, NotFound, RepositoryError, ValidationError, WriteConflict
from outlet_queue.models.domain import EntryStatus


def _register(service, contact: str, **kwargs):
    return service.register(
        name=f"Customer {contact}",
        contact=contact,
        service_type="bill-payments",
        outlet_id="O1",
        **kwargs,
    )


def test_serving_then_completing_records_times(service, clock):
    entry = _register(service, "0771000001")
    clock.advance(12)

    serving = service.transition(entry.id, "being_served", officer_id="OFF-1")

    assert serving.status is EntryStatus.BEING_SERVED
    assert serving.service_started_at == clock.now
    assert serving.actual_wait_seconds == 12 * 60
    assert serving.queue_position is None
    assert serving.officer_id == "OFF-1"

    clock.advance(8)
    completed = service.transition(entry.id, EntryStatus.COMPLETED)

    assert completed.status is EntryStatus.COMPLETED
    assert completed.service_ended_at == clock.now
    assert completed.service_ended_at > completed.service_started_at
    assert completed.actual_wait_seconds == 12 * 60


def test_documented_scenario_recomputes_remaining_positions(service):
    first = _register(service, "0771000001")
    second = _register(service, "0771000002")
    assert (first.queue_position, first.estimated_wait_seconds) == (1, 600)
    assert (second.queue_position, second.estimated_wait_seconds) == (2, 1200)

    service.transition(first.id, "being_served", officer_id="OFF-1")

    refreshed = service.get_entry_by_id(second.id)
    assert refreshed.queue_position == 1
    assert refreshed.estimated_wait_seconds == 600


def test_front_of_line_estimate_is_minimum_when_service_is_quick(clock):
    service = make_service(make_outlet(average=3, minimum=5), clock=clock)
    first = _register(service, "0771000001")
    second = _register(service, "0771000002")

    service.transition(first.id, "cancelled")

    assert service.get_entry_by_id(second.id).estimated_wait_seconds == 300


def test_positions_stay_dense_after_leaving_from_the_middle(service):
    entries = [_register(service, f"07710000{i:02d}") for i in range(5)]

    service.transition(entries[2].id, "cancelled")
    service.transition(entries[0].id, "being_served", officer_id="OFF-1")

    waiting = service.ledger.waiting("O1", service.today())
    assert [entry.token for entry in waiting] == ["T002", "T004", "T005"]
    assert [entry.queue_position for entry in waiting] == [1, 2, 3]
    assert [entry.estimated_wait_seconds for entry in waiting] == [600, 1200, 1800]


def test_serving_requires_an_officer(service):
    entry = _register(service, "0771000001")

    with pytest.raises(ValidationError):
        service.transition(entry.id, "being_served")


def test_cannot_complete_a_waiting_entry(service):
    entry = _register(service, "0771000001")

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, "completed")


@pytest.mark.parametrize("target", ["waiting", "being_served", "completed", "cancelled"])
def test_completed_is_terminal(service, target):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")
    service.transition(entry.id, "completed")

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, target, officer_id="OFF-1")


@pytest.mark.parametrize("target", ["waiting", "being_served", "completed", "cancelled"])
def test_cancelled_is_terminal(service, target):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "cancelled")

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, target, officer_id="OFF-1")


@pytest.mark.parametrize("finish", ["completed", "cancelled"])
def test_terminal_entries_reject_serving_without_an_officer(service, finish):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")
    service.transition(entry.id, finish)

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, "being_served")


def test_serving_twice_is_an_invalid_transition(service):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, "being_served")
    with pytest.raises(InvalidTransition):
        service.transition(entry.id, "being_served", officer_id="OFF-2")


def test_unknown_status_and_entry(service):
    entry = _register(service, "0771000001")

    with pytest.raises(ValidationError):
        service.transition(entry.id, "paused")
    with pytest.raises(NotFound):
        service.transition("missing", "cancelled")


def test_aggregate_tracks_transitions(service, clock):
    first = _register(service, "0771000001")
    second = _register(service, "0771000002")
    third = _register(service, "0771000003")

    clock.advance(10)
    service.transition(first.id, "being_served", officer_id="OFF-1")
    clock.advance(10)
    service.transition(second.id, "being_served", officer_id="OFF-2")

    snapshot = service.get_queue_snapshot("O1")
    assert snapshot.currently_serving == second.token
    assert snapshot.total_waiting == 1
    assert snapshot.total_served == 0

    service.transition(second.id, "completed")
    service.transition(first.id, "completed")
    service.transition(third.id, "cancelled")

    snapshot = service.get_queue_snapshot("O1")
    assert snapshot.currently_serving is None
    assert snapshot.total_waiting == 0
    assert snapshot.total_served == 2
    # first waited 10 minutes, second 20
    assert snapshot.average_wait_seconds == 15 * 60
    assert snapshot.next_tokens == []


def test_cancelling_while_served_does_not_count_as_served(service, clock):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")

    cancelled = service.transition(entry.id, "cancelled")

    assert cancelled.service_ended_at is None
    snapshot = service.get_queue_snapshot("O1")
    assert (snapshot.total_served, snapshot.total_waiting, snapshot.average_wait_seconds) == (0, 0, 0)


def test_concurrent_change_is_rechecked_before_writing(service, monkeypatch):
    entry = _register(service, "0771000001")
    repository = service.repository
    original = repository.update_entry
    state = {"raced": False}

    def racing_update(candidate):
        if not state["raced"] and candidate.id == entry.id:
            # Another officer cancels the entry between our read and our write.
            state["raced"] = True
            stored = repository.get_entry(entry.id)
            stored.status = EntryStatus.CANCELLED
            stored.queue_position = None
            original(stored)
        return original(candidate)

    monkeypatch.setattr(repository, "update_entry", racing_update)

    with pytest.raises(InvalidTransition):
        service.transition(entry.id, "being_served", officer_id="OFF-1")

    assert service.get_entry_by_id(entry.id).status is EntryStatus.CANCELLED


def test_exhausted_conflict_retries_surface_as_repository_error(clock, monkeypatch):
    service = make_service(clock=clock, write_max_retries=1)
    entry = _register(service, "0771000001")

    def always_conflicts(candidate):
        raise WriteConflict("busy")

    monkeypatch.setattr(service.repository, "update_entry", always_conflicts)

    with pytest.raises(RepositoryError):
        service.transition(entry.id, "cancelled")


def test_feedback_only_after_completion(service):
    entry = _register(service, "0771000001")

    with pytest.raises(ValidationError):
        service.submit_feedback(entry.id, 5, "Great")

    service.transition(entry.id, "being_served", officer_id="OFF-1")
    service.transition(entry.id, "completed")
    updated = service.submit_feedback(entry.id, 4, "  Quick service  ")

    assert updated.feedback.rating == 4
    assert updated.feedback.comment == "Quick service"

    with pytest.raises(ValidationError):
        service.submit_feedback(entry.id, 5)


@pytest.mark.parametrize("rating", [0, 6, True])
def test_feedback_rating_bounds(service, rating):
    entry = _register(service, "0771000001")
    service.transition(entry.id, "being_served", officer_id="OFF-1")
    service.transition(entry.id, "completed")

    with pytest.raises(ValidationError):
        service.submit_feedback(entry.id, rating)
