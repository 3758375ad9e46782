import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from rental_repairs.core.exceptions import (
    ConcurrencyConflictError,
    InvalidAssignmentError,
    InvalidTransitionError,
    NotFoundError,
    TenantRequestValidationError,
)
from rental_repairs.domain.enums import AssignmentStatus, TenantRequestStatus
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.unit_scheduling import SchedulingConflict
from rental_repairs.models.worker import AssignmentRecord, WorkerRecord
from rental_repairs.repositories import WorkerRepository
from tests.conftest import PROPERTY_CODE, PROPERTY_ID, TODAY


@pytest.fixture
def plumber(worker_service):
    return worker_service.register("plumber@x.com", "Pat Plumber", "Plumbing")


def assignment_rows(db):
    return list(db.scalars(select(AssignmentRecord).order_by(AssignmentRecord.unit_number)))


# ==================== Happy path ====================

def test_schedule_same_day(db, scheduling_service, sink, plumber, submitted_request):
    request = submitted_request()
    sink.clear()

    outcome = scheduling_service.schedule_work(request.id, "Plumber@X.com", TODAY, "wo-1001")

    assert outcome.admitted
    assert outcome.required_specialization is Specialization.PLUMBING
    assert outcome.request.status is TenantRequestStatus.SCHEDULED
    assert outcome.request.assigned_worker_name == "Pat Plumber"
    assert outcome.assignment.work_order_number == "WO-1001"
    assert sink.names == ["TenantRequestScheduled", "WorkerAssigned"]

    [row] = assignment_rows(db)
    assert row.slot == 1
    assert row.unit_key == "sunset-01|101"
    assert row.worker_id == plumber.id


def test_same_worker_twice_in_one_unit_takes_next_slot(db, scheduling_service, plumber, submitted_request):
    first = submitted_request(unit_number="101")
    second = submitted_request(unit_number="101", title="Toilet keeps running")

    assert scheduling_service.schedule_work(first.id, plumber.email, TODAY, "WO-1").admitted
    assert scheduling_service.schedule_work(second.id, plumber.email, TODAY, "WO-2").admitted

    assert sorted(row.slot for row in assignment_rows(db)) == [1, 2]


def test_work_order_normalized_before_anything_loads(scheduling_service):
    with pytest.raises(InvalidAssignmentError):
        scheduling_service.schedule_work(uuid.uuid4(), "plumber@x.com", TODAY, "WO 1")


# ==================== Rejections ====================

def test_specialization_mismatch_leaves_everything_untouched(
    db, scheduling_service, worker_service, sink, submitted_request
):
    worker_service.register("sparky@x.com", "Sam Sparks", "Electrical")
    request = submitted_request()
    sink.clear()

    outcome = scheduling_service.schedule_work(request.id, "sparky@x.com", TODAY, "WO-1")

    assert not outcome.admitted
    assert outcome.result.reason is SchedulingConflict.SPECIALIZATION_MISMATCH
    assert outcome.assignment is None
    assert scheduling_service.requests.get(request.id).status is TenantRequestStatus.SUBMITTED
    assert assignment_rows(db) == []
    assert sink.events == []


def test_other_worker_in_unit_is_rejected(scheduling_service, worker_service, plumber, submitted_request):
    worker_service.register("other@x.com", "Olly Other", "Plumbing")
    first = submitted_request()
    second = submitted_request(title="Shower drain clogged")

    scheduling_service.schedule_work(first.id, plumber.email, TODAY, "WO-1")
    outcome = scheduling_service.schedule_work(second.id, "other@x.com", TODAY, "WO-2")

    assert outcome.result.reason is SchedulingConflict.UNIT_CONFLICT
    # A different day is fine
    tomorrow = scheduling_service.schedule_work(second.id, "other@x.com", TODAY + timedelta(days=1), "WO-2")
    assert tomorrow.admitted


def test_daily_cap_across_units_and_emergency_override(scheduling_service, plumber, submitted_request):
    for unit in ("101", "102"):
        request = submitted_request(unit_number=unit)
        assert scheduling_service.schedule_work(request.id, plumber.email, TODAY, f"WO-{unit}").admitted

    routine = submitted_request(unit_number="103")
    outcome = scheduling_service.schedule_work(routine.id, plumber.email, TODAY, "WO-103")
    assert outcome.result.reason is SchedulingConflict.WORKER_DAILY_LIMIT_EXCEEDED

    burst = submitted_request(unit_number="104", title="Burst pipe flooding", urgency="Emergency")
    assert scheduling_service.schedule_work(burst.id, plumber.email, TODAY, "WO-104").admitted

    # The request's urgency is only the default; the caller may withhold the override
    another = submitted_request(unit_number="105", title="Water leak", urgency="Critical")
    withheld = scheduling_service.schedule_work(
        another.id, plumber.email, TODAY + timedelta(days=1), "WO-105", emergency_override=False,
    )
    assert withheld.admitted


def test_inactive_worker_rejected(scheduling_service, worker_service, plumber, submitted_request):
    worker_service.deactivate(plumber.id, "On leave")
    request = submitted_request()

    outcome = scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")
    assert outcome.result.reason is SchedulingConflict.WORKER_INACTIVE


# ==================== Errors ====================

def test_past_date_raises(scheduling_service, plumber, submitted_request):
    request = submitted_request()
    with pytest.raises(TenantRequestValidationError):
        scheduling_service.schedule_work(request.id, plumber.email, TODAY - timedelta(days=1), "WO-1")


def test_draft_request_cannot_be_scheduled(scheduling_service, tenant_service, plumber):
    outcome = tenant_service.create_request(
        uuid.uuid4(), PROPERTY_ID, PROPERTY_CODE, "101", "Dripping tap",
    )
    with pytest.raises(InvalidTransitionError):
        scheduling_service.schedule_work(outcome.request.id, plumber.email, TODAY, "WO-1")


def test_unknown_worker_or_request(scheduling_service, plumber, submitted_request):
    request = submitted_request()
    with pytest.raises(NotFoundError):
        scheduling_service.schedule_work(request.id, "nobody@x.com", TODAY, "WO-1")
    with pytest.raises(NotFoundError):
        scheduling_service.schedule_work(uuid.uuid4(), plumber.email, TODAY, "WO-1")


# ==================== Concurrency ====================

def _bump_worker_version(repo, worker_id):
    table = WorkerRecord.__table__
    repo.db.execute(
        update(table)
        .where(table.c.id == worker_id)
        .values(version_id=table.c.version_id + 1)
    )


def test_stale_worker_is_reloaded_and_retried(db, scheduling_service, plumber, submitted_request, monkeypatch):
    request = submitted_request()
    original = WorkerRepository.get_by_email
    calls = []

    def racing_get_by_email(self, email):
        worker = original(self, email)
        calls.append(email)
        if len(calls) == 1:
            # Another session books this worker between our read and our write
            _bump_worker_version(self, worker.id)
        return worker

    monkeypatch.setattr(WorkerRepository, "get_by_email", racing_get_by_email)

    outcome = scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")

    assert outcome.admitted
    assert len(calls) == 2
    assert len(assignment_rows(db)) == 1


def test_second_conflict_raises(db, scheduling_service, plumber, submitted_request, monkeypatch):
    request = submitted_request()
    original = WorkerRepository.get_by_email

    def always_racing(self, email):
        worker = original(self, email)
        _bump_worker_version(self, worker.id)
        return worker

    monkeypatch.setattr(WorkerRepository, "get_by_email", always_racing)

    with pytest.raises(ConcurrencyConflictError):
        scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")

    monkeypatch.undo()
    assert scheduling_service.requests.get(request.id).status is TenantRequestStatus.SUBMITTED
    assert assignment_rows(db) == []


def test_stale_unit_snapshot_collides_and_is_revalidated(
    db, scheduling_service, worker_service, plumber, submitted_request, monkeypatch
):
    other = worker_service.register("other@x.com", "Olly Other", "Plumbing")
    ours = submitted_request()
    theirs = submitted_request(title="Shower drain clogged")
    original = WorkerRepository.assignments_for_property
    snapshots = []

    def racing_snapshot(self, property_code, on_date=None):
        snapshot = original(self, property_code, on_date)
        snapshots.append(snapshot)
        if len(snapshots) == 1:
            # Another worker is booked into the same unit-day after our read
            assert scheduling_service.schedule_work(theirs.id, other.email, on_date, "WO-2").admitted
        return snapshot

    monkeypatch.setattr(WorkerRepository, "assignments_for_property", racing_snapshot)

    outcome = scheduling_service.schedule_work(ours.id, plumber.email, TODAY, "WO-1")

    assert not outcome.admitted
    assert outcome.result.reason is SchedulingConflict.UNIT_CONFLICT
    assert len(snapshots) == 3

    monkeypatch.undo()
    [row] = assignment_rows(db)
    assert (row.worker_id, row.slot) == (other.id, 1)
    assert scheduling_service.requests.get(ours.id).status is TenantRequestStatus.SUBMITTED


def test_snapshot_carries_slots(db, scheduling_service, plumber, submitted_request):
    request = submitted_request()
    scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")

    [existing] = WorkerRepository(db).assignments_for_property(PROPERTY_CODE, TODAY)
    assert existing.slot == 1


def test_new_assignment_needs_a_chosen_slot(db, clock, plumber):
    repo = WorkerRepository(db)
    worker = repo.get(plumber.id)
    worker.assign_to_work(uuid.uuid4(), PROPERTY_CODE, "101", TODAY, "WO-1", clock=clock)

    with pytest.raises(ValueError):
        repo.save(worker)
    db.rollback()


def test_unit_day_slot_is_unique(db, plumber):
    for _ in range(2):
        db.add(AssignmentRecord(
            worker_id=plumber.id,
            request_id=uuid.uuid4(),
            property_code=PROPERTY_CODE,
            unit_number="101",
            unit_key="sunset-01|101",
            scheduled_date=TODAY,
            slot=1,
            work_order_number="WO-1",
        ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_released_slots_do_not_collide(db, scheduling_service, tenant_service, plumber, submitted_request):
    request = submitted_request()
    scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")
    tenant_service.report_completion(request.id, False, "no access")

    scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-2")

    rows = assignment_rows(db)
    assert sorted((r.status, r.slot) for r in rows) == sorted([
        (AssignmentStatus.FAILED, None),
        (AssignmentStatus.SCHEDULED, 1),
    ])


# ==================== Start work ====================

def test_start_work(scheduling_service, plumber, submitted_request):
    request = submitted_request()
    scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")

    assignment = scheduling_service.start_work(request.id)
    assert assignment.status is AssignmentStatus.IN_PROGRESS


def test_start_work_requires_scheduled_request(scheduling_service, submitted_request):
    request = submitted_request()
    with pytest.raises(InvalidAssignmentError):
        scheduling_service.start_work(request.id)


# ==================== Availability queries ====================

def test_find_candidate_workers(scheduling_service, worker_service, plumber, submitted_request):
    worker_service.register("sparky@x.com", "Sam Sparks", "Electrical")
    worker_service.register("handy@x.com", "Hal Handy", "General Maintenance")
    busy = submitted_request(unit_number="202", title="Clogged drain")
    scheduling_service.schedule_work(busy.id, plumber.email, TODAY, "WO-9")

    request = submitted_request()
    candidates = scheduling_service.find_candidate_workers(request.id)

    assert candidates.required_specialization is Specialization.PLUMBING
    assert candidates.start == TODAY
    assert candidates.end == TODAY + timedelta(days=30)
    assert [w.worker_email for w in candidates.workers] == ["handy@x.com", "plumber@x.com"]
    assert all(w.admission.admitted for w in candidates.workers)


def test_candidate_window_clamped_to_today(scheduling_service, submitted_request):
    request = submitted_request()
    candidates = scheduling_service.find_candidate_workers(request.id, start=TODAY - timedelta(days=5))
    assert candidates.start == TODAY

    with pytest.raises(InvalidAssignmentError):
        scheduling_service.find_candidate_workers(request.id, TODAY + timedelta(days=3), TODAY)


def test_worker_availability(scheduling_service, plumber, submitted_request):
    request = submitted_request()
    scheduling_service.schedule_work(request.id, plumber.email, TODAY, "WO-1")

    summary = scheduling_service.worker_availability(plumber.email, TODAY, TODAY + timedelta(days=1))
    assert summary.partially_booked_dates == (TODAY,)
    assert summary.next_available_date == TODAY + timedelta(days=1)
    assert summary.ranking_score == 101

    with pytest.raises(NotFoundError):
        scheduling_service.worker_availability("nobody@x.com")
