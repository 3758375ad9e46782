import sys
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from rental_repairs.core.clock import FixedClock
from rental_repairs.core.exceptions import AssignmentNotFoundError, InvalidAssignmentError
from rental_repairs.domain.enums import AssignmentStatus
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.worker import (
    NO_AVAILABILITY_PENALTY_DAYS,
    Worker,
    normalize_work_order_number,
)

CLOCK = FixedClock(datetime(2026, 3, 2, 16, 0, tzinfo=timezone.utc))
TODAY = CLOCK.today()


def plumber():
    return Worker.register("Plumber@X.com", "Pat Plumber", "plumber")


def book(worker, day=TODAY, unit="101", emergency=False):
    return worker.assign_to_work(
        uuid.uuid4(), "SUNSET-01", unit, day, f"WO-{uuid.uuid4().hex[:6]}",
        emergency_override=emergency, clock=CLOCK,
    )


# ==================== Registration & profile ====================

def test_register_normalizes_email_and_specialization():
    worker = plumber()
    assert worker.email == "plumber@x.com"
    assert worker.specialization is Specialization.PLUMBING
    assert worker.is_active
    assert worker.pending_events[0].name == "WorkerRegistered"


def test_register_requires_email():
    with pytest.raises(InvalidAssignmentError):
        Worker.register("not-an-email", "Nobody")


def test_change_specialization_records_event_only_on_change():
    worker = plumber()
    worker.pull_events()

    worker.change_specialization("Plumbing")
    assert worker.pending_events == []

    worker.change_specialization("electrician")
    assert worker.specialization is Specialization.ELECTRICAL
    assert worker.pending_events[-1].payload()["new"] == "Electrical"


def test_deactivate_and_activate_append_notes():
    worker = plumber()
    worker.deactivate("On leave", CLOCK)
    assert not worker.is_active
    assert "On leave" in worker.notes

    worker.activate(CLOCK)
    assert worker.is_active
    assert worker.notes.endswith("Worker reactivated")


# ==================== Assignment ====================

def test_assign_to_work_appends_scheduled_assignment():
    worker = plumber()
    assignment = book(worker)

    assert assignment.status is AssignmentStatus.SCHEDULED
    assert assignment.assigned_at == CLOCK.now()
    assert worker.active_assignment_count(TODAY) == 1
    assert worker.pending_events[-1].name == "WorkerAssigned"


def test_assign_today_allowed_past_rejected():
    worker = plumber()
    book(worker, TODAY)
    with pytest.raises(InvalidAssignmentError):
        book(worker, TODAY - timedelta(days=1))


def test_assign_inactive_worker_rejected():
    worker = plumber()
    worker.deactivate("gone", CLOCK)
    with pytest.raises(InvalidAssignmentError):
        book(worker)


def test_daily_cap_two_unless_emergency():
    worker = plumber()
    book(worker, unit="101")
    book(worker, unit="102")

    with pytest.raises(InvalidAssignmentError):
        book(worker, unit="103")

    book(worker, unit="103", emergency=True)
    assert worker.active_assignment_count(TODAY) == 3
    with pytest.raises(InvalidAssignmentError):
        book(worker, unit="104", emergency=True)


def test_duplicate_active_assignment_for_request_rejected():
    worker = plumber()
    request_id = uuid.uuid4()
    worker.assign_to_work(request_id, "SUNSET-01", "101", TODAY, "WO-1", clock=CLOCK)
    with pytest.raises(InvalidAssignmentError):
        worker.assign_to_work(request_id, "SUNSET-01", "101", TODAY, "WO-2", clock=CLOCK)


@pytest.mark.parametrize("value", ["", "AB", "WO 1", "WO_1", "X" * 21])
def test_work_order_number_format(value):
    with pytest.raises(InvalidAssignmentError):
        normalize_work_order_number(value)


def test_work_order_number_is_upper_cased():
    assert normalize_work_order_number(" wo-77 ") == "WO-77"


def test_assignment_status_transitions():
    worker = plumber()
    assignment = book(worker)

    worker.start_work(assignment.request_id)
    assert assignment.status is AssignmentStatus.IN_PROGRESS

    worker.complete_work(assignment.request_id, True, "fixed", CLOCK)
    assert assignment.status is AssignmentStatus.COMPLETED
    assert assignment.completed_at == CLOCK.now()

    with pytest.raises(AssignmentNotFoundError):
        worker.cancel_assignment(assignment.request_id)


def test_terminal_assignments_free_capacity():
    worker = plumber()
    first = book(worker, unit="101")
    second = book(worker, unit="102")
    assert not worker.is_available_for_work(TODAY, CLOCK)

    worker.cancel_assignment(first.request_id, "tenant away")
    assert worker.is_available_for_work(TODAY, CLOCK)

    worker.complete_work(second.request_id, False, "no access", CLOCK)
    assert worker.active_assignment_count(TODAY) == 0


# ==================== Availability ====================

def test_is_available_for_work_global_cap_across_units():
    worker = plumber()
    book(worker, unit="101")
    assert worker.is_available_for_work(TODAY, CLOCK)
    book(worker, unit="102")
    assert not worker.is_available_for_work(TODAY, CLOCK)
    assert worker.is_available_for_work(TODAY + timedelta(days=1), CLOCK)


def test_is_available_for_work_past_date_or_inactive():
    worker = plumber()
    assert not worker.is_available_for_work(TODAY - timedelta(days=1), CLOCK)
    worker.deactivate("", CLOCK)
    assert not worker.is_available_for_work(TODAY, CLOCK)


@pytest.mark.parametrize("emergency", [False, True])
@pytest.mark.parametrize("offset", [-3, 0, 5])
def test_inactive_worker_scores_zero(emergency, offset):
    worker = plumber()
    worker.deactivate("", CLOCK)
    assert worker.availability_score_for_date(TODAY + timedelta(days=offset), emergency, CLOCK) == 0


def test_availability_scores():
    worker = plumber()
    assert worker.availability_score_for_date(TODAY, clock=CLOCK) == 2
    book(worker, unit="101")
    assert worker.availability_score_for_date(TODAY, clock=CLOCK) == 1
    book(worker, unit="102")
    assert worker.availability_score_for_date(TODAY, clock=CLOCK) == 0
    # An emergency may still use the third slot
    assert worker.availability_score_for_date(TODAY, True, CLOCK) == 1
    assert worker.availability_score_for_date(TODAY - timedelta(days=1), clock=CLOCK) == 0


def test_booked_and_partially_booked_dates():
    worker = plumber()
    tomorrow = TODAY + timedelta(days=1)
    book(worker, TODAY, "101")
    book(worker, TODAY, "102")
    book(worker, tomorrow, "101")

    end = TODAY + timedelta(days=3)
    assert worker.booked_dates_in_range(TODAY, end) == [TODAY]
    assert worker.booked_dates_in_range(TODAY, end, emergency_override=True) == []
    assert worker.partially_booked_dates_in_range(TODAY, end) == [tomorrow]


def test_next_fully_available_date():
    worker = plumber()
    book(worker, TODAY)
    book(worker, TODAY + timedelta(days=1))

    assert worker.next_fully_available_date(TODAY, clock=CLOCK) == TODAY + timedelta(days=2)
    assert worker.next_fully_available_date(TODAY, max_lookahead_days=1, clock=CLOCK) is None


def test_ranking_score():
    worker = plumber()
    assert worker.ranking_score(TODAY, clock=CLOCK) == 0

    book(worker, TODAY)
    # next free day is tomorrow (1 * 100) plus one upcoming assignment
    assert worker.ranking_score(TODAY, clock=CLOCK) == 101

    assert worker.ranking_score(TODAY, max_lookahead_days=0, clock=CLOCK) == (
        NO_AVAILABILITY_PENALTY_DAYS * 100 + 1
    )

    worker.deactivate("", CLOCK)
    assert worker.ranking_score(TODAY, clock=CLOCK) == sys.maxsize


def test_ranking_score_counts_workload_from_today():
    worker = plumber()
    book(worker, TODAY)
    later = TODAY + timedelta(days=3)

    # free on the search start, but the booking today still counts as workload
    assert worker.ranking_score(later, clock=CLOCK) == 1


def test_assignment_can_complete_without_a_recorded_start():
    worker = plumber()
    assignment = book(worker)

    worker.complete_work(assignment.request_id, True, "fixed on arrival", CLOCK)

    assert assignment.status is AssignmentStatus.COMPLETED
    assert worker.active_assignment_count(TODAY) == 0


def test_inactive_worker_reports_no_calendar():
    worker = plumber()
    book(worker, TODAY)
    book(worker, TODAY, "102")
    worker.deactivate("", CLOCK)
    assert worker.booked_dates_in_range(TODAY, TODAY) == []
    assert worker.next_fully_available_date(TODAY, clock=CLOCK) is None
