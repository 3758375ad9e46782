import uuid
from datetime import date

import pytest

from rental_repairs.domain.enums import AssignmentStatus
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.unit_scheduling import (
    ExistingAssignment,
    SchedulingConflict,
    next_free_slot,
    validate_unit_assignment,
)

DAY = date(2026, 3, 4)


def existing(worker_email, unit="101", status=AssignmentStatus.SCHEDULED, day=DAY, property_code="SUNSET-01"):
    return ExistingAssignment(
        request_id=uuid.uuid4(),
        worker_email=worker_email,
        property_code=property_code,
        unit_number=unit,
        scheduled_date=day,
        status=status,
    )


def validate(snapshot, worker_email="plumber@x.com", worker_spec=Specialization.PLUMBING,
             required=Specialization.PLUMBING, unit="101", emergency=False, request_id=None):
    return validate_unit_assignment(
        worker_email=worker_email,
        worker_specialization=worker_spec,
        required_specialization=required,
        property_code="SUNSET-01",
        unit_number=unit,
        scheduled_date=DAY,
        existing_assignments=snapshot,
        emergency_override=emergency,
        request_id=request_id,
    )


# ==================== Rule 1: specialization ====================

def test_specialization_mismatch_rejected():
    result = validate([], worker_spec=Specialization.ELECTRICAL, required=Specialization.PLUMBING)
    assert not result.admitted
    assert result.reason is SchedulingConflict.SPECIALIZATION_MISMATCH


@pytest.mark.parametrize("required", [None, "", "   "])
def test_missing_requirement_matches_anyone(required):
    result = validate([], worker_spec=Specialization.LOCKSMITH, required=required)
    assert result.admitted


def test_generalist_matches_anything():
    result = validate([], worker_spec="General Maintenance", required="HVAC")
    assert result.admitted
    assert result.reason is SchedulingConflict.NONE


@pytest.mark.parametrize("spec", list(Specialization))
def test_empty_unit_admits_matching_worker(spec):
    assert validate([], worker_spec=spec, required=spec).admitted


def test_specialization_checked_before_unit_conflict():
    snapshot = [existing("other@x.com")]
    result = validate(snapshot, worker_spec=Specialization.PAINTING)
    assert result.reason is SchedulingConflict.SPECIALIZATION_MISMATCH


# ==================== Rule 2: unit exclusivity ====================

def test_other_worker_in_unit_is_unit_conflict():
    snapshot = [existing("other@x.com")]
    result = validate(snapshot)

    assert not result.admitted
    assert result.reason is SchedulingConflict.UNIT_CONFLICT
    assert result.conflicting_assignments == tuple(snapshot)


def test_unit_conflict_wins_over_capacity_even_when_full():
    snapshot = [existing("other@x.com"), existing("other@x.com"), existing("plumber@x.com")]
    result = validate(snapshot, emergency=True)
    assert result.reason is SchedulingConflict.UNIT_CONFLICT


def test_unit_and_property_compare_case_insensitively():
    snapshot = [existing("Other@X.com", unit=" 101 ", property_code="sunset-01")]
    assert validate(snapshot).reason is SchedulingConflict.UNIT_CONFLICT


@pytest.mark.parametrize("status", [
    AssignmentStatus.COMPLETED,
    AssignmentStatus.CANCELLED,
    AssignmentStatus.FAILED,
])
def test_terminal_assignments_never_block(status):
    snapshot = [existing("other@x.com", status=status)] * 3
    assert validate(snapshot).admitted


def test_in_progress_assignments_block():
    snapshot = [existing("other@x.com", status=AssignmentStatus.IN_PROGRESS)]
    assert validate(snapshot).reason is SchedulingConflict.UNIT_CONFLICT


def test_other_units_and_days_do_not_conflict():
    snapshot = [
        existing("other@x.com", unit="102"),
        existing("other@x.com", day=date(2026, 3, 5)),
        existing("other@x.com", property_code="HARBOR-02"),
    ]
    assert validate(snapshot).admitted


# ==================== Rule 3: per-worker-per-unit capacity ====================

def test_same_worker_same_unit_allowed_up_to_two():
    assert validate([existing("plumber@x.com")]).admitted


def test_third_assignment_needs_emergency_override():
    snapshot = [existing("plumber@x.com"), existing("plumber@x.com")]

    rejected = validate(snapshot, emergency=False)
    assert rejected.reason is SchedulingConflict.WORKER_UNIT_LIMIT_EXCEEDED
    assert len(rejected.conflicting_assignments) == 2

    assert validate(snapshot, emergency=True).admitted


def test_fourth_assignment_rejected_even_with_override():
    snapshot = [existing("plumber@x.com")] * 3
    result = validate(snapshot, emergency=True)
    assert result.reason is SchedulingConflict.WORKER_UNIT_LIMIT_EXCEEDED


def test_request_being_rebooked_does_not_count_against_itself():
    first = existing("plumber@x.com")
    snapshot = [first, existing("plumber@x.com")]
    assert validate(snapshot, request_id=first.request_id).admitted


def test_same_worker_different_units_same_day_allowed():
    snapshot = [existing("plumber@x.com", unit="101"), existing("plumber@x.com", unit="102")]
    assert validate(snapshot, unit="103").admitted


# ==================== Purity ====================

def test_same_snapshot_gives_same_result():
    snapshot = [existing("plumber@x.com"), existing("plumber@x.com")]
    first = validate(snapshot)
    second = validate(snapshot)
    assert first == second
    assert first.to_dict() == {
        "admitted": False,
        "reason": "WorkerUnitLimitExceeded",
        "detail": first.detail,
    }


def test_next_free_slot_reads_the_snapshot():
    first = ExistingAssignment(uuid.uuid4(), "plumber@x.com", "sunset-01", "101 ", DAY,
                               AssignmentStatus.SCHEDULED, slot=1)
    third = ExistingAssignment(uuid.uuid4(), "plumber@x.com", "SUNSET-01", "101", DAY,
                               AssignmentStatus.IN_PROGRESS, slot=3)
    released = ExistingAssignment(uuid.uuid4(), "plumber@x.com", "SUNSET-01", "101", DAY,
                                  AssignmentStatus.FAILED, slot=None)
    elsewhere = ExistingAssignment(uuid.uuid4(), "plumber@x.com", "SUNSET-01", "102", DAY,
                                   AssignmentStatus.SCHEDULED, slot=2)

    assert next_free_slot([], "SUNSET-01", "101", DAY) == 1
    assert next_free_slot([first, third, released, elsewhere], "SUNSET-01", "101", DAY) == 2
