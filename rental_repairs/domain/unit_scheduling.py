"""
Unit Scheduling Validation Engine

Decides whether a worker may be booked into a property unit on a date, given
the property's existing assignments. Pure: same snapshot in, same result out.

Rules, first failure wins:
  1. specialization match (generalist matches anything; no requirement
     matches everything)
  2. unit exclusivity: no *other* worker may hold an active assignment in the
     same unit on the same date
  3. per-worker-per-unit capacity: at most 2 active assignments for this
     worker in this unit on this date, 3 with the emergency override

Only Scheduled / InProgress assignments count. Booking the same worker into
different units of a property on one day is allowed here; the worker's global
daily cap is checked separately (see availability.evaluate_assignment).
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union
import uuid

from rental_repairs.domain.enums import AssignmentStatus
from rental_repairs.domain.specialization import Specialization, parse_specialization

UNIT_ASSIGNMENT_LIMIT = 2
EMERGENCY_UNIT_ASSIGNMENT_LIMIT = 3


class SchedulingConflict(str, Enum):
    NONE = "None"
    SPECIALIZATION_MISMATCH = "SpecializationMismatch"
    UNIT_CONFLICT = "UnitConflict"
    WORKER_UNIT_LIMIT_EXCEEDED = "WorkerUnitLimitExceeded"
    # Produced by the composed check, never by the engine itself
    WORKER_INACTIVE = "WorkerInactive"
    WORKER_DAILY_LIMIT_EXCEEDED = "WorkerDailyLimitExceeded"


@dataclass(frozen=True)
class ExistingAssignment:
    """Projection of one worker_assignments row."""

    request_id: uuid.UUID
    worker_email: str
    property_code: str
    unit_number: str
    scheduled_date: date
    status: AssignmentStatus
    work_order_number: str = ""
    is_emergency: bool = False
    slot: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return AssignmentStatus(self.status).is_active


@dataclass(frozen=True)
class UnitSchedulingResult:
    admitted: bool
    reason: SchedulingConflict = SchedulingConflict.NONE
    detail: str = ""
    conflicting_assignments: Tuple[ExistingAssignment, ...] = field(default_factory=tuple)

    @classmethod
    def admit(cls) -> "UnitSchedulingResult":
        return cls(admitted=True)

    @classmethod
    def reject(
        cls,
        reason: SchedulingConflict,
        detail: str,
        conflicts: Iterable[ExistingAssignment] = (),
    ) -> "UnitSchedulingResult":
        return cls(admitted=False, reason=reason, detail=detail,
                   conflicting_assignments=tuple(conflicts))

    def to_dict(self) -> dict:
        return {"admitted": self.admitted, "reason": self.reason.value, "detail": self.detail}


def _same_unit_day(a: ExistingAssignment, property_code: str, unit_number: str, day: date) -> bool:
    return (
        a.is_active
        and a.scheduled_date == day
        and a.property_code.strip().lower() == property_code.strip().lower()
        and a.unit_number.strip().lower() == unit_number.strip().lower()
    )


def validate_unit_assignment(
    worker_email: str,
    worker_specialization: Union[Specialization, str, None],
    required_specialization: Union[Specialization, str, None],
    property_code: str,
    unit_number: str,
    scheduled_date: date,
    existing_assignments: Iterable[ExistingAssignment],
    emergency_override: bool = False,
    request_id: Optional[uuid.UUID] = None,
) -> UnitSchedulingResult:
    """
    Validate booking `worker_email` into `property_code`/`unit_number` on
    `scheduled_date`. `request_id`, when given, is left out of the capacity
    count so a request being re-booked does not block itself.
    """
    worker_email = worker_email.strip().lower()
    candidate = parse_specialization(worker_specialization)

    # Rule 1: specialization
    if not candidate.can_handle(required_specialization):
        required = parse_specialization(required_specialization)
        return UnitSchedulingResult.reject(
            SchedulingConflict.SPECIALIZATION_MISMATCH,
            f"Worker specialized in {candidate.value} cannot handle {required.value} work",
        )

    in_unit: List[ExistingAssignment] = [
        a for a in existing_assignments
        if _same_unit_day(a, property_code, unit_number, scheduled_date)
    ]

    # Rule 2: unit exclusivity
    other_workers = [a for a in in_unit if a.worker_email.strip().lower() != worker_email]
    if other_workers:
        return UnitSchedulingResult.reject(
            SchedulingConflict.UNIT_CONFLICT,
            f"Unit {unit_number} already has a different worker "
            f"({other_workers[0].worker_email}) assigned on {scheduled_date.isoformat()}",
            other_workers,
        )

    # Rule 3: per-worker-per-unit capacity
    own = [a for a in in_unit if request_id is None or a.request_id != request_id]
    limit = EMERGENCY_UNIT_ASSIGNMENT_LIMIT if emergency_override else UNIT_ASSIGNMENT_LIMIT
    if len(own) >= limit:
        return UnitSchedulingResult.reject(
            SchedulingConflict.WORKER_UNIT_LIMIT_EXCEEDED,
            f"Worker {worker_email} already has {len(own)} assignments in Unit {unit_number} "
            f"on {scheduled_date.isoformat()} (maximum {limit})",
            own,
        )

    return UnitSchedulingResult.admit()


def next_free_slot(
    existing_assignments: Iterable[ExistingAssignment],
    property_code: str,
    unit_number: str,
    scheduled_date: date,
) -> int:
    """
    Smallest slot number no active assignment holds in this unit-day of the
    snapshot. A writer with a stale snapshot claims a slot a newer booking
    already took, so the unique (unit, date, slot) constraint rejects it.
    """
    taken = {
        a.slot for a in existing_assignments
        if a.slot is not None and _same_unit_day(a, property_code, unit_number, scheduled_date)
    }
    slot = 1
    while slot in taken:
        slot += 1
    return slot
