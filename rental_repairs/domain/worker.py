"""
Worker aggregate

Owns its assignments and answers every per-date availability question the
scheduling screens ask: booked / partially booked calendars, availability
scores, the next fully free date and a ranking score.

Capacity here is the *global* per-day cap (any unit, any property). The
per-unit cap lives in the unit scheduling engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional
import re
import sys
import uuid

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.core.exceptions import AssignmentNotFoundError, InvalidAssignmentError
from rental_repairs.domain.enums import ASSIGNMENT_TRANSITIONS, AssignmentStatus
from rental_repairs.domain.events import (
    AssignmentCancelled,
    DomainEvent,
    EventOutbox,
    WorkCompleted,
    WorkerActivated,
    WorkerAssigned,
    WorkerDeactivated,
    WorkerRegistered,
    WorkerSpecializationChanged,
)
from rental_repairs.domain.specialization import Specialization, parse_specialization

DAILY_ASSIGNMENT_LIMIT = 2
EMERGENCY_DAILY_ASSIGNMENT_LIMIT = 3
DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS = 60
DEFAULT_WORKLOAD_WINDOW_DAYS = 30
NO_AVAILABILITY_PENALTY_DAYS = 999

_WORK_ORDER_RE = re.compile(r"^[A-Z0-9\-]{3,20}$")


def normalize_work_order_number(work_order_number: Optional[str]) -> str:
    if not work_order_number or not work_order_number.strip():
        raise InvalidAssignmentError("work_order_number", work_order_number,
                                     "Work order number is required")
    normalized = work_order_number.strip().upper()
    if not _WORK_ORDER_RE.match(normalized):
        raise InvalidAssignmentError(
            "work_order_number",
            work_order_number,
            "Work order number must be 3-20 characters of letters, digits or hyphens",
        )
    return normalized


def _daterange(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


@dataclass(eq=False)
class Assignment:
    """A worker's booking for one request on one unit and day."""

    request_id: uuid.UUID
    property_code: str
    unit_number: str
    scheduled_date: date
    work_order_number: str
    status: AssignmentStatus = AssignmentStatus.SCHEDULED
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_emergency: bool = False
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def transition_to(self, new_status: AssignmentStatus) -> None:
        if new_status not in ASSIGNMENT_TRANSITIONS[self.status]:
            raise InvalidAssignmentError(
                "status",
                new_status.value,
                f"Assignment for request {self.request_id} cannot move from "
                f"{self.status.value} to {new_status.value}",
            )
        self.status = new_status


@dataclass(eq=False)
class Worker:
    email: str
    full_name: str = ""
    specialization: Specialization = Specialization.GENERAL_MAINTENANCE
    is_active: bool = True
    phone: Optional[str] = None
    notes: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    assignments: List[Assignment] = field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _outbox: EventOutbox = field(default_factory=EventOutbox, repr=False)

    @classmethod
    def register(
        cls,
        email: str,
        full_name: str,
        specialization=Specialization.GENERAL_MAINTENANCE,
        phone: Optional[str] = None,
    ) -> "Worker":
        if not email or "@" not in email:
            raise InvalidAssignmentError("email", email, "A valid worker email is required")
        worker = cls(
            email=email.strip().lower(),
            full_name=(full_name or "").strip(),
            specialization=parse_specialization(specialization),
            phone=phone,
        )
        worker._outbox.record(WorkerRegistered(worker=worker))
        return worker

    # ==================== Profile ====================

    def change_specialization(self, specialization) -> None:
        new = parse_specialization(specialization)
        old = self.specialization
        self.specialization = new
        if old is not new:
            self._outbox.record(WorkerSpecializationChanged(
                worker=self, old_specialization=old.value, new_specialization=new.value,
            ))

    def can_handle(self, required) -> bool:
        return self.specialization.can_handle(required)

    def add_notes(self, text: str, clock: Optional[Clock] = None) -> None:
        if not text or not text.strip():
            return
        if not self.notes:
            self.notes = text.strip()
        else:
            stamp = resolve_clock(clock).today().isoformat()
            self.notes = f"{self.notes}\n{stamp}: {text.strip()}"

    def deactivate(self, reason: str = "", clock: Optional[Clock] = None) -> None:
        self.is_active = False
        self.add_notes(f"Worker deactivated. Reason: {reason}", clock)
        self._outbox.record(WorkerDeactivated(worker=self, reason=reason))

    def activate(self, clock: Optional[Clock] = None) -> None:
        self.is_active = True
        self.add_notes("Worker reactivated", clock)
        self._outbox.record(WorkerActivated(worker=self))

    # ==================== Assignments ====================

    def active_assignments_on(self, day: date) -> List[Assignment]:
        return [a for a in self.assignments if a.is_active and a.scheduled_date == day]

    def active_assignment_count(self, day: date) -> int:
        return len(self.active_assignments_on(day))

    def active_assignment_for(self, request_id: uuid.UUID) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.request_id == request_id and assignment.is_active:
                return assignment
        return None

    def daily_limit(self, emergency_override: bool = False) -> int:
        return EMERGENCY_DAILY_ASSIGNMENT_LIMIT if emergency_override else DAILY_ASSIGNMENT_LIMIT

    def is_available_for_work(self, work_date: date, clock: Optional[Clock] = None) -> bool:
        """Global per-day cap: fewer than 2 active assignments anywhere that day."""
        if not self.is_active:
            return False
        if work_date < resolve_clock(clock).today():
            return False
        return self.active_assignment_count(work_date) < DAILY_ASSIGNMENT_LIMIT

    def has_daily_capacity(self, work_date: date, emergency_override: bool = False) -> bool:
        return self.active_assignment_count(work_date) < self.daily_limit(emergency_override)

    def assign_to_work(
        self,
        request_id: uuid.UUID,
        property_code: str,
        unit_number: str,
        scheduled_date: date,
        work_order_number: str,
        emergency_override: bool = False,
        clock: Optional[Clock] = None,
    ) -> Assignment:
        clock = resolve_clock(clock)
        work_order_number = normalize_work_order_number(work_order_number)

        if not self.is_active:
            raise InvalidAssignmentError("worker", self.email, "Cannot assign work to an inactive worker")
        if scheduled_date < clock.today():
            raise InvalidAssignmentError(
                "scheduled_date", scheduled_date, "Scheduled date must be today or in the future"
            )
        if self.active_assignment_for(request_id) is not None:
            raise InvalidAssignmentError(
                "request_id", request_id,
                f"Worker {self.email} already has an active assignment for request {request_id}",
            )
        if not self.has_daily_capacity(scheduled_date, emergency_override):
            raise InvalidAssignmentError(
                "scheduled_date",
                scheduled_date,
                f"Worker already has {self.active_assignment_count(scheduled_date)} assignments "
                f"on {scheduled_date.isoformat()}. Maximum is {self.daily_limit(emergency_override)} per day.",
            )

        assignment = Assignment(
            request_id=request_id,
            property_code=property_code,
            unit_number=unit_number,
            scheduled_date=scheduled_date,
            work_order_number=work_order_number,
            is_emergency=emergency_override,
            assigned_at=clock.now(),
        )
        self.assignments.append(assignment)
        self._outbox.record(WorkerAssigned(worker=self, assignment=assignment))
        return assignment

    def _require_active_assignment(self, request_id: uuid.UUID) -> Assignment:
        assignment = self.active_assignment_for(request_id)
        if assignment is None:
            raise AssignmentNotFoundError(
                f"Worker {self.email} has no active assignment for request {request_id}"
            )
        return assignment

    def start_work(self, request_id: uuid.UUID) -> Assignment:
        assignment = self._require_active_assignment(request_id)
        assignment.transition_to(AssignmentStatus.IN_PROGRESS)
        return assignment

    def complete_work(
        self,
        request_id: uuid.UUID,
        successful: bool,
        completion_notes: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> Assignment:
        assignment = self._require_active_assignment(request_id)
        assignment.transition_to(
            AssignmentStatus.COMPLETED if successful else AssignmentStatus.FAILED
        )
        assignment.completed_at = resolve_clock(clock).now()
        assignment.completion_notes = completion_notes
        self._outbox.record(WorkCompleted(
            worker=self,
            assignment=assignment,
            successful=successful,
            completion_notes=completion_notes or "",
        ))
        return assignment

    def cancel_assignment(self, request_id: uuid.UUID, reason: str = "") -> Assignment:
        assignment = self._require_active_assignment(request_id)
        assignment.transition_to(AssignmentStatus.CANCELLED)
        assignment.completion_notes = reason or None
        self._outbox.record(AssignmentCancelled(worker=self, assignment=assignment, reason=reason))
        return assignment

    # ==================== Booking Calendar ====================

    def booked_dates_in_range(
        self, start: date, end: date, emergency_override: bool = False
    ) -> List[date]:
        """Dates with 2+ active assignments (3+ under emergency override)."""
        if not self.is_active:
            return []
        limit = self.daily_limit(emergency_override)
        return [d for d in _daterange(start, end) if self.active_assignment_count(d) >= limit]

    def partially_booked_dates_in_range(self, start: date, end: date) -> List[date]:
        """Dates with exactly one active assignment."""
        if not self.is_active:
            return []
        return [d for d in _daterange(start, end) if self.active_assignment_count(d) == 1]

    def availability_score_for_date(
        self, day: date, is_emergency: bool = False, clock: Optional[Clock] = None
    ) -> int:
        """0 = fully booked, 1 = partially booked, 2 = fully free."""
        if not self.is_active or day < resolve_clock(clock).today():
            return 0

        count = self.active_assignment_count(day)
        if is_emergency:
            # An emergency may still take the third slot.
            if count >= EMERGENCY_DAILY_ASSIGNMENT_LIMIT:
                return 0
            return 2 if count == 0 else 1
        return max(0, DAILY_ASSIGNMENT_LIMIT - count)

    def next_fully_available_date(
        self,
        start: date,
        max_lookahead_days: int = DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
        clock: Optional[Clock] = None,
    ) -> Optional[date]:
        if not self.is_active:
            return None
        today = resolve_clock(clock).today()
        search_start = max(start, today)
        for day in _daterange(search_start, search_start + timedelta(days=max_lookahead_days)):
            if self.active_assignment_count(day) == 0:
                return day
        return None

    def upcoming_workload_count(
        self, from_date: date, days_ahead: int = DEFAULT_WORKLOAD_WINDOW_DAYS
    ) -> int:
        end = from_date + timedelta(days=days_ahead)
        return sum(
            1 for a in self.assignments
            if a.is_active and from_date <= a.scheduled_date <= end
        )

    def ranking_score(
        self,
        reference_date: date,
        max_lookahead_days: int = DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
        clock: Optional[Clock] = None,
    ) -> int:
        """
        days_until_next_fully_available * 100 + current_workload, where the
        workload is counted from today rather than from `reference_date`.
        Lower is better; inactive workers sort last.
        """
        if not self.is_active:
            return sys.maxsize

        next_free = self.next_fully_available_date(reference_date, max_lookahead_days, clock)
        if next_free is None:
            days_until = NO_AVAILABILITY_PENALTY_DAYS
        else:
            days_until = (next_free - reference_date).days
        return days_until * 100 + self.upcoming_workload_count(resolve_clock(clock).today())

    # ==================== Events ====================

    @property
    def pending_events(self) -> List[DomainEvent]:
        return self._outbox.pending()

    def pull_events(self) -> List[DomainEvent]:
        return self._outbox.drain()
