"""
Availability query and ranking.

Read-side composition over Worker and the unit scheduling engine: builds the
annotated, ordered candidate list the scheduling screen shows, and the single
admission rule used before a booking is written.

Admission composes both caps: a booking is admitted only when the worker is
active, the unit engine admits it, AND the worker's global daily cap passes
(2 per day, 3 when the emergency override is set).
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.unit_scheduling import (
    ExistingAssignment,
    SchedulingConflict,
    UnitSchedulingResult,
    validate_unit_assignment,
)
from rental_repairs.domain.worker import DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS, Worker


@dataclass(frozen=True)
class WorkerAvailabilitySummary:
    worker_id: str
    worker_email: str
    worker_name: str
    specialization: Specialization
    booked_dates: Tuple[date, ...]
    partially_booked_dates: Tuple[date, ...]
    next_available_date: Optional[date]
    ranking_score: int
    current_workload: int
    availability_score: int
    is_available: bool
    admission: Optional[UnitSchedulingResult] = field(default=None)

    def to_dict(self) -> dict:
        return {
            "worker_id": self.worker_id,
            "worker_email": self.worker_email,
            "worker_name": self.worker_name,
            "specialization": self.specialization.value,
            "booked_dates": [d.isoformat() for d in self.booked_dates],
            "partially_booked_dates": [d.isoformat() for d in self.partially_booked_dates],
            "next_available_date": (
                self.next_available_date.isoformat() if self.next_available_date else None
            ),
            "ranking_score": self.ranking_score,
            "current_workload": self.current_workload,
            "availability_score": self.availability_score,
            "is_available": self.is_available,
            "admission": self.admission.to_dict() if self.admission else None,
        }


def summarize_worker(
    worker: Worker,
    start: date,
    end: date,
    is_emergency: bool = False,
    max_lookahead_days: int = DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
    clock: Optional[Clock] = None,
    admission: Optional[UnitSchedulingResult] = None,
) -> WorkerAvailabilitySummary:
    clock = resolve_clock(clock)
    return WorkerAvailabilitySummary(
        worker_id=str(worker.id),
        worker_email=worker.email,
        worker_name=worker.full_name,
        specialization=worker.specialization,
        booked_dates=tuple(worker.booked_dates_in_range(start, end, is_emergency)),
        partially_booked_dates=tuple(worker.partially_booked_dates_in_range(start, end)),
        next_available_date=worker.next_fully_available_date(start, max_lookahead_days, clock),
        ranking_score=worker.ranking_score(start, max_lookahead_days, clock),
        current_workload=worker.upcoming_workload_count(start),
        availability_score=worker.availability_score_for_date(start, is_emergency, clock),
        is_available=worker.is_available_for_work(start, clock),
        admission=admission,
    )


def rank_candidate_workers(
    workers: Iterable[Worker],
    required_specialization,
    start: date,
    end: date,
    is_emergency: bool = False,
    property_code: Optional[str] = None,
    unit_number: Optional[str] = None,
    existing_assignments: Sequence[ExistingAssignment] = (),
    max_results: Optional[int] = None,
    max_lookahead_days: int = DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
    clock: Optional[Clock] = None,
) -> List[WorkerAvailabilitySummary]:
    """
    Active workers able to handle `required_specialization`, soonest
    available first, lighter workload breaking ties. When a property unit is
    given each summary also carries the admission result for `start`.
    """
    clock = resolve_clock(clock)
    candidates = [
        w for w in workers
        if w.is_active and w.specialization.can_handle(required_specialization)
    ]

    summaries = []
    for worker in candidates:
        admission = None
        if property_code and unit_number:
            admission = evaluate_assignment(
                worker,
                required_specialization,
                property_code,
                unit_number,
                start,
                existing_assignments,
                emergency_override=is_emergency,
            )
        summaries.append(summarize_worker(
            worker, start, end, is_emergency, max_lookahead_days, clock, admission,
        ))

    summaries.sort(key=lambda s: (s.ranking_score, s.worker_email))
    if max_results is not None:
        summaries = summaries[:max_results]
    return summaries


def evaluate_assignment(
    worker: Worker,
    required_specialization,
    property_code: str,
    unit_number: str,
    scheduled_date: date,
    existing_assignments: Iterable[ExistingAssignment],
    emergency_override: bool = False,
    request_id=None,
) -> UnitSchedulingResult:
    """Both caps must pass: unit engine first, then the worker's daily cap."""
    if not worker.is_active:
        return UnitSchedulingResult.reject(
            SchedulingConflict.WORKER_INACTIVE,
            f"Worker {worker.email} is inactive",
        )

    result = validate_unit_assignment(
        worker_email=worker.email,
        worker_specialization=worker.specialization,
        required_specialization=required_specialization,
        property_code=property_code,
        unit_number=unit_number,
        scheduled_date=scheduled_date,
        existing_assignments=existing_assignments,
        emergency_override=emergency_override,
        request_id=request_id,
    )
    if not result.admitted:
        return result

    if not worker.has_daily_capacity(scheduled_date, emergency_override):
        return UnitSchedulingResult.reject(
            SchedulingConflict.WORKER_DAILY_LIMIT_EXCEEDED,
            f"Worker {worker.email} already has "
            f"{worker.active_assignment_count(scheduled_date)} assignments on "
            f"{scheduled_date.isoformat()} (daily maximum {worker.daily_limit(emergency_override)})",
            [
                ExistingAssignment(
                    request_id=a.request_id,
                    worker_email=worker.email,
                    property_code=a.property_code,
                    unit_number=a.unit_number,
                    scheduled_date=a.scheduled_date,
                    status=a.status,
                    work_order_number=a.work_order_number,
                    is_emergency=a.is_emergency,
                )
                for a in worker.active_assignments_on(scheduled_date)
            ],
        )
    return result


def project_assignments(workers: Iterable[Worker], property_code: Optional[str] = None) -> List[ExistingAssignment]:
    """Flatten worker-owned assignments into engine input rows."""
    rows = []
    for worker in workers:
        for a in worker.assignments:
            if property_code and a.property_code.strip().lower() != property_code.strip().lower():
                continue
            rows.append(ExistingAssignment(
                request_id=a.request_id,
                worker_email=worker.email,
                property_code=a.property_code,
                unit_number=a.unit_number,
                scheduled_date=a.scheduled_date,
                status=a.status,
                work_order_number=a.work_order_number,
                is_emergency=a.is_emergency,
            ))
    return rows
