"""
Scheduling Service

Books a worker onto a tenant request:

    load request + worker -> infer required specialization
    -> load the property's assignment snapshot for the date
    -> composed admission check (unit engine + worker daily cap)
    -> TenantRequest.schedule_work + Worker.assign_to_work -> commit

The check-then-act window is closed by the persistence guards (worker version
counter, unit-day slot constraint). A conflict at commit is rolled back and
the whole sequence re-run once against a fresh snapshot; a second conflict is
reported to the caller as ConcurrencyConflictError.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.core.exceptions import (
    ConcurrencyConflictError,
    InvalidAssignmentError,
    NotFoundError,
)
from rental_repairs.domain.availability import (
    WorkerAvailabilitySummary,
    evaluate_assignment,
    rank_candidate_workers,
    summarize_worker,
)
from rental_repairs.domain.enums import TenantRequestStatus
from rental_repairs.domain.specialization import Specialization, SpecializationKeywordMap
from rental_repairs.domain.tenant_request import TenantRequest
from rental_repairs.domain.unit_scheduling import UnitSchedulingResult, next_free_slot
from rental_repairs.domain.worker import (
    DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
    Assignment,
    normalize_work_order_number,
)
from rental_repairs.repositories import TenantRequestRepository, WorkerRepository
from rental_repairs.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
)

logger = logging.getLogger(__name__)

MAX_SCHEDULING_ATTEMPTS = 2


@dataclass(frozen=True)
class SchedulingOutcome:
    result: UnitSchedulingResult
    request: TenantRequest
    required_specialization: Specialization
    assignment: Optional[Assignment] = None

    @property
    def admitted(self) -> bool:
        return self.result.admitted


@dataclass(frozen=True)
class CandidateWorkers:
    request_id: uuid.UUID
    required_specialization: Specialization
    is_emergency: bool
    start: date
    end: date
    workers: List[WorkerAvailabilitySummary] = field(default_factory=list)


class SchedulingService:
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        sink: Optional[NotificationSink] = None,
        keyword_map: Optional[SpecializationKeywordMap] = None,
        max_available_workers: int = 10,
        booking_lookahead_days: int = 30,
        next_available_search_days: int = DEFAULT_NEXT_AVAILABLE_SEARCH_DAYS,
    ):
        self.db = db
        self.clock = resolve_clock(clock)
        self.sink = sink or LoggingNotificationSink()
        self.keyword_map = keyword_map or SpecializationKeywordMap.default()
        self.max_available_workers = max_available_workers
        self.booking_lookahead_days = booking_lookahead_days
        self.next_available_search_days = next_available_search_days
        self.requests = TenantRequestRepository(db)
        self.workers = WorkerRepository(db)

    # ─────────────────────── Queries ───────────────────────

    def required_specialization(self, request: TenantRequest) -> Specialization:
        return self.keyword_map.determine(request.title, request.description)

    def find_candidate_workers(
        self,
        request_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
        max_results: Optional[int] = None,
    ) -> CandidateWorkers:
        request = self._get_request(request_id)
        start, end = self._window(start, end)
        required = self.required_specialization(request)

        ranked = rank_candidate_workers(
            self.workers.list(active_only=True),
            required,
            start,
            end,
            is_emergency=request.is_emergency,
            property_code=request.property_code,
            unit_number=request.unit_number,
            existing_assignments=self.workers.assignments_for_property(request.property_code, start),
            max_results=max_results or self.max_available_workers,
            max_lookahead_days=self.next_available_search_days,
            clock=self.clock,
        )
        logger.info(
            f"[AVAILABILITY] {len(ranked)} candidate(s) for request {request.id} "
            f"({required.value}, {start.isoformat()}..{end.isoformat()})"
        )
        return CandidateWorkers(
            request_id=request.id,
            required_specialization=required,
            is_emergency=request.is_emergency,
            start=start,
            end=end,
            workers=ranked,
        )

    def worker_availability(
        self,
        worker_email: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        is_emergency: bool = False,
    ) -> WorkerAvailabilitySummary:
        worker = self.workers.get_by_email(worker_email)
        if worker is None:
            raise NotFoundError("Worker", worker_email)
        start, end = self._window(start, end)
        return summarize_worker(
            worker, start, end, is_emergency, self.next_available_search_days, self.clock,
        )

    # ─────────────────────── Commands ───────────────────────

    def schedule_work(
        self,
        request_id: uuid.UUID,
        worker_email: str,
        scheduled_date: date,
        work_order_number: str,
        emergency_override: Optional[bool] = None,
    ) -> SchedulingOutcome:
        """
        `emergency_override` defaults to the request's own urgency
        (Critical/Emergency may take the third slot).
        """
        work_order_number = normalize_work_order_number(work_order_number)

        for attempt in range(1, MAX_SCHEDULING_ATTEMPTS + 1):
            try:
                return self._schedule_once(
                    request_id, worker_email, scheduled_date, work_order_number, emergency_override,
                )
            except (IntegrityError, StaleDataError) as exc:
                self.db.rollback()
                if attempt == MAX_SCHEDULING_ATTEMPTS:
                    logger.error(
                        f"[SCHEDULE] Conflict persisted for request {request_id} "
                        f"after {attempt} attempts: {exc}"
                    )
                    raise ConcurrencyConflictError() from exc
                logger.warning(
                    f"[SCHEDULE] Concurrent booking detected for request {request_id}; "
                    f"reloading and re-validating"
                )
            except Exception:
                self.db.rollback()
                raise

    def start_work(self, request_id: uuid.UUID) -> Assignment:
        request = self._get_request(request_id)
        if request.status is not TenantRequestStatus.SCHEDULED or not request.assigned_worker_email:
            raise InvalidAssignmentError(
                "request_id", request_id, f"Request {request_id} has no scheduled work to start"
            )
        worker = self.workers.get_by_email(request.assigned_worker_email)
        if worker is None:
            raise NotFoundError("Worker", request.assigned_worker_email)

        assignment = worker.start_work(request.id)
        try:
            self.workers.save(worker)
            self.db.commit()
        except Exception as e:
            logger.error(f"[SCHEDULE] Failed starting work on request {request_id}: {e}")
            self.db.rollback()
            raise
        logger.info(f"[SCHEDULE] {worker.email} started work on request {request.id}")
        return assignment

    # ─────────────────────── Helpers ───────────────────────

    def _schedule_once(
        self,
        request_id: uuid.UUID,
        worker_email: str,
        scheduled_date: date,
        work_order_number: str,
        emergency_override: Optional[bool],
    ) -> SchedulingOutcome:
        request = self._get_request(request_id)
        worker = self.workers.get_by_email(worker_email)
        if worker is None:
            raise NotFoundError("Worker", worker_email)

        scheduled_date = request.validate_schedule(
            worker.email, scheduled_date, work_order_number, self.clock
        )
        override = request.is_emergency if emergency_override is None else emergency_override
        required = self.required_specialization(request)

        snapshot = self.workers.assignments_for_property(request.property_code, scheduled_date)
        result = evaluate_assignment(
            worker,
            required,
            request.property_code,
            request.unit_number,
            scheduled_date,
            snapshot,
            emergency_override=override,
            request_id=request.id,
        )
        if not result.admitted:
            logger.warning(
                f"[SCHEDULE] Rejected {worker.email} for request {request.id} on "
                f"{scheduled_date.isoformat()}: {result.reason.value} - {result.detail}"
            )
            return SchedulingOutcome(result, request, required)

        request.schedule_work(
            worker.email, scheduled_date, work_order_number, worker.full_name or None, self.clock,
        )
        assignment = worker.assign_to_work(
            request.id,
            request.property_code,
            request.unit_number,
            scheduled_date,
            work_order_number,
            emergency_override=override,
            clock=self.clock,
        )

        # The slot comes from the validated snapshot; if another booking has
        # since taken it, the flush fails and the whole sequence is retried.
        slot = next_free_slot(snapshot, request.property_code, request.unit_number, scheduled_date)

        self.requests.save(request)
        self.workers.save(worker, slots={assignment.id: slot})
        self.db.commit()

        self.sink.publish(request.pull_events())
        self.sink.publish(worker.pull_events())
        logger.info(
            f"[SCHEDULE] {worker.email} booked for request {request.id} in "
            f"{request.property_code}/{request.unit_number} on {scheduled_date.isoformat()} "
            f"(work order {work_order_number})"
        )
        return SchedulingOutcome(result, request, required, assignment)

    def _get_request(self, request_id: uuid.UUID) -> TenantRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError("Tenant request", request_id)
        return request

    def _window(self, start: Optional[date], end: Optional[date]):
        today = self.clock.today()
        start = max(start or today, today)
        end = end or start + timedelta(days=self.booking_lookahead_days)
        if end < start:
            raise InvalidAssignmentError("end", end, "End date must not be before the start date")
        return start, end
