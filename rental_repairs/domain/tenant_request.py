"""
TenantRequest aggregate

Lifecycle:
    Draft -> Submitted -> {Scheduled, Declined}
    Scheduled -> {Done, Failed}
    Failed -> Scheduled            (reschedule)
    {Done, Declined} -> Closed     (terminal, retained)

State is only changed through the named operations below; each one checks the
current status, raises InvalidTransitionError on a bad move, and records
exactly one event in the outbox.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional
import uuid

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.core.exceptions import InvalidTransitionError, TenantRequestValidationError
from rental_repairs.domain.enums import (
    ALLOWED_TRANSITIONS,
    PENDING_STATUSES,
    TenantRequestStatus,
    TenantRequestUrgency,
)
from rental_repairs.domain.events import (
    DomainEvent,
    EventOutbox,
    ServiceWorkScheduleInfo,
    TenantRequestClosed,
    TenantRequestCompleted,
    TenantRequestCreated,
    TenantRequestDeclined,
    TenantRequestScheduled,
    TenantRequestSubmitted,
)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


@dataclass(eq=False)
class TenantRequest:
    tenant_id: uuid.UUID
    property_id: uuid.UUID
    property_code: str
    unit_number: str
    title: str
    description: str = ""
    urgency: TenantRequestUrgency = TenantRequestUrgency.NORMAL
    status: TenantRequestStatus = TenantRequestStatus.DRAFT
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    # Scheduling data
    assigned_worker_email: Optional[str] = None
    assigned_worker_name: Optional[str] = None
    scheduled_date: Optional[date] = None
    work_order_number: Optional[str] = None

    # Outcome data
    completion_notes: Optional[str] = None
    work_completed_successfully: Optional[bool] = None
    decline_reason: Optional[str] = None
    closure_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Owned by the persistence boundary
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _outbox: EventOutbox = field(default_factory=EventOutbox, repr=False)

    # ==================== Factory ====================

    @classmethod
    def create_new(
        cls,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        property_code: str,
        unit_number: str,
        title: str,
        description: str = "",
        urgency: TenantRequestUrgency = TenantRequestUrgency.NORMAL,
    ) -> "TenantRequest":
        request = cls(
            tenant_id=tenant_id,
            property_id=property_id,
            property_code=_required(property_code, "property_code"),
            unit_number=_required(unit_number, "unit_number"),
            title=_validate_title(title),
            description=_validate_description(description),
            urgency=TenantRequestUrgency(urgency),
        )
        request._outbox.record(TenantRequestCreated(request=request))
        return request

    # ==================== Queries ====================

    @property
    def is_emergency(self) -> bool:
        return self.urgency.is_emergency

    def can_transition_to(self, new_status: TenantRequestStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES

    def expected_resolution_hours(self) -> int:
        return self.urgency.expected_resolution_hours

    def is_overdue(self, now: datetime) -> bool:
        if self.status in (TenantRequestStatus.DONE, TenantRequestStatus.CLOSED,
                           TenantRequestStatus.DECLINED):
            return False
        started = self.submitted_at or self.created_at
        if started is None:
            return False
        return now - started > timedelta(hours=self.expected_resolution_hours())

    def requires_immediate_attention(self, now: datetime) -> bool:
        if self.is_emergency:
            return True
        started = self.submitted_at or self.created_at
        return (
            self.status is TenantRequestStatus.SUBMITTED
            and started is not None
            and started <= now - timedelta(days=2)
        )

    def validate_schedule(
        self,
        worker_email: str,
        scheduled_date: date,
        work_order_number: str,
        clock: Optional[Clock] = None,
    ) -> date:
        """Raise if schedule_work would be refused; returns the calendar date."""
        self._require_status(
            "schedule", TenantRequestStatus.SUBMITTED, TenantRequestStatus.FAILED
        )
        if isinstance(scheduled_date, datetime):
            scheduled_date = scheduled_date.date()

        # Calendar dates only: same-day scheduling is allowed.
        today = resolve_clock(clock).today()
        if scheduled_date is None or scheduled_date < today:
            raise TenantRequestValidationError(
                f"Scheduled date must be today ({today.isoformat()}) or later"
            )
        if not worker_email or not worker_email.strip():
            raise TenantRequestValidationError("Worker email is required for scheduling")
        if not work_order_number or not work_order_number.strip():
            raise TenantRequestValidationError("Work order number is required for scheduling")
        return scheduled_date

    # ==================== Lifecycle Operations ====================

    def submit_for_review(self, clock: Optional[Clock] = None) -> None:
        self._require_status("submit", TenantRequestStatus.DRAFT)
        if not self.title or not self.title.strip():
            raise TenantRequestValidationError("Request title is required for submission")

        self.status = TenantRequestStatus.SUBMITTED
        self.submitted_at = resolve_clock(clock).now()
        self._outbox.record(TenantRequestSubmitted(request=self))

    def schedule_work(
        self,
        worker_email: str,
        scheduled_date: date,
        work_order_number: str,
        worker_name: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        scheduled_date = self.validate_schedule(worker_email, scheduled_date, work_order_number, clock)
        is_reschedule = self.status is TenantRequestStatus.FAILED

        self.assigned_worker_email = worker_email.strip().lower()
        self.assigned_worker_name = worker_name
        self.scheduled_date = scheduled_date
        self.work_order_number = work_order_number.strip().upper()
        self.completion_notes = None
        self.work_completed_successfully = None
        self.completed_at = None
        self.status = TenantRequestStatus.SCHEDULED

        self._outbox.record(TenantRequestScheduled(
            request=self,
            schedule=ServiceWorkScheduleInfo(
                scheduled_date=scheduled_date,
                worker_email=self.assigned_worker_email,
                work_order_number=self.work_order_number,
                worker_name=worker_name,
                is_reschedule=is_reschedule,
            ),
        ))

    def report_work_completed(
        self,
        success: bool,
        notes: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._require_status("report completion for", TenantRequestStatus.SCHEDULED)

        self.status = TenantRequestStatus.DONE if success else TenantRequestStatus.FAILED
        self.work_completed_successfully = bool(success)
        self.completion_notes = notes if notes is not None else ""
        self.completed_at = resolve_clock(clock).now()
        self._outbox.record(TenantRequestCompleted(
            request=self,
            successful=bool(success),
            completion_notes=self.completion_notes,
        ))

    def decline_request(self, reason: str) -> None:
        self._require_status("decline", TenantRequestStatus.SUBMITTED)
        if not reason or not reason.strip():
            raise TenantRequestValidationError("A reason is required to decline a request")

        self.status = TenantRequestStatus.DECLINED
        self.decline_reason = reason.strip()
        self._outbox.record(TenantRequestDeclined(request=self, reason=self.decline_reason))

    def close_request(self, closure_notes: Optional[str] = None) -> None:
        self._require_status("close", TenantRequestStatus.DONE, TenantRequestStatus.DECLINED)

        self.status = TenantRequestStatus.CLOSED
        self.closure_notes = (closure_notes or "").strip()
        self._outbox.record(TenantRequestClosed(request=self, closure_notes=self.closure_notes))

    # ==================== Events ====================

    @property
    def pending_events(self) -> List[DomainEvent]:
        return self._outbox.pending()

    def pull_events(self) -> List[DomainEvent]:
        return self._outbox.drain()

    # ==================== Helpers ====================

    def _require_status(self, operation: str, *allowed: TenantRequestStatus) -> None:
        if self.status not in allowed:
            expected = " or ".join(s.value for s in allowed)
            raise InvalidTransitionError(
                self.status,
                operation,
                f"Cannot {operation} request {self.id}: it is {self.status.value}, "
                f"expected {expected}",
            )


def _required(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise TenantRequestValidationError(f"{field_name} cannot be empty")
    return str(value).strip()


def _validate_title(title: Optional[str]) -> str:
    title = _required(title, "title")
    if len(title) > MAX_TITLE_LENGTH:
        raise TenantRequestValidationError(
            f"Request title cannot exceed {MAX_TITLE_LENGTH} characters"
        )
    return title


def _validate_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise TenantRequestValidationError(
            f"Request description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )
    return description
