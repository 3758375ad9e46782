"""
Domain events.

Events are side-channel notifications appended to an aggregate's outbox on
every state change. They are drained by the caller after a successful commit
and handed to a notification sink; state is never rebuilt from them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import uuid

if TYPE_CHECKING:
    from rental_repairs.domain.tenant_request import TenantRequest
    from rental_repairs.domain.worker import Assignment, Worker


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4, init=False)
    occurred_at: datetime = field(default_factory=_utcnow, init=False)

    @property
    def name(self) -> str:
        return type(self).__name__

    def payload(self) -> Dict[str, Any]:
        return {}


class EventOutbox:
    """Per-aggregate list of pending events."""

    def __init__(self) -> None:
        self._events: List[DomainEvent] = []

    def record(self, event: DomainEvent) -> None:
        self._events.append(event)

    def pending(self) -> List[DomainEvent]:
        return list(self._events)

    def drain(self) -> List[DomainEvent]:
        events, self._events = self._events, []
        return events


# ─────────────────────── Tenant request events ───────────────────────

@dataclass(frozen=True)
class TenantRequestEvent(DomainEvent):
    request: "TenantRequest" = None  # type: ignore[assignment]

    def payload(self) -> Dict[str, Any]:
        return {
            "request_id": str(self.request.id),
            "tenant_id": str(self.request.tenant_id),
            "property_code": self.request.property_code,
            "unit_number": self.request.unit_number,
            "status": self.request.status.value,
        }


@dataclass(frozen=True)
class TenantRequestCreated(TenantRequestEvent):
    pass


@dataclass(frozen=True)
class TenantRequestSubmitted(TenantRequestEvent):
    pass


@dataclass(frozen=True)
class ServiceWorkScheduleInfo:
    scheduled_date: date
    worker_email: str
    work_order_number: str
    worker_name: Optional[str] = None
    is_reschedule: bool = False


@dataclass(frozen=True)
class TenantRequestScheduled(TenantRequestEvent):
    schedule: ServiceWorkScheduleInfo = None  # type: ignore[assignment]

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(
            scheduled_date=self.schedule.scheduled_date.isoformat(),
            worker_email=self.schedule.worker_email,
            work_order_number=self.schedule.work_order_number,
            is_reschedule=self.schedule.is_reschedule,
        )
        return data


@dataclass(frozen=True)
class TenantRequestCompleted(TenantRequestEvent):
    successful: bool = True
    completion_notes: str = ""

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(successful=self.successful, completion_notes=self.completion_notes)
        return data


@dataclass(frozen=True)
class TenantRequestDeclined(TenantRequestEvent):
    reason: str = ""

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class TenantRequestClosed(TenantRequestEvent):
    closure_notes: str = ""

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data["closure_notes"] = self.closure_notes
        return data


# ─────────────────────── Worker events ───────────────────────

@dataclass(frozen=True)
class WorkerEvent(DomainEvent):
    worker: "Worker" = None  # type: ignore[assignment]

    def payload(self) -> Dict[str, Any]:
        return {"worker_id": str(self.worker.id), "worker_email": self.worker.email}


@dataclass(frozen=True)
class WorkerRegistered(WorkerEvent):
    pass


@dataclass(frozen=True)
class WorkerAssigned(WorkerEvent):
    assignment: "Assignment" = None  # type: ignore[assignment]

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(
            request_id=str(self.assignment.request_id),
            property_code=self.assignment.property_code,
            unit_number=self.assignment.unit_number,
            scheduled_date=self.assignment.scheduled_date.isoformat(),
            work_order_number=self.assignment.work_order_number,
        )
        return data


@dataclass(frozen=True)
class WorkCompleted(WorkerEvent):
    assignment: "Assignment" = None  # type: ignore[assignment]
    successful: bool = True
    completion_notes: str = ""

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(
            request_id=str(self.assignment.request_id),
            successful=self.successful,
            completion_notes=self.completion_notes,
        )
        return data


@dataclass(frozen=True)
class AssignmentCancelled(WorkerEvent):
    assignment: "Assignment" = None  # type: ignore[assignment]
    reason: str = ""


@dataclass(frozen=True)
class WorkerSpecializationChanged(WorkerEvent):
    old_specialization: str = ""
    new_specialization: str = ""

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(old=self.old_specialization, new=self.new_specialization)
        return data


@dataclass(frozen=True)
class WorkerDeactivated(WorkerEvent):
    reason: str = ""


@dataclass(frozen=True)
class WorkerActivated(WorkerEvent):
    pass
