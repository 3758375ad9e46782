"""
TenantRequest repository: maps tenant_requests rows to TenantRequest
aggregates and back. Nothing here commits; the calling service owns the
transaction.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_repairs.db.base import as_utc
from rental_repairs.domain.tenant_request import TenantRequest
from rental_repairs.models.tenant_request import TenantRequestRecord

logger = logging.getLogger(__name__)

_COPIED_FIELDS = (
    "tenant_id",
    "property_id",
    "property_code",
    "unit_number",
    "title",
    "description",
    "urgency",
    "status",
    "assigned_worker_email",
    "assigned_worker_name",
    "scheduled_date",
    "work_order_number",
    "completion_notes",
    "work_completed_successfully",
    "decline_reason",
    "closure_notes",
    "submitted_at",
    "completed_at",
)


def to_domain(record: TenantRequestRecord) -> TenantRequest:
    return TenantRequest(
        id=record.id,
        tenant_id=record.tenant_id,
        property_id=record.property_id,
        property_code=record.property_code,
        unit_number=record.unit_number,
        title=record.title,
        description=record.description or "",
        urgency=record.urgency,
        status=record.status,
        assigned_worker_email=record.assigned_worker_email,
        assigned_worker_name=record.assigned_worker_name,
        scheduled_date=record.scheduled_date,
        work_order_number=record.work_order_number,
        completion_notes=record.completion_notes,
        work_completed_successfully=record.work_completed_successfully,
        decline_reason=record.decline_reason,
        closure_notes=record.closure_notes,
        submitted_at=as_utc(record.submitted_at),
        completed_at=as_utc(record.completed_at),
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


class TenantRequestRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, request_id: uuid.UUID) -> Optional[TenantRequest]:
        record = self.db.get(TenantRequestRecord, request_id)
        return to_domain(record) if record else None

    def list_for_tenant(self, tenant_id: uuid.UUID) -> List[TenantRequest]:
        stmt = (
            select(TenantRequestRecord)
            .where(TenantRequestRecord.tenant_id == tenant_id)
            .order_by(TenantRequestRecord.created_at)
        )
        return [to_domain(r) for r in self.db.scalars(stmt)]

    def save(self, request: TenantRequest) -> TenantRequest:
        record = self.db.get(TenantRequestRecord, request.id)
        if record is None:
            record = TenantRequestRecord(id=request.id)
            self.db.add(record)
            logger.debug(f"[REPO] New tenant request row {request.id}")

        for name in _COPIED_FIELDS:
            setattr(record, name, getattr(request, name))

        self.db.flush()
        request.created_at = as_utc(record.created_at)
        request.updated_at = as_utc(record.updated_at)
        return request
