"""
TenantRequest Model

One row per maintenance request. Status and the scheduling columns
(assigned worker, scheduled date, work order number) are written together by
the repository from the TenantRequest aggregate, never patched individually.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    Enum as SQLEnum,
    Uuid,
)

from rental_repairs.db.base import Base, TimestampMixin
from rental_repairs.domain.enums import TenantRequestStatus, TenantRequestUrgency


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class TenantRequestRecord(Base, TimestampMixin):
    __tablename__ = "tenant_requests"

    # Primary key
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Ownership
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, nullable=False, index=True)
    property_code = Column(String(50), nullable=False)
    unit_number = Column(String(20), nullable=False)

    # Request details
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    urgency = Column(
        SQLEnum(TenantRequestUrgency, name="tenant_request_urgency", values_callable=enum_values),
        nullable=False,
        default=TenantRequestUrgency.NORMAL,
    )
    status = Column(
        SQLEnum(TenantRequestStatus, name="tenant_request_status", values_callable=enum_values),
        nullable=False,
        default=TenantRequestStatus.DRAFT,
        index=True,
    )

    # Scheduling
    assigned_worker_email = Column(String(255), nullable=True)
    assigned_worker_name = Column(String(200), nullable=True)
    scheduled_date = Column(Date, nullable=True)
    work_order_number = Column(String(20), nullable=True)

    # Outcome
    completion_notes = Column(Text, nullable=True)
    work_completed_successfully = Column(Boolean, nullable=True)
    decline_reason = Column(Text, nullable=True)
    closure_notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency token: two writers scheduling the same request
    # cannot both commit.
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<TenantRequestRecord id={self.id} status={self.status} "
            f"unit={self.property_code}/{self.unit_number}>"
        )
