"""
Worker and WorkerAssignment Models

worker_assignments is the table the unit scheduling engine's snapshot is
projected from. Two guards give at-most-one-writer per unit-day:

- workers.version_id is bumped whenever a worker takes a new assignment, so
  two sessions booking the same worker race on one row (StaleDataError).
- active assignments hold a slot number unique per (unit_key, scheduled_date);
  two sessions booking the same unit-day from the same snapshot pick the same
  slot (IntegrityError). Terminal assignments release their slot (NULL).
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Enum as SQLEnum,
    Uuid,
)
from sqlalchemy.orm import relationship

from rental_repairs.db.base import Base, TimestampMixin
from rental_repairs.domain.enums import AssignmentStatus
from rental_repairs.domain.specialization import Specialization
from rental_repairs.models.tenant_request import enum_values


def unit_key(property_code: str, unit_number: str) -> str:
    """Case/whitespace-insensitive unit identity, matching the engine's comparison."""
    return f"{property_code.strip().lower()}|{unit_number.strip().lower()}"


class WorkerRecord(Base, TimestampMixin):
    __tablename__ = "workers"

    # Primary key
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Profile
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(200), nullable=False, default="")
    phone = Column(String(50), nullable=True)
    specialization = Column(
        SQLEnum(Specialization, name="worker_specialization", values_callable=enum_values),
        nullable=False,
        default=Specialization.GENERAL_MAINTENANCE,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    last_assigned_at = Column(DateTime(timezone=True), nullable=True)
    version_id = Column(Integer, nullable=False)

    assignments = relationship(
        "AssignmentRecord",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by="AssignmentRecord.scheduled_date",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<WorkerRecord id={self.id} email={self.email} active={self.is_active}>"


class AssignmentRecord(Base, TimestampMixin):
    __tablename__ = "worker_assignments"
    __table_args__ = (
        UniqueConstraint("unit_key", "scheduled_date", "slot", name="uq_worker_assignments_unit_day_slot"),
    )

    # Primary key
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Foreign keys
    worker_id = Column(Uuid, ForeignKey("workers.id"), nullable=False, index=True)
    request_id = Column(Uuid, nullable=False, index=True)

    # Where and when
    property_code = Column(String(50), nullable=False, index=True)
    unit_number = Column(String(20), nullable=False)
    unit_key = Column(String(80), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    slot = Column(Integer, nullable=True)

    # Booking details
    work_order_number = Column(String(20), nullable=False)
    status = Column(
        SQLEnum(AssignmentStatus, name="assignment_status", values_callable=enum_values),
        nullable=False,
        default=AssignmentStatus.SCHEDULED,
    )
    is_emergency = Column(Boolean, nullable=False, default=False)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completion_notes = Column(Text, nullable=True)

    worker = relationship("WorkerRecord", back_populates="assignments")

    def __repr__(self) -> str:
        return (
            f"<AssignmentRecord request={self.request_id} unit={self.unit_key} "
            f"date={self.scheduled_date} status={self.status}>"
        )
