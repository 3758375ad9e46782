"""
Worker repository: loads Worker aggregates with their assignments, writes them
back, and projects the assignment snapshot the scheduling engine reads.
"""
import logging
import uuid
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rental_repairs.db.base import as_utc, utcnow
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.unit_scheduling import ExistingAssignment
from rental_repairs.domain.worker import Assignment, Worker
from rental_repairs.models.worker import AssignmentRecord, WorkerRecord, unit_key

logger = logging.getLogger(__name__)


def _assignment_to_domain(row: AssignmentRecord) -> Assignment:
    return Assignment(
        id=row.id,
        request_id=row.request_id,
        property_code=row.property_code,
        unit_number=row.unit_number,
        scheduled_date=row.scheduled_date,
        work_order_number=row.work_order_number,
        status=row.status,
        is_emergency=row.is_emergency,
        assigned_at=as_utc(row.assigned_at),
        completed_at=as_utc(row.completed_at),
        completion_notes=row.completion_notes,
    )


def to_domain(record: WorkerRecord) -> Worker:
    return Worker(
        id=record.id,
        email=record.email,
        full_name=record.full_name or "",
        specialization=record.specialization,
        is_active=record.is_active,
        phone=record.phone,
        notes=record.notes,
        assignments=[_assignment_to_domain(a) for a in record.assignments],
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


class WorkerRepository:
    def __init__(self, db: Session):
        self.db = db

    # ==================== Reads ====================

    def get(self, worker_id: uuid.UUID) -> Optional[Worker]:
        record = self.db.get(WorkerRecord, worker_id)
        return to_domain(record) if record else None

    def get_by_email(self, email: str) -> Optional[Worker]:
        stmt = select(WorkerRecord).where(WorkerRecord.email == email.strip().lower())
        record = self.db.scalars(stmt).first()
        return to_domain(record) if record else None

    def email_exists(self, email: str) -> bool:
        stmt = select(func.count()).select_from(WorkerRecord).where(
            WorkerRecord.email == email.strip().lower()
        )
        return self.db.scalar(stmt) > 0

    def list(
        self,
        active_only: bool = False,
        specialization: Optional[Specialization] = None,
    ) -> List[Worker]:
        stmt = select(WorkerRecord)
        if active_only:
            stmt = stmt.where(WorkerRecord.is_active.is_(True))
        if specialization is not None:
            stmt = stmt.where(WorkerRecord.specialization == specialization)
        stmt = stmt.order_by(WorkerRecord.email)
        return [to_domain(r) for r in self.db.scalars(stmt)]

    def assignments_for_property(
        self, property_code: str, on_date: Optional[date] = None
    ) -> List[ExistingAssignment]:
        """Snapshot of every assignment in a property, optionally for one day."""
        stmt = (
            select(AssignmentRecord, WorkerRecord.email)
            .join(WorkerRecord, AssignmentRecord.worker_id == WorkerRecord.id)
            .where(func.lower(AssignmentRecord.property_code) == property_code.strip().lower())
        )
        if on_date is not None:
            stmt = stmt.where(AssignmentRecord.scheduled_date == on_date)

        return [
            ExistingAssignment(
                request_id=row.request_id,
                worker_email=email,
                property_code=row.property_code,
                unit_number=row.unit_number,
                scheduled_date=row.scheduled_date,
                status=row.status,
                work_order_number=row.work_order_number,
                is_emergency=row.is_emergency,
                slot=row.slot,
            )
            for row, email in self.db.execute(stmt)
        ]

    # ==================== Writes ====================

    def save(self, worker: Worker, slots: Optional[Dict[uuid.UUID, int]] = None) -> Worker:
        """
        Write the worker and its assignments. `slots` maps a new assignment id
        to the unit-day slot chosen from the snapshot it was validated against.
        """
        slots = slots or {}
        record = self.db.get(WorkerRecord, worker.id)
        if record is None:
            record = WorkerRecord(id=worker.id)
            self.db.add(record)
            logger.debug(f"[REPO] New worker row {worker.email}")

        record.email = worker.email
        record.full_name = worker.full_name
        record.phone = worker.phone
        record.specialization = worker.specialization
        record.is_active = worker.is_active
        record.notes = worker.notes

        rows = {row.id: row for row in record.assignments}
        for assignment in worker.assignments:
            row = rows.get(assignment.id)
            if row is None:
                key = unit_key(assignment.property_code, assignment.unit_number)
                row = AssignmentRecord(
                    id=assignment.id,
                    request_id=assignment.request_id,
                    property_code=assignment.property_code.strip(),
                    unit_number=assignment.unit_number.strip(),
                    unit_key=key,
                    scheduled_date=assignment.scheduled_date,
                    work_order_number=assignment.work_order_number,
                    is_emergency=assignment.is_emergency,
                    assigned_at=assignment.assigned_at,
                )
                if assignment.is_active:
                    if assignment.id not in slots:
                        raise ValueError(f"No unit-day slot chosen for assignment {assignment.id}")
                    row.slot = slots[assignment.id]
                record.assignments.append(row)
                # Touching the worker row bumps version_id.
                record.last_assigned_at = assignment.assigned_at or utcnow()

            row.status = assignment.status
            row.completed_at = assignment.completed_at
            row.completion_notes = assignment.completion_notes
            if not assignment.is_active:
                row.slot = None

        self.db.flush()
        worker.created_at = as_utc(record.created_at)
        worker.updated_at = as_utc(record.updated_at)
        return worker
