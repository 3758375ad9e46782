"""
Worker Schemas
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rental_repairs.domain.enums import AssignmentStatus
from rental_repairs.domain.specialization import Specialization
from rental_repairs.domain.unit_scheduling import SchedulingConflict


# ============================================
# REQUEST SCHEMAS
# ============================================

class WorkerCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=200)
    specialization: str = Specialization.GENERAL_MAINTENANCE.value  # free text, normalized
    phone: Optional[str] = Field(None, max_length=50)


class SpecializationUpdate(BaseModel):
    specialization: str = Field(..., min_length=1)


class DeactivateWorkerRequest(BaseModel):
    reason: str = ""


# ============================================
# RESPONSE SCHEMAS
# ============================================

class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: UUID
    property_code: str
    unit_number: str
    scheduled_date: date
    work_order_number: str
    status: AssignmentStatus
    is_emergency: bool
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None


class WorkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    specialization: Specialization
    is_active: bool
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkerDetailResponse(WorkerResponse):
    assignments: List[AssignmentResponse] = []


class AdmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    admitted: bool
    reason: SchedulingConflict
    detail: str = ""


class WorkerAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: str
    worker_email: str
    worker_name: str
    specialization: Specialization
    booked_dates: List[date]
    partially_booked_dates: List[date]
    next_available_date: Optional[date] = None
    ranking_score: int
    current_workload: int
    availability_score: int
    is_available: bool
    admission: Optional[AdmissionResponse] = None
