"""
Tenant Request Schemas - Pydantic validation for the request lifecycle
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rental_repairs.domain.enums import TenantRequestStatus, TenantRequestUrgency
from rental_repairs.domain.specialization import Specialization
from rental_repairs.schemas.worker import WorkerAvailabilityResponse


# ============================================
# REQUEST SCHEMAS
# ============================================

class TenantRequestCreate(BaseModel):
    tenant_id: UUID
    property_id: UUID
    property_code: str = Field(..., min_length=1, max_length=50)
    unit_number: str = Field(..., min_length=1, max_length=20)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)
    urgency: TenantRequestUrgency = TenantRequestUrgency.NORMAL
    submit: bool = False  # submit for review straight away


class ScheduleWorkRequest(BaseModel):
    worker_email: str = Field(..., min_length=3, max_length=255)
    scheduled_date: date
    work_order_number: str = Field(..., min_length=1, max_length=20)
    emergency_override: Optional[bool] = None


class CompletionReport(BaseModel):
    success: bool
    notes: Optional[str] = None


class DeclineRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CloseRequest(BaseModel):
    closure_notes: Optional[str] = None


# ============================================
# RESPONSE SCHEMAS
# ============================================

class TenantRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    property_id: UUID
    property_code: str
    unit_number: str
    title: str
    description: str
    urgency: TenantRequestUrgency
    status: TenantRequestStatus
    is_emergency: bool
    assigned_worker_email: Optional[str] = None
    assigned_worker_name: Optional[str] = None
    scheduled_date: Optional[date] = None
    work_order_number: Optional[str] = None
    completion_notes: Optional[str] = None
    work_completed_successfully: Optional[bool] = None
    decline_reason: Optional[str] = None
    closure_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubmissionAllowanceResponse(BaseModel):
    tenant_id: UUID
    pending_requests: int
    max_pending_requests: int
    can_submit: bool
    next_allowed_submission_at: Optional[datetime] = None
    remaining_emergency_requests: Optional[int] = None  # None = unlimited


class CandidateWorkersResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: UUID
    required_specialization: Specialization
    is_emergency: bool
    start: date
    end: date
    workers: List[WorkerAvailabilityResponse] = []
