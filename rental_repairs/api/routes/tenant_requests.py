"""
Tenant Request Routes - maintenance request lifecycle and scheduling
Rate-limit rejections return 429, scheduling rejections 409; both carry the
structured reason code.
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rental_repairs.dependencies import get_scheduling_service, get_tenant_request_service
from rental_repairs.schemas.tenant_request import (
    CandidateWorkersResponse,
    CloseRequest,
    CompletionReport,
    DeclineRequest,
    ScheduleWorkRequest,
    SubmissionAllowanceResponse,
    TenantRequestCreate,
    TenantRequestResponse,
)
from rental_repairs.schemas.worker import AssignmentResponse
from rental_repairs.services.scheduling_service import SchedulingService
from rental_repairs.services.tenant_request_service import SubmissionOutcome, TenantRequestService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["tenant-requests"])


def _raise_rate_limited(outcome: SubmissionOutcome):
    decision = outcome.decision
    headers = None
    if decision.retry_after is not None:
        headers = {"Retry-After": str(max(1, int(decision.retry_after.total_seconds())))}
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={"success": False, **decision.to_dict()},
        headers=headers,
    )


# === 1. POST /tenant-requests/ - Create request ===

@router.post("/", response_model=TenantRequestResponse, status_code=status.HTTP_201_CREATED)
def create_tenant_request(
    payload: TenantRequestCreate,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    """Create a Draft request (or submit it straight away) after the rate-limit check."""
    outcome = service.create_request(
        tenant_id=payload.tenant_id,
        property_id=payload.property_id,
        property_code=payload.property_code,
        unit_number=payload.unit_number,
        title=payload.title,
        description=payload.description,
        urgency=payload.urgency,
        submit=payload.submit,
    )
    if not outcome.admitted:
        _raise_rate_limited(outcome)
    return TenantRequestResponse.model_validate(outcome.request)


# === 2. GET /tenant-requests/ - List a tenant's requests ===

@router.get("/", response_model=List[TenantRequestResponse])
def list_tenant_requests(
    tenant_id: UUID = Query(...),
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    return [TenantRequestResponse.model_validate(r) for r in service.list_for_tenant(tenant_id)]


# === 3. GET /tenant-requests/allowance/{tenant_id} ===

@router.get("/allowance/{tenant_id}", response_model=SubmissionAllowanceResponse)
def get_submission_allowance(
    tenant_id: UUID,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    """How many requests the tenant may still submit, and when."""
    return service.submission_allowance(tenant_id)


# === 4. GET /tenant-requests/{id} ===

@router.get("/{request_id}", response_model=TenantRequestResponse)
def get_tenant_request(
    request_id: UUID,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    return TenantRequestResponse.model_validate(service.get(request_id))


# === 5. POST /tenant-requests/{id}/submit ===

@router.post("/{request_id}/submit", response_model=TenantRequestResponse)
def submit_tenant_request(
    request_id: UUID,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    outcome = service.submit(request_id)
    if not outcome.admitted:
        _raise_rate_limited(outcome)
    return TenantRequestResponse.model_validate(outcome.request)


# === 6. GET /tenant-requests/{id}/candidate-workers ===

@router.get("/{request_id}/candidate-workers", response_model=CandidateWorkersResponse)
def get_candidate_workers(
    request_id: UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
    max_results: Optional[int] = Query(None, ge=1, le=100),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Active workers able to do the job, soonest available first."""
    candidates = service.find_candidate_workers(request_id, start, end, max_results)
    return CandidateWorkersResponse.model_validate(candidates)


# === 7. POST /tenant-requests/{id}/schedule ===

@router.post("/{request_id}/schedule", response_model=TenantRequestResponse)
def schedule_tenant_request(
    request_id: UUID,
    payload: ScheduleWorkRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    outcome = service.schedule_work(
        request_id,
        payload.worker_email,
        payload.scheduled_date,
        payload.work_order_number,
        payload.emergency_override,
    )
    if not outcome.admitted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "success": False,
                **outcome.result.to_dict(),
                "required_specialization": outcome.required_specialization.value,
            },
        )
    return TenantRequestResponse.model_validate(outcome.request)


# === 8. POST /tenant-requests/{id}/start ===

@router.post("/{request_id}/start", response_model=AssignmentResponse)
def start_tenant_request_work(
    request_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Worker arrived on site: assignment moves to InProgress."""
    return AssignmentResponse.model_validate(service.start_work(request_id))


# === 9. POST /tenant-requests/{id}/complete ===

@router.post("/{request_id}/complete", response_model=TenantRequestResponse)
def complete_tenant_request(
    request_id: UUID,
    payload: CompletionReport,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    request = service.report_completion(request_id, payload.success, payload.notes)
    return TenantRequestResponse.model_validate(request)


# === 10. POST /tenant-requests/{id}/decline ===

@router.post("/{request_id}/decline", response_model=TenantRequestResponse)
def decline_tenant_request(
    request_id: UUID,
    payload: DeclineRequest,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    return TenantRequestResponse.model_validate(service.decline(request_id, payload.reason))


# === 11. POST /tenant-requests/{id}/close ===

@router.post("/{request_id}/close", response_model=TenantRequestResponse)
def close_tenant_request(
    request_id: UUID,
    payload: CloseRequest,
    service: TenantRequestService = Depends(get_tenant_request_service),
):
    return TenantRequestResponse.model_validate(service.close(request_id, payload.closure_notes))
