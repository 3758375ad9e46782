"""
Worker Routes - directory and availability calendar
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from rental_repairs.dependencies import get_scheduling_service, get_worker_service
from rental_repairs.domain.specialization import all_specializations
from rental_repairs.schemas.worker import (
    DeactivateWorkerRequest,
    SpecializationUpdate,
    WorkerAvailabilityResponse,
    WorkerCreate,
    WorkerDetailResponse,
    WorkerResponse,
)
from rental_repairs.services.scheduling_service import SchedulingService
from rental_repairs.services.worker_service import WorkerService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["workers"])


@router.post("/", response_model=WorkerResponse, status_code=status.HTTP_201_CREATED)
def register_worker(
    payload: WorkerCreate,
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.register(payload.email, payload.full_name, payload.specialization, payload.phone)
    return WorkerResponse.model_validate(worker)


@router.get("/", response_model=List[WorkerResponse])
def list_workers(
    active_only: bool = False,
    specialization: Optional[str] = None,
    service: WorkerService = Depends(get_worker_service),
):
    workers = service.list(active_only=active_only, specialization=specialization)
    return [WorkerResponse.model_validate(w) for w in workers]


@router.get("/specializations")
def list_specializations():
    """Specializations a worker can be registered with."""
    return {"success": True, "specializations": all_specializations()}


@router.get("/{worker_id}", response_model=WorkerDetailResponse)
def get_worker(
    worker_id: UUID,
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerDetailResponse.model_validate(service.get(worker_id))


@router.put("/{worker_id}/specialization", response_model=WorkerResponse)
def change_worker_specialization(
    worker_id: UUID,
    payload: SpecializationUpdate,
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerResponse.model_validate(service.change_specialization(worker_id, payload.specialization))


@router.post("/{worker_id}/deactivate", response_model=WorkerResponse)
def deactivate_worker(
    worker_id: UUID,
    payload: DeactivateWorkerRequest,
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerResponse.model_validate(service.deactivate(worker_id, payload.reason))


@router.post("/{worker_id}/activate", response_model=WorkerResponse)
def activate_worker(
    worker_id: UUID,
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerResponse.model_validate(service.activate(worker_id))


@router.get("/{worker_id}/availability", response_model=WorkerAvailabilityResponse)
def get_worker_availability(
    worker_id: UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
    emergency: bool = False,
    workers: WorkerService = Depends(get_worker_service),
    scheduling: SchedulingService = Depends(get_scheduling_service),
):
    """Booked / partially booked calendar plus ranking data for one worker."""
    worker = workers.get(worker_id)
    summary = scheduling.worker_availability(worker.email, start, end, emergency)
    return WorkerAvailabilityResponse.model_validate(summary)
