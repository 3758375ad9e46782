"""
Tenant Request Service

Responsibilities:
  • create_request     : rate-limit check, then a new Draft (optionally submitted)
  • submit             : Draft -> Submitted, re-checking the rate limit
  • decline / close    : superintendent decisions
  • report_completion  : Scheduled -> Done/Failed, and settles the worker's assignment
  • submission_allowance: what the tenant may still submit right now

Rate-limit rejections are returned in a SubmissionOutcome, never raised.
Events are published only after the commit succeeds.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.core.exceptions import NotFoundError
from rental_repairs.domain.enums import TenantRequestStatus, TenantRequestUrgency
from rental_repairs.domain.submission_policy import (
    ADMITTED,
    RateLimitConfiguration,
    SubmissionDecision,
    evaluate_submission,
    next_allowed_submission_time,
    remaining_emergency_requests,
)
from rental_repairs.domain.tenant_request import TenantRequest
from rental_repairs.domain.worker import Worker
from rental_repairs.repositories import TenantRequestRepository, WorkerRepository
from rental_repairs.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    decision: SubmissionDecision
    request: Optional[TenantRequest] = None

    @property
    def admitted(self) -> bool:
        return self.decision.admitted


class TenantRequestService:
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        sink: Optional[NotificationSink] = None,
        rate_limits: Optional[RateLimitConfiguration] = None,
    ):
        self.db = db
        self.clock = resolve_clock(clock)
        self.sink = sink or LoggingNotificationSink()
        self.rate_limits = rate_limits or RateLimitConfiguration()
        self.requests = TenantRequestRepository(db)
        self.workers = WorkerRepository(db)

    # ─────────────────────── Queries ───────────────────────

    def get(self, request_id: uuid.UUID) -> TenantRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError("Tenant request", request_id)
        return request

    def list_for_tenant(self, tenant_id: uuid.UUID) -> List[TenantRequest]:
        return self.requests.list_for_tenant(tenant_id)

    def submission_allowance(self, tenant_id: uuid.UUID) -> Dict[str, Any]:
        existing = self.requests.list_for_tenant(tenant_id)
        now = self.clock.now()
        pending = sum(1 for r in existing if r.is_pending())
        next_allowed: Optional[datetime] = next_allowed_submission_time(existing, self.rate_limits, now)
        return {
            "tenant_id": tenant_id,
            "pending_requests": pending,
            "max_pending_requests": self.rate_limits.max_pending_requests,
            "can_submit": pending < self.rate_limits.max_pending_requests and next_allowed is None,
            "next_allowed_submission_at": next_allowed,
            "remaining_emergency_requests": remaining_emergency_requests(existing, self.rate_limits, now),
        }

    # ─────────────────────── Lifecycle ───────────────────────

    def create_request(
        self,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        property_code: str,
        unit_number: str,
        title: str,
        description: str = "",
        urgency: TenantRequestUrgency = TenantRequestUrgency.NORMAL,
        submit: bool = False,
    ) -> SubmissionOutcome:
        decision = self._check_rate_limit(tenant_id, urgency)
        if not decision.admitted:
            return SubmissionOutcome(decision)

        request = TenantRequest.create_new(
            tenant_id=tenant_id,
            property_id=property_id,
            property_code=property_code,
            unit_number=unit_number,
            title=title,
            description=description,
            urgency=urgency,
        )
        if submit:
            request.submit_for_review(self.clock)

        self._persist(request)
        logger.info(
            f"[SUBMIT] Request {request.id} created for tenant {tenant_id} "
            f"({request.status.value}, {request.urgency.value})"
        )
        return SubmissionOutcome(decision, request)

    def submit(self, request_id: uuid.UUID) -> SubmissionOutcome:
        request = self.get(request_id)
        decision = ADMITTED
        # Only a Draft can be submitted; anything else fails the transition below.
        if request.status is TenantRequestStatus.DRAFT:
            decision = self._check_rate_limit(request.tenant_id, request.urgency, exclude=request.id)
            if not decision.admitted:
                return SubmissionOutcome(decision, request)

        request.submit_for_review(self.clock)
        self._persist(request)
        logger.info(f"[SUBMIT] Request {request.id} submitted for review")
        return SubmissionOutcome(decision, request)

    def decline(self, request_id: uuid.UUID, reason: str) -> TenantRequest:
        request = self.get(request_id)
        request.decline_request(reason)
        self._persist(request)
        logger.info(f"[DECLINE] Request {request.id} declined: {request.decline_reason}")
        return request

    def report_completion(
        self,
        request_id: uuid.UUID,
        success: bool,
        notes: Optional[str] = None,
    ) -> TenantRequest:
        request = self.get(request_id)
        request.report_work_completed(success, notes, self.clock)

        worker = None
        if request.assigned_worker_email:
            worker = self.workers.get_by_email(request.assigned_worker_email)
        if worker is not None and worker.active_assignment_for(request.id) is not None:
            worker.complete_work(request.id, success, notes, self.clock)
        elif worker is None:
            logger.warning(
                f"[COMPLETE] Assigned worker {request.assigned_worker_email} "
                f"for request {request.id} not found"
            )

        self._persist(request, worker)
        logger.info(
            f"[COMPLETE] Request {request.id} reported "
            f"{'done' if success else 'failed'} by {request.assigned_worker_email}"
        )
        return request

    def close(self, request_id: uuid.UUID, closure_notes: Optional[str] = None) -> TenantRequest:
        request = self.get(request_id)
        request.close_request(closure_notes)
        self._persist(request)
        logger.info(f"[CLOSE] Request {request.id} closed")
        return request

    # ─────────────────────── Helpers ───────────────────────

    def _check_rate_limit(
        self,
        tenant_id: uuid.UUID,
        urgency: TenantRequestUrgency,
        exclude: Optional[uuid.UUID] = None,
    ) -> SubmissionDecision:
        existing = [r for r in self.requests.list_for_tenant(tenant_id) if r.id != exclude]
        decision = evaluate_submission(existing, urgency, self.rate_limits, self.clock.now())
        if not decision.admitted:
            logger.warning(
                f"[SUBMIT] Tenant {tenant_id} rejected: {decision.reason.value} - {decision.detail}"
            )
        return decision

    def _persist(self, request: TenantRequest, worker: Optional[Worker] = None) -> None:
        try:
            self.requests.save(request)
            if worker is not None:
                self.workers.save(worker)
            self.db.commit()
        except Exception as e:
            logger.error(f"[DB] Failed saving request {request.id}: {e}")
            self.db.rollback()
            raise

        self.sink.publish(request.pull_events())
        if worker is not None:
            self.sink.publish(worker.pull_events())
