"""
Tenant request submission policy.

Evaluated against a tenant's existing requests before a new request is
created. Checks run in order and the first violation is returned:

  1. pending requests (Submitted / Scheduled / Failed) >= MaxPendingRequests
  2. last submission newer than MinimumHoursBetweenSubmissions (0 disables)
  3. Emergency urgency and Emergency submissions within the lookback window
     already at MaxEmergencyRequestsPerMonth (0 disables)

Nothing is mutated; the caller creates the request only after admission.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from rental_repairs.domain.enums import (
    PENDING_STATUSES,
    TenantRequestStatus,
    TenantRequestUrgency,
)
from rental_repairs.domain.tenant_request import TenantRequest


@dataclass(frozen=True)
class RateLimitConfiguration:
    max_pending_requests: int = 5
    minimum_hours_between_submissions: int = 1
    max_emergency_requests_per_month: int = 3
    emergency_request_lookback_days: int = 30

    def __post_init__(self):
        if self.max_pending_requests < 1:
            raise ValueError("max_pending_requests must be at least 1")
        if self.minimum_hours_between_submissions < 0:
            raise ValueError("minimum_hours_between_submissions cannot be negative")
        if self.max_emergency_requests_per_month < 0:
            raise ValueError("max_emergency_requests_per_month cannot be negative")
        if self.emergency_request_lookback_days < 1:
            raise ValueError("emergency_request_lookback_days must be at least 1")

    @property
    def is_rate_limiting_enabled(self) -> bool:
        return self.minimum_hours_between_submissions > 0

    @property
    def is_emergency_limiting_enabled(self) -> bool:
        return self.max_emergency_requests_per_month > 0

    @property
    def rate_limit_window(self) -> timedelta:
        return timedelta(hours=self.minimum_hours_between_submissions)

    @property
    def emergency_lookback_window(self) -> timedelta:
        return timedelta(days=self.emergency_request_lookback_days)


class SubmissionRejection(str, Enum):
    NONE = "None"
    MAX_PENDING_REQUESTS_EXCEEDED = "MaxPendingRequestsExceeded"
    SUBMISSION_RATE_LIMIT_EXCEEDED = "SubmissionRateLimitExceeded"
    EMERGENCY_REQUEST_LIMIT_EXCEEDED = "EmergencyRequestLimitExceeded"


@dataclass(frozen=True)
class SubmissionDecision:
    admitted: bool
    reason: SubmissionRejection = SubmissionRejection.NONE
    detail: str = ""
    retry_after: Optional[timedelta] = None
    limit: Optional[int] = None
    current_count: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "admitted": self.admitted,
            "reason": self.reason.value,
            "detail": self.detail,
            "retry_after_seconds": (
                int(self.retry_after.total_seconds()) if self.retry_after is not None else None
            ),
            "limit": self.limit,
            "current_count": self.current_count,
        }


ADMITTED = SubmissionDecision(admitted=True)


def _submission_time(request: TenantRequest) -> Optional[datetime]:
    return request.submitted_at or request.created_at


def _submitted(requests: Iterable[TenantRequest]) -> List[TenantRequest]:
    return [
        r for r in requests
        if r.status is not TenantRequestStatus.DRAFT and _submission_time(r) is not None
    ]


def last_submission_time(requests: Iterable[TenantRequest]) -> Optional[datetime]:
    times = [_submission_time(r) for r in _submitted(requests)]
    return max(times) if times else None


def emergency_submissions_in_window(
    requests: Iterable[TenantRequest], config: RateLimitConfiguration, now: datetime
) -> int:
    cutoff = now - config.emergency_lookback_window
    return sum(
        1 for r in _submitted(requests)
        if r.urgency is TenantRequestUrgency.EMERGENCY and _submission_time(r) > cutoff
    )


def evaluate_submission(
    existing_requests: Sequence[TenantRequest],
    urgency: TenantRequestUrgency,
    config: RateLimitConfiguration,
    now: datetime,
) -> SubmissionDecision:
    urgency = TenantRequestUrgency(urgency)

    pending = sum(1 for r in existing_requests if r.status in PENDING_STATUSES)
    if pending >= config.max_pending_requests:
        return SubmissionDecision(
            admitted=False,
            reason=SubmissionRejection.MAX_PENDING_REQUESTS_EXCEEDED,
            detail=(
                f"Maximum pending requests exceeded. Allowed: {config.max_pending_requests}, "
                f"Current: {pending}"
            ),
            limit=config.max_pending_requests,
            current_count=pending,
        )

    if config.is_rate_limiting_enabled:
        last = last_submission_time(existing_requests)
        if last is not None:
            elapsed = now - last
            if elapsed < config.rate_limit_window:
                wait = config.rate_limit_window - elapsed
                return SubmissionDecision(
                    admitted=False,
                    reason=SubmissionRejection.SUBMISSION_RATE_LIMIT_EXCEEDED,
                    detail=(
                        f"Submission rate limit exceeded. Please wait "
                        f"{int(wait.total_seconds() // 60)} minutes before submitting another request."
                    ),
                    retry_after=wait,
                )

    if config.is_emergency_limiting_enabled and urgency is TenantRequestUrgency.EMERGENCY:
        used = emergency_submissions_in_window(existing_requests, config, now)
        if used >= config.max_emergency_requests_per_month:
            return SubmissionDecision(
                admitted=False,
                reason=SubmissionRejection.EMERGENCY_REQUEST_LIMIT_EXCEEDED,
                detail=(
                    f"Emergency request limit exceeded. Allowed per "
                    f"{config.emergency_request_lookback_days} days: "
                    f"{config.max_emergency_requests_per_month}, Current: {used}"
                ),
                limit=config.max_emergency_requests_per_month,
                current_count=used,
            )

    return ADMITTED


def next_allowed_submission_time(
    existing_requests: Sequence[TenantRequest],
    config: RateLimitConfiguration,
    now: datetime,
) -> Optional[datetime]:
    """None when the tenant may submit right away."""
    if not config.is_rate_limiting_enabled:
        return None
    last = last_submission_time(existing_requests)
    if last is None:
        return None
    allowed_at = last + config.rate_limit_window
    return allowed_at if allowed_at > now else None


def remaining_emergency_requests(
    existing_requests: Sequence[TenantRequest],
    config: RateLimitConfiguration,
    now: datetime,
) -> Optional[int]:
    """None means unlimited (emergency limiting disabled)."""
    if not config.is_emergency_limiting_enabled:
        return None
    used = emergency_submissions_in_window(existing_requests, config, now)
    return max(0, config.max_emergency_requests_per_month - used)
