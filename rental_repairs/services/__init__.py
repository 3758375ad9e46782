from rental_repairs.services.notification_service import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
)
from rental_repairs.services.scheduling_service import SchedulingOutcome, SchedulingService
from rental_repairs.services.tenant_request_service import SubmissionOutcome, TenantRequestService
from rental_repairs.services.worker_service import WorkerService

__all__ = [
    "NotificationSink",
    "LoggingNotificationSink",
    "InMemoryNotificationSink",
    "WebhookNotificationSink",
    "SchedulingOutcome",
    "SchedulingService",
    "SubmissionOutcome",
    "TenantRequestService",
    "WorkerService",
]
