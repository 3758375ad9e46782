"""
FastAPI dependency providers.

Tests override get_db, get_clock and get_notification_sink on the app.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from rental_repairs.core.clock import Clock, system_clock
from rental_repairs.core.config import Settings, get_settings
from rental_repairs.database import get_db
from rental_repairs.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
)
from rental_repairs.services.scheduling_service import SchedulingService
from rental_repairs.services.tenant_request_service import TenantRequestService
from rental_repairs.services.worker_service import WorkerService


def get_clock() -> Clock:
    return system_clock


@lru_cache()
def get_notification_sink() -> NotificationSink:
    settings = get_settings()
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotificationSink(
            settings.NOTIFICATION_WEBHOOK_URL,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    return LoggingNotificationSink()


def get_tenant_request_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    sink: NotificationSink = Depends(get_notification_sink),
    settings: Settings = Depends(get_settings),
) -> TenantRequestService:
    return TenantRequestService(db, clock, sink, settings.rate_limit_configuration)


def get_scheduling_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    sink: NotificationSink = Depends(get_notification_sink),
    settings: Settings = Depends(get_settings),
) -> SchedulingService:
    return SchedulingService(
        db,
        clock,
        sink,
        keyword_map=settings.specialization_keyword_map,
        max_available_workers=settings.MAX_AVAILABLE_WORKERS,
        booking_lookahead_days=settings.BOOKING_LOOKAHEAD_DAYS,
        next_available_search_days=settings.NEXT_AVAILABLE_SEARCH_DAYS,
    )


def get_worker_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    sink: NotificationSink = Depends(get_notification_sink),
) -> WorkerService:
    return WorkerService(db, clock, sink)
