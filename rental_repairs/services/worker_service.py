"""
Worker directory: registration, specialization changes and activation.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from rental_repairs.core.clock import Clock, resolve_clock
from rental_repairs.core.exceptions import DuplicateWorkerError, NotFoundError
from rental_repairs.domain.specialization import Specialization, parse_specialization
from rental_repairs.domain.worker import Worker
from rental_repairs.repositories import WorkerRepository
from rental_repairs.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
)

logger = logging.getLogger(__name__)


class WorkerService:
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        sink: Optional[NotificationSink] = None,
    ):
        self.db = db
        self.clock = resolve_clock(clock)
        self.sink = sink or LoggingNotificationSink()
        self.workers = WorkerRepository(db)

    def get(self, worker_id: uuid.UUID) -> Worker:
        worker = self.workers.get(worker_id)
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        return worker

    def get_by_email(self, email: str) -> Worker:
        worker = self.workers.get_by_email(email)
        if worker is None:
            raise NotFoundError("Worker", email)
        return worker

    def list(self, active_only: bool = False, specialization: Optional[str] = None) -> List[Worker]:
        wanted: Optional[Specialization] = None
        if specialization:
            wanted = parse_specialization(specialization)
        return self.workers.list(active_only=active_only, specialization=wanted)

    def register(
        self,
        email: str,
        full_name: str,
        specialization=Specialization.GENERAL_MAINTENANCE,
        phone: Optional[str] = None,
    ) -> Worker:
        worker = Worker.register(email, full_name, specialization, phone)
        if self.workers.email_exists(worker.email):
            raise DuplicateWorkerError(worker.email)

        self._persist(worker)
        logger.info(f"[WORKER] Registered {worker.email} ({worker.specialization.value})")
        return worker

    def change_specialization(self, worker_id: uuid.UUID, specialization) -> Worker:
        worker = self.get(worker_id)
        worker.change_specialization(specialization)
        self._persist(worker)
        logger.info(f"[WORKER] {worker.email} specialization set to {worker.specialization.value}")
        return worker

    def deactivate(self, worker_id: uuid.UUID, reason: str = "") -> Worker:
        worker = self.get(worker_id)
        worker.deactivate(reason, self.clock)
        self._persist(worker)
        logger.info(f"[WORKER] {worker.email} deactivated: {reason}")
        return worker

    def activate(self, worker_id: uuid.UUID) -> Worker:
        worker = self.get(worker_id)
        worker.activate(self.clock)
        self._persist(worker)
        logger.info(f"[WORKER] {worker.email} reactivated")
        return worker

    def _persist(self, worker: Worker) -> None:
        try:
            self.workers.save(worker)
            self.db.commit()
        except Exception as e:
            logger.error(f"[DB] Failed saving worker {worker.email}: {e}")
            self.db.rollback()
            raise
        self.sink.publish(worker.pull_events())
