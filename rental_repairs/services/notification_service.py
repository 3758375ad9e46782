"""
Notification sinks for domain events.

Services drain an aggregate's outbox only after the transaction commits and
hand the events to a sink:

  • LoggingNotificationSink: default; one log line per event
  • WebhookNotificationSink: POSTs each event as JSON (httpx); falls back to
                              logging when the endpoint is unreachable
  • InMemoryNotificationSink: collects events for tests
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import httpx

from rental_repairs.domain.events import DomainEvent

logger = logging.getLogger(__name__)


def event_to_message(event: DomainEvent) -> Dict[str, Any]:
    return {
        "event_id": str(event.event_id),
        "event": event.name,
        "occurred_at": event.occurred_at.isoformat(),
        "payload": event.payload(),
    }


class NotificationSink(ABC):
    """Consumes lifecycle events after a successful state change."""

    def publish(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.deliver(event)

    @abstractmethod
    def deliver(self, event: DomainEvent) -> None:
        ...


class LoggingNotificationSink(NotificationSink):
    def deliver(self, event: DomainEvent) -> None:
        logger.info(f"[NOTIFY] {event.name} {event.payload()}")


class InMemoryNotificationSink(NotificationSink):
    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    def deliver(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()


class WebhookNotificationSink(NotificationSink):
    """
    Sends each event to an HTTP endpoint. A failed delivery is logged and the
    event is dropped: the state change it describes is already committed.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client

    def deliver(self, event: DomainEvent) -> None:
        message = event_to_message(event)
        try:
            if self._client is not None:
                response = self._client.post(self.url, json=message, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=message)
            response.raise_for_status()
            logger.info(f"[NOTIFY][WEBHOOK] Delivered {event.name} ({response.status_code})")
        except httpx.HTTPError as exc:
            logger.warning(f"[NOTIFY][WEBHOOK] Failed delivering {event.name}: {exc}")
            logger.info(f"[NOTIFY] {event.name} {message['payload']}")
