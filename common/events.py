"""Domain event publishing.

The workflow only emits events; delivering them to connected clients is the
job of whatever publisher is configured via ``settings.EVENT_PUBLISHER``.
Events are queued on the unit of work and published after commit, so a
rolled-back operation never leaks an event.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.module_loading import import_string

logger = logging.getLogger("freshcart.events")

ORDER_CREATED = "order-created"
ORDER_STATUS_UPDATED = "order-status-updated"
ORDER_NOTIFICATION = "order-notification"
DELIVERY_LOCATION_UPDATED = "delivery-location-updated"
PAYMENT_SUCCESS = "payment-success"
PAYMENT_FAILED = "payment-failed"
PAYMENT_REFUNDED = "payment-refunded"


@dataclass(frozen=True)
class Event:
    """A named event with a JSON-serializable payload.

    `room` optionally scopes the event (e.g. a single order's listeners);
    None means the publisher decides who receives it.
    """

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    room: str | None = None

    def to_json(self) -> str:
        return json.dumps(
            {"event": self.name, "room": self.room, "payload": self.payload},
            cls=DjangoJSONEncoder,
        )


class EventPublisher(Protocol):
    def publish(self, event: Event) -> None: ...


class LoggingEventPublisher:
    """Default publisher: writes each event to the events logger."""

    def publish(self, event: Event) -> None:
        logger.info(
            event.name,
            extra={"event": event.name, "room": event.room, "payload": json.loads(event.to_json())["payload"]},
        )


class InMemoryEventPublisher:
    """Collects events in a process-wide list; used by tests and local tooling."""

    events: list[Event] = []

    def publish(self, event: Event) -> None:
        type(self).events.append(event)

    @classmethod
    def names(cls) -> list[str]:
        return [e.name for e in cls.events]

    @classmethod
    def clear(cls) -> None:
        cls.events.clear()


def get_event_publisher() -> EventPublisher:
    path = getattr(settings, "EVENT_PUBLISHER", "common.events.LoggingEventPublisher")
    return import_string(path)()
