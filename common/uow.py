"""Unit of work for the order and payment workflows.

Wraps ``transaction.atomic`` and owns the events produced while it is open.
Every core workflow operation takes the unit of work as its first argument
so the transaction boundary is explicit at the call site::

    with UnitOfWork() as uow:
        order = create_order(uow, user=user, ...)

Events emitted through ``uow.emit`` are handed to the publisher via
``transaction.on_commit``: they fire exactly once if the outermost
transaction commits, and never on rollback.
"""

import logging
from typing import Any

from django.db import DEFAULT_DB_ALIAS, transaction

from .events import Event, EventPublisher, get_event_publisher

logger = logging.getLogger("freshcart.events")


class UnitOfWork:
    def __init__(self, *, publisher: EventPublisher | None = None, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.publisher = publisher or get_event_publisher()
        self._atomic = None
        self.pending_events: list[Event] = []

    def __enter__(self) -> "UnitOfWork":
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb):
        atomic, self._atomic = self._atomic, None
        if exc_type is not None:
            self.pending_events.clear()
        return atomic.__exit__(exc_type, exc, tb)

    @property
    def active(self) -> bool:
        return self._atomic is not None

    def emit(self, name: str, payload: dict[str, Any], *, room: str | None = None) -> Event:
        """Queue an event for publication after the transaction commits."""

        if not self.active:
            raise RuntimeError("UnitOfWork.emit() called outside of an open unit of work")
        event = Event(name=name, payload=payload, room=room)
        self.pending_events.append(event)
        transaction.on_commit(lambda: self._publish(event), using=self.using)
        return event

    def _publish(self, event: Event) -> None:
        try:
            self.publisher.publish(event)
        except Exception:
            # Fan-out is best-effort once the data is committed
            logger.exception("event_publish_failed", extra={"event": event.name})
        finally:
            if event in self.pending_events:
                self.pending_events.remove(event)
