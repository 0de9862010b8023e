"""In-memory event bus and transactional publishing helper."""

from __future__ import annotations

from functools import partial
from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    Handlers run synchronously in subscription order.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: DomainEvent) -> None:
        handlers = self._handlers.get(type(event), [])
        logger.info(
            "event_bus.publish",
            event_name=event.event_name,
            aggregate_id=event.aggregate_id,
            handler_count=len(handlers),
        )
        for handler in handlers:
            handler.handle(event)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()


def publish_on_commit(events: Iterable[DomainEvent], bus: IEventBus = event_bus) -> None:
    """Publish *events* after the current transaction commits.

    Outside a transaction the events are published immediately.  A failing
    handler is logged by Django (``robust=True``) and never undoes the
    committed write.
    """
    for event in events:
        transaction.on_commit(partial(bus.publish, event), robust=True)
