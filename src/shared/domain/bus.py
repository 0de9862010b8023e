"""Event bus contracts.

Aggregates only collect events; repositories hand them to an
``IEventBus`` once the write has committed.  Handlers are registered per
concrete event class at app start-up (``AppConfig.ready``).
"""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Deliver *event* to the handlers subscribed to its exact class."""

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None:
        """Register *handler*; subscribing the same handler twice is a no-op."""

    def unsubscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
