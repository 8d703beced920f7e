"""Explicit, discriminated encoding of domain events for the outbox table.

``type`` holds the event class name; ``content`` holds the event fields as
JSON-compatible values. No module paths or other runtime type metadata are
ever written, so decoding is limited to the registered event classes.
"""
from __future__ import annotations

from typing import Any, Iterable

from pydantic import TypeAdapter

from portfolio_service.domain.events.base import DomainEvent
from portfolio_service.domain.events.user_registered import UserRegisteredDomainEvent

DEFAULT_EVENT_TYPES: tuple[type[DomainEvent], ...] = (
    UserRegisteredDomainEvent,
)


class EventSerializer:
    """Serializes and deserializes registered domain events."""

    def __init__(
        self,
        event_types: Iterable[type[DomainEvent]] = DEFAULT_EVENT_TYPES,
    ) -> None:
        self._registry: dict[str, TypeAdapter[Any]] = {
            cls.__name__: TypeAdapter(cls) for cls in event_types
        }

    def supported_event_types(self) -> frozenset[str]:
        return frozenset(self._registry)

    def serialize(self, event: DomainEvent) -> tuple[str, dict[str, Any]]:
        """Return ``(type, content)`` for ``event``.

        Raises:
            ValueError: If the event type is not registered
        """
        event_type = type(event).__name__
        adapter = self._registry.get(event_type)
        if adapter is None:
            raise ValueError(f"Unsupported event type: {event_type}")
        return event_type, adapter.dump_python(event, mode="json")

    def deserialize(self, event_type: str, content: dict[str, Any]) -> DomainEvent:
        """Rebuild the concrete event named by ``event_type``.

        Raises:
            ValueError: If the event type is not registered or the content
                does not match it
        """
        adapter = self._registry.get(event_type)
        if adapter is None:
            raise ValueError(f"Unsupported event type: {event_type}")
        return adapter.validate_python(content)
