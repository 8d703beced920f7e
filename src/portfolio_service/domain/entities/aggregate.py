from __future__ import annotations

from dataclasses import dataclass, field

from portfolio_service.domain.events.base import DomainEvent


@dataclass(eq=False)
class AggregateRoot:
    """Entity that buffers its domain events until the unit of work commits."""

    _domain_events: list[DomainEvent] = field(
        default_factory=list, init=False, repr=False,
    )

    def raise_domain_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> list[DomainEvent]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()
