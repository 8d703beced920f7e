from __future__ import annotations


class DomainEvent:
    """Base for immutable facts raised by aggregates.

    Concrete events are frozen dataclasses. The class name is the
    discriminator stored in ``outbox_messages.type``.
    """

    __slots__ = ()

    @property
    def event_type(self) -> str:
        return type(self).__name__
