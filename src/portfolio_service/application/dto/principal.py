from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT.

    ``identity_id`` is the identity provider's subject. ``user_id`` and
    ``roles`` are filled in from the authorization cache when the token
    does not carry them.
    """

    identity_id: str
    user_id: UUID | None = None
    roles: list[str] = field(default_factory=list)

    @property
    def is_enriched(self) -> bool:
        return self.user_id is not None and bool(self.roles)
