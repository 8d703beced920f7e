from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def utc_now(self) -> datetime: ...


class SystemClock:
    """Timezone-aware UTC wall clock."""

    def utc_now(self) -> datetime:
        return datetime.now(timezone.utc)
