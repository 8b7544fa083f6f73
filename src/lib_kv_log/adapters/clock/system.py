"""Clock adapters."""

from __future__ import annotations

from datetime import datetime, timezone


class SystemClock:
    """Read the wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
