"""Clock abstraction deciding which study year is "current"."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:  # pragma: no cover - protocol
        ...


class SystemClock:
    """Wall clock in the institution's timezone."""

    def __init__(self, timezone: str = "Europe/Stockholm") -> None:
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._tz)


def current_study_year(clock: Clock, override: int | None = None) -> int:
    """Return the study year used to scope cost aggregation."""

    if override is not None:
        return override
    return clock.now().year


__all__ = ["Clock", "SystemClock", "current_study_year"]
