"""Single wall-clock source for every time-window comparison."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class ClockReading:
    """Date and time-of-day taken from one instant."""

    date: str
    time: str
    timestamp: datetime


class Clock:
    """Base time provider. Subclasses only implement now()."""

    def now(self) -> datetime:
        raise NotImplementedError

    def snapshot(self) -> ClockReading:
        current = self.now()
        return ClockReading(
            date=current.date().isoformat(),
            time=current.strftime("%H:%M"),
            timestamp=current,
        )


class SystemClock(Clock):
    def __init__(self, timezone_name: str) -> None:
        self._zone = ZoneInfo(timezone_name)

    def now(self) -> datetime:
        return datetime.now(self._zone)


class FixedClock(Clock):
    """Manually driven clock for tests and operator scripts."""

    def __init__(self, current: datetime) -> None:
        self._current = current
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._current

    def set(self, current: datetime) -> None:
        with self._lock:
            self._current = current
