"""Domain-level time rules for bookings and the slot grid."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime


MINUTES_PER_DAY = 24 * 60
AVAILABILITY_MODES = ("overlap", "start_point")

_CLOCK_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::\d{2})?$")


@dataclass(frozen=True)
class SlotGridConfig:
    start_hour: int
    end_hour: int
    slot_minutes: int
    mode: str


def validate_slot_grid_config(config: SlotGridConfig) -> None:
    if not 0 <= config.start_hour < 24:
        raise ValueError("slot grid start_hour must be between 0 and 23")
    if not config.start_hour < config.end_hour <= 24:
        raise ValueError("slot grid end_hour must be > start_hour and <= 24")
    if config.slot_minutes <= 0:
        raise ValueError("slot_minutes must be > 0")
    if ((config.end_hour - config.start_hour) * 60) % config.slot_minutes != 0:
        raise ValueError("slot_minutes must evenly divide the grid span")
    if config.mode not in AVAILABILITY_MODES:
        raise ValueError(f"availability mode must be one of {AVAILABILITY_MODES}")


def parse_clock_time(value: str, *, end_of_day: bool = False) -> int:
    """Parse HH:MM (optionally HH:MM:SS) into minutes since midnight.

    With ``end_of_day`` set, ``00:00`` and ``24:00`` both mean midnight at
    the end of the day (1440).
    """
    match = _CLOCK_TIME_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"time '{value}' must follow HH:MM format")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if end_of_day and (hours, minutes) in {(0, 0), (24, 0)}:
        return MINUTES_PER_DAY
    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise ValueError(f"time '{value}' is out of range")
    return hours * 60 + minutes


def storage_clock_time(minutes: int) -> str:
    """Sortable HH:MM text; end of day is stored as 24:00."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError("minutes must be within one day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def validate_date(value: str) -> str:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date().isoformat()
    except ValueError as exc:
        raise ValueError("date must follow YYYY-MM-DD format") from exc


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [a_start, a_end) and [b_start, b_end) share an instant."""
    return a_start < b_end and b_start < a_end


def interval_contains(start: int, end: int, point: int) -> bool:
    return start <= point < end
