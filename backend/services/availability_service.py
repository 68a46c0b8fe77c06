"""Slot availability for a room and day."""

from __future__ import annotations

from typing import Iterable, Optional

from backend.domain.constraints import (
    SlotGridConfig,
    interval_contains,
    intervals_overlap,
    parse_clock_time,
    validate_date,
    validate_slot_grid_config,
)
from backend.domain.models import Booking, DaySchedule, SlotState, TimeSlot
from backend.repository.booking_repository import BookingRepository
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AvailabilityValidationError(Exception):
    """Raised when an availability query is malformed."""


def build_slot_grid(start_hour: int, end_hour: int, slot_minutes: int) -> list[TimeSlot]:
    """Contiguous slots tiling [start_hour, end_hour)."""
    return [
        TimeSlot(start_minute=minute, end_minute=minute + slot_minutes)
        for minute in range(start_hour * 60, end_hour * 60, slot_minutes)
    ]


def is_slot_blocked(slot: TimeSlot, bookings: Iterable[Booking], mode: str) -> bool:
    """Decide whether any booking takes the slot.

    ``start_point`` only looks at the slot's first minute, so a booking that
    starts mid-slot leaves the slot free. ``overlap`` blocks any slot that
    shares an instant with a booking.
    """
    for booking in bookings:
        booking_start = parse_clock_time(booking.start_time)
        booking_end = parse_clock_time(booking.end_time, end_of_day=True)
        if mode == "start_point":
            if interval_contains(booking_start, booking_end, slot.start_minute):
                return True
        elif intervals_overlap(slot.start_minute, slot.end_minute, booking_start, booking_end):
            return True
    return False


class AvailabilityService:
    """Subtracts active bookings from the configured daily slot grid."""

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._grid_config = SlotGridConfig(
            start_hour=self._settings.slot_grid_start_hour,
            end_hour=self._settings.slot_grid_end_hour,
            slot_minutes=self._settings.slot_duration_minutes,
            mode=self._settings.availability_mode,
        )
        validate_slot_grid_config(self._grid_config)
        self._grid = build_slot_grid(
            self._grid_config.start_hour,
            self._grid_config.end_hour,
            self._grid_config.slot_minutes,
        )

    @property
    def grid(self) -> list[TimeSlot]:
        return list(self._grid)

    def get_day_schedule(self, room_id: int, date: str) -> Optional[DaySchedule]:
        """Every grid slot with its booked flag, or None for an unknown room."""
        try:
            normalized_date = validate_date(date)
        except ValueError as exc:
            raise AvailabilityValidationError(str(exc)) from exc

        if self._repository.get_room(room_id) is None:
            return None

        bookings = self._repository.list_bookings_for_room_and_date(room_id, normalized_date)
        slots = [
            SlotState(
                slot=slot,
                booked=is_slot_blocked(slot, bookings, self._grid_config.mode),
            )
            for slot in self._grid
        ]
        return DaySchedule(room_id=room_id, date=normalized_date, slots=slots)

    def get_available_slots(self, room_id: int, date: str) -> Optional[list[TimeSlot]]:
        schedule = self.get_day_schedule(room_id, date)
        if schedule is None:
            return None
        available = [state.slot for state in schedule.slots if not state.booked]
        logger.info(
            "Room %s on %s: %s of %s slots available",
            room_id,
            schedule.date,
            len(available),
            len(schedule.slots),
        )
        return available
