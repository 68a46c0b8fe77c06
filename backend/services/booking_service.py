"""Booking creation and cancellation in front of the booking store."""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from backend.domain.constraints import (
    parse_clock_time,
    storage_clock_time,
    validate_date,
)
from backend.domain.models import Booking, CreateBookingResult, CreateBookingStatus
from backend.repository.booking_repository import BookingRepository
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class BookingValidationError(Exception):
    """Raised when booking input is missing or malformed."""


class BookingService:
    """Validates booking requests and issues access codes.

    Access codes are drawn independently per booking with no uniqueness
    check; unlock lookups are always scoped by room, date and time window.
    """

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
        access_code_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._access_code_factory = access_code_factory or self.generate_access_code

    def generate_access_code(self) -> str:
        low = self._settings.access_code_min
        high = self._settings.access_code_max
        return str(low + secrets.randbelow(high - low + 1))

    def _normalize_window(
        self,
        date: str,
        start_time: str,
        end_time: str,
    ) -> tuple[str, str, str]:
        if not date or not start_time or not end_time:
            raise BookingValidationError("Missing required fields")
        try:
            normalized_date = validate_date(date)
            start_minute = parse_clock_time(start_time)
            end_minute = parse_clock_time(end_time, end_of_day=True)
        except ValueError as exc:
            raise BookingValidationError(str(exc)) from exc
        if start_minute >= end_minute:
            raise BookingValidationError("start_time must be earlier than end_time")
        return (
            normalized_date,
            storage_clock_time(start_minute),
            storage_clock_time(end_minute),
        )

    def create_booking(
        self,
        *,
        room_id: int,
        date: str,
        start_time: str,
        end_time: str,
        user_id: int,
    ) -> CreateBookingResult:
        if room_id is None or user_id is None:
            raise BookingValidationError("Missing required fields")
        normalized_date, start, end = self._normalize_window(date, start_time, end_time)

        result = self._repository.create_booking(
            room_id=room_id,
            date=normalized_date,
            start_time=start,
            end_time=end,
            user_id=user_id,
            access_code=self._access_code_factory(),
        )
        if result.status is CreateBookingStatus.CREATED:
            logger.info(
                "Booking %s created for room %s on %s %s-%s by user %s",
                result.booking.booking_id,
                room_id,
                normalized_date,
                start,
                end,
                user_id,
            )
        elif result.status is CreateBookingStatus.CONFLICT:
            logger.info(
                "Booking rejected for room %s on %s %s-%s: overlaps booking %s",
                room_id,
                normalized_date,
                start,
                end,
                result.conflicting_booking_id,
            )
        elif result.status is CreateBookingStatus.USER_NOT_FOUND:
            logger.info("Booking rejected: user %s no longer exists", user_id)
        else:
            logger.info("Booking rejected: room %s not found", room_id)
        return result

    def cancel_booking(self, booking_id: int, user_id: int) -> bool:
        cancelled = self._repository.cancel_booking(booking_id, user_id)
        if cancelled:
            logger.info("Booking %s cancelled by user %s", booking_id, user_id)
        else:
            logger.info(
                "Cancel of booking %s by user %s matched no owned booking",
                booking_id,
                user_id,
            )
        return cancelled

    def list_bookings_for_user(self, user_id: int) -> list[Booking]:
        return self._repository.list_bookings_for_user(user_id)

    def list_all_bookings(self) -> list[Booking]:
        return self._repository.list_all_bookings()
