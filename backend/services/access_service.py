"""Door unlock decisions and room occupancy transitions."""

from __future__ import annotations

from typing import Optional

from backend.domain.models import (
    DenialReason,
    DeviceStatus,
    IndicatorState,
    RoomStatus,
    UnlockDecision,
)
from backend.repository.booking_repository import BookingRepository, StorageError
from backend.services.device_registry import DeviceStateRegistry
from backend.utils.clock import Clock, SystemClock
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AccessGateService:
    """Per-room gate: available <-> occupied.

    Every time-window comparison uses one Clock snapshot for both date and
    time of day. StorageError propagates except for the occupancy update that
    follows a granted unlock.
    """

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        device_registry: Optional[DeviceStateRegistry] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._clock = clock or SystemClock(self._settings.timezone_name)
        self._device_registry = device_registry or DeviceStateRegistry()

    @property
    def clock(self) -> Clock:
        return self._clock

    def unlock(
        self,
        room_id: int,
        access_code: Optional[str],
        requested_by: Optional[str] = None,
    ) -> UnlockDecision:
        reading = self._clock.snapshot()
        if self._repository.get_room(room_id) is None:
            logger.info("Unlock denied: room %s not found", room_id)
            return UnlockDecision(
                granted=False,
                reason=DenialReason.ROOM_NOT_FOUND,
                decided_at=reading.timestamp,
            )
        code = (access_code or "").strip()
        if not code:
            logger.info("Unlock denied for room %s: no access code supplied", room_id)
            return UnlockDecision(
                granted=False,
                reason=DenialReason.MISSING_CODE,
                decided_at=reading.timestamp,
            )

        booking = self._repository.find_active_booking_for_unlock(
            room_id=room_id,
            access_code=code,
            date=reading.date,
            now_time=reading.time,
        )
        if booking is None:
            logger.info(
                "Unlock denied for room %s at %s %s: no active booking for code",
                room_id,
                reading.date,
                reading.time,
            )
            return UnlockDecision(
                granted=False,
                reason=DenialReason.INVALID_CODE,
                decided_at=reading.timestamp,
            )

        logger.info(
            "Unlock granted for room %s, booking %s (user %s, requested by %s)",
            room_id,
            booking.booking_id,
            booking.user_id,
            requested_by,
        )
        try:
            self._repository.set_room_status(room_id, RoomStatus.OCCUPIED)
        except StorageError:
            logger.exception("Room %s unlocked but occupancy update failed", room_id)
        return UnlockDecision(granted=True, booking=booking, decided_at=reading.timestamp)

    def _transition(self, room_id: int, status: RoomStatus) -> Optional[RoomStatus]:
        if not self._repository.set_room_status(room_id, status):
            logger.info("Room %s not found for %s transition", room_id, status.value)
            return None
        logger.info("Room %s is now %s", room_id, status.value)
        return status

    def check_in(self, room_id: int) -> Optional[RoomStatus]:
        return self._transition(room_id, RoomStatus.OCCUPIED)

    def check_out(self, room_id: int) -> Optional[RoomStatus]:
        return self._transition(room_id, RoomStatus.AVAILABLE)

    def get_status(self, room_id: int) -> Optional[DeviceStatus]:
        """Booking-derived is_booked next to the stored room status.

        The two are independent: a manual check-out during a booking leaves
        is_booked True while the room reads available.
        """
        reading = self._clock.snapshot()
        room = self._repository.get_room(room_id)
        if room is None:
            return None
        booking = self._repository.find_current_booking(
            room_id=room_id,
            date=reading.date,
            now_time=reading.time,
        )
        return DeviceStatus(
            room_id=room_id,
            is_booked=booking is not None,
            room_status=room.status,
            current_booking=booking,
            timestamp=reading.timestamp,
        )

    def get_indicator(self, room_id: int) -> IndicatorState:
        return self._device_registry.get(room_id)

    def set_indicator(self, room_id: int, action: str) -> IndicatorState:
        state = self._device_registry.apply(room_id, action)
        logger.info("Room %s indicator override '%s' -> %s", room_id, action, state.as_dict())
        return state

    def reset_indicators(self) -> None:
        self._device_registry.reset()
