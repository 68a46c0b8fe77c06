"""Device-facing controller for door status, unlock and occupancy."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from backend.controllers.dependencies import get_access_service
from backend.domain.models import Booking, DenialReason
from backend.repository.booking_repository import StorageError
from backend.services.access_service import AccessGateService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api/arduino", tags=["device"])


class UnlockRequest(BaseModel):
    access_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("access_code", "accessCode"),
    )
    requested_by: Optional[Union[int, str]] = Field(
        default=None,
        validation_alias=AliasChoices("userId", "user_id"),
    )


class IndicatorRequest(BaseModel):
    action: str = Field(pattern=r"^(on|off|toggle)$")


_DENIAL_MESSAGES = {
    DenialReason.ROOM_NOT_FOUND: "Room not found",
    DenialReason.MISSING_CODE: "Access code required",
    DenialReason.INVALID_CODE: "Invalid access code or no active booking",
}


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def _storage_error(exc: StorageError, action: str, **extra: Any) -> JSONResponse:
    logger.error("Storage failure during %s: %s", action, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", **extra)


def _current_booking_payload(booking: Booking) -> dict[str, Any]:
    return {
        "bookingId": booking.booking_id,
        "userId": booking.user_id,
        "startTime": booking.start_time,
        "endTime": booking.display_end_time,
        "accessCode": booking.access_code,
    }


def _timestamp(moment: Optional[datetime]) -> Optional[str]:
    return moment.isoformat() if moment is not None else None


@router.get("/status/{room_id}")
async def room_status(
    room_id: int,
    service: AccessGateService = Depends(get_access_service),
) -> Any:
    try:
        device_status = service.get_status(room_id)
    except StorageError as exc:
        return _storage_error(exc, "status poll", isBooked=False, roomStatus="unknown")
    if device_status is None:
        return _error(status.HTTP_404_NOT_FOUND, "Room not found", isBooked=False)
    return {
        "roomId": device_status.room_id,
        "isBooked": device_status.is_booked,
        "roomStatus": device_status.room_status.value,
        "currentBooking": (
            _current_booking_payload(device_status.current_booking)
            if device_status.current_booking is not None
            else None
        ),
        "timestamp": device_status.timestamp.isoformat(),
    }


@router.post("/unlock/{room_id}")
async def unlock_room(
    room_id: int,
    payload: UnlockRequest,
    service: AccessGateService = Depends(get_access_service),
) -> Any:
    try:
        decision = service.unlock(
            room_id,
            payload.access_code,
            requested_by=str(payload.requested_by) if payload.requested_by is not None else None,
        )
    except StorageError as exc:
        return _storage_error(exc, "unlock", unlocked=False)

    if not decision.granted:
        status_code = (
            status.HTTP_404_NOT_FOUND
            if decision.reason is DenialReason.ROOM_NOT_FOUND
            else status.HTTP_403_FORBIDDEN
        )
        return _error(status_code, _DENIAL_MESSAGES[decision.reason], unlocked=False)

    booking = decision.booking
    return {
        "success": True,
        "unlocked": True,
        "booking": {
            "id": booking.booking_id,
            "roomName": booking.room_name,
            "startTime": booking.start_time,
            "endTime": booking.display_end_time,
            "userId": booking.user_id,
        },
        "unlockTime": _timestamp(decision.decided_at),
        "message": f"Room {booking.room_name} unlocked successfully",
    }


async def _transition_response(
    room_id: int,
    service: AccessGateService,
    *,
    check_in: bool,
) -> Any:
    action = "check-in" if check_in else "check-out"
    try:
        new_status = service.check_in(room_id) if check_in else service.check_out(room_id)
    except StorageError as exc:
        return _storage_error(exc, action)
    if new_status is None:
        return _error(status.HTTP_404_NOT_FOUND, "Room not found")
    time_key = "checkinTime" if check_in else "checkoutTime"
    return {
        "success": True,
        "roomId": room_id,
        "status": new_status.value,
        time_key: service.clock.now().isoformat(),
        "message": "Check-in successful" if check_in else "Check-out successful",
    }


@router.post("/checkin/{room_id}")
async def check_in(
    room_id: int,
    service: AccessGateService = Depends(get_access_service),
) -> Any:
    return await _transition_response(room_id, service, check_in=True)


@router.post("/checkout/{room_id}")
async def check_out(
    room_id: int,
    service: AccessGateService = Depends(get_access_service),
) -> Any:
    return await _transition_response(room_id, service, check_in=False)


@router.get("/led/{room_id}")
async def get_indicator(
    room_id: int,
    service: AccessGateService = Depends(get_access_service),
) -> dict[str, Any]:
    return {
        "success": True,
        "roomId": room_id,
        "ledStates": service.get_indicator(room_id).as_dict(),
        "timestamp": service.clock.now().isoformat(),
    }


@router.post("/led/{room_id}")
async def set_indicator(
    room_id: int,
    payload: IndicatorRequest,
    service: AccessGateService = Depends(get_access_service),
) -> dict[str, Any]:
    state = service.set_indicator(room_id, payload.action)
    return {
        "success": True,
        "roomId": room_id,
        "ledStates": state.as_dict(),
        "timestamp": service.clock.now().isoformat(),
        "message": "Manual LED control updated - All LEDs together",
    }
