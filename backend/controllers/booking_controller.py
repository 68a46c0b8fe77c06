"""HTTP controller layer for login, rooms, bookings and admin maintenance."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import (
    get_access_service,
    get_auth_service,
    get_availability_service,
    get_booking_service,
    get_current_user_id,
    get_repository,
    require_admin,
)
from backend.domain.models import Booking, CreateBookingStatus, Room
from backend.repository.booking_repository import BookingRepository, StorageError
from backend.services.access_service import AccessGateService
from backend.services.auth_service import AuthService, InvalidCredentialsError
from backend.services.availability_service import (
    AvailabilityService,
    AvailabilityValidationError,
)
from backend.services.booking_service import BookingService, BookingValidationError
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["bookings"])


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserSummary(BaseModel):
    id: int
    username: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserSummary


class RoomResponse(BaseModel):
    id: int
    name: str
    status: str
    image_url: Optional[str] = None
    created_at: Optional[str] = None


class SlotResponse(BaseModel):
    start: str
    end: str


class CreateBookingRequest(BaseModel):
    room_id: int = Field(gt=0)
    date: date
    start_time: str = Field(min_length=1)
    end_time: str = Field(min_length=1)


class BookingResponse(BaseModel):
    id: int
    room_id: int
    user_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    access_code: Optional[str] = None
    created_at: Optional[str] = None
    room_name: Optional[str] = None
    username: Optional[str] = None


class CancelBookingResponse(BaseModel):
    success: bool = True
    message: str


class AdminResponse(BaseModel):
    success: bool = True
    message: str
    deletedCount: int


def _room_response(room: Room) -> RoomResponse:
    return RoomResponse(
        id=room.room_id,
        name=room.name,
        status=room.status.value,
        image_url=room.image_url,
        created_at=room.created_at,
    )


def _booking_response(booking: Booking, *, include_code: bool) -> BookingResponse:
    return BookingResponse(
        id=booking.booking_id,
        room_id=booking.room_id,
        user_id=booking.user_id,
        date=booking.date,
        start_time=booking.start_time,
        end_time=booking.display_end_time,
        status=booking.status.value,
        access_code=booking.access_code if include_code else None,
        created_at=booking.created_at,
        room_name=booking.room_name,
        username=booking.username,
    )


def _storage_failure(exc: StorageError, action: str) -> HTTPException:
    logger.error("Storage failure while %s: %s", action, exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database error",
    )


@router.get("/health")
async def health(repository: BookingRepository = Depends(get_repository)) -> dict[str, str]:
    try:
        repository.list_rooms()
        database = "Connected"
    except StorageError:
        logger.exception("Health check could not reach the database")
        database = "Not Ready"
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
    }


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        user = auth_service.authenticate(payload.username, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        raise _storage_failure(exc, "logging in") from exc
    return LoginResponse(
        token=auth_service.issue_token(user),
        user=UserSummary(id=user.user_id, username=user.username),
    )


@router.get("/rooms", response_model=list[RoomResponse])
async def list_rooms(
    repository: BookingRepository = Depends(get_repository),
) -> list[RoomResponse]:
    try:
        return [_room_response(room) for room in repository.list_rooms()]
    except StorageError as exc:
        raise _storage_failure(exc, "listing rooms") from exc


@router.get("/rooms/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: int,
    repository: BookingRepository = Depends(get_repository),
) -> RoomResponse:
    try:
        room = repository.get_room(room_id)
    except StorageError as exc:
        raise _storage_failure(exc, "reading room") from exc
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return _room_response(room)


@router.get("/rooms/{room_id}/availability/{target_date}", response_model=list[SlotResponse])
async def room_availability(
    room_id: int,
    target_date: str,
    service: AvailabilityService = Depends(get_availability_service),
) -> list[SlotResponse]:
    try:
        slots = service.get_available_slots(room_id, target_date)
    except AvailabilityValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise _storage_failure(exc, "computing availability") from exc
    if slots is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return [SlotResponse(start=slot.start, end=slot.end) for slot in slots]


@router.get("/bookings/all", response_model=list[BookingResponse])
async def list_all_bookings(
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    try:
        bookings = service.list_all_bookings()
    except StorageError as exc:
        raise _storage_failure(exc, "listing bookings") from exc
    return [_booking_response(booking, include_code=False) for booking in bookings]


@router.get("/bookings/my", response_model=list[BookingResponse])
async def list_my_bookings(
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    try:
        bookings = service.list_bookings_for_user(user_id)
    except StorageError as exc:
        raise _storage_failure(exc, "listing user bookings") from exc
    return [_booking_response(booking, include_code=True) for booking in bookings]


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: CreateBookingRequest,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        result = service.create_booking(
            room_id=payload.room_id,
            date=payload.date.isoformat(),
            start_time=payload.start_time,
            end_time=payload.end_time,
            user_id=user_id,
        )
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise _storage_failure(exc, "creating booking") from exc

    if result.status is CreateBookingStatus.ROOM_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    if result.status is CreateBookingStatus.USER_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if result.status is CreateBookingStatus.CONFLICT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Time slot overlaps an existing booking",
        )
    return _booking_response(result.booking, include_code=True)


@router.delete("/bookings/{booking_id}", response_model=CancelBookingResponse)
async def cancel_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    try:
        cancelled = service.cancel_booking(booking_id, user_id)
    except StorageError as exc:
        raise _storage_failure(exc, "cancelling booking") from exc
    if not cancelled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found or not owned by user",
        )
    return CancelBookingResponse(message=f"Booking {booking_id} cancelled")


@router.delete(
    "/admin/clear-bookings",
    response_model=AdminResponse,
    dependencies=[Depends(require_admin)],
)
async def clear_bookings(
    repository: BookingRepository = Depends(get_repository),
) -> AdminResponse:
    try:
        deleted = repository.clear_all_bookings()
    except StorageError as exc:
        raise _storage_failure(exc, "clearing bookings") from exc
    return AdminResponse(
        message=f"Successfully cleared {deleted} bookings",
        deletedCount=deleted,
    )


@router.delete(
    "/admin/reset-database",
    response_model=AdminResponse,
    dependencies=[Depends(require_admin)],
)
async def reset_database(
    repository: BookingRepository = Depends(get_repository),
    auth_service: AuthService = Depends(get_auth_service),
    access_service: AccessGateService = Depends(get_access_service),
) -> AdminResponse:
    try:
        deleted = repository.reset_to_defaults(auth_service.default_admin_password_hash())
    except StorageError as exc:
        raise _storage_failure(exc, "resetting database") from exc
    access_service.reset_indicators()
    return AdminResponse(
        message=f"Database reset successfully. Deleted {deleted} records",
        deletedCount=deleted,
    )
