"""Domain models for room booking and door access."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class CreateBookingStatus(str, Enum):
    CREATED = "created"
    CONFLICT = "conflict"
    ROOM_NOT_FOUND = "room_not_found"
    USER_NOT_FOUND = "user_not_found"


class DenialReason(str, Enum):
    ROOM_NOT_FOUND = "room_not_found"
    MISSING_CODE = "missing_code"
    INVALID_CODE = "invalid_code"


@dataclass(frozen=True)
class Room:
    room_id: int
    name: str
    status: RoomStatus
    image_url: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(frozen=True)
class User:
    user_id: int
    username: str
    password_hash: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Booking:
    booking_id: int
    room_id: int
    user_id: int
    date: str
    start_time: str
    end_time: str
    access_code: str
    status: BookingStatus
    created_at: Optional[str] = None
    room_name: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is BookingStatus.ACTIVE

    @property
    def display_end_time(self) -> str:
        """End time as clients see it; the stored 24:00 end of day reads 00:00."""
        hours, minutes = self.end_time.split(":")[:2]
        return format_clock_time(int(hours) * 60 + int(minutes))


@dataclass(frozen=True)
class TimeSlot:
    """Grid slot in minutes since midnight, half-open [start, end)."""

    start_minute: int
    end_minute: int

    @property
    def start(self) -> str:
        return format_clock_time(self.start_minute)

    @property
    def end(self) -> str:
        return format_clock_time(self.end_minute)


@dataclass(frozen=True)
class SlotState:
    slot: TimeSlot
    booked: bool


@dataclass(frozen=True)
class CreateBookingResult:
    status: CreateBookingStatus
    booking: Optional[Booking] = None
    conflicting_booking_id: Optional[int] = None

    @property
    def created(self) -> bool:
        return self.status is CreateBookingStatus.CREATED


@dataclass(frozen=True)
class UnlockDecision:
    granted: bool
    booking: Optional[Booking] = None
    reason: Optional[DenialReason] = None
    decided_at: Optional[datetime] = None


@dataclass(frozen=True)
class DeviceStatus:
    room_id: int
    is_booked: bool
    room_status: RoomStatus
    current_booking: Optional[Booking]
    timestamp: datetime


@dataclass
class IndicatorState:
    led2: bool = False
    led3: bool = False
    led4: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {"led2": self.led2, "led3": self.led3, "led4": self.led4}


@dataclass(frozen=True)
class DaySchedule:
    room_id: int
    date: str
    slots: list[SlotState] = field(default_factory=list)


def format_clock_time(minutes: int) -> str:
    """Render minutes since midnight as HH:MM, wrapping end of day to 00:00."""
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
