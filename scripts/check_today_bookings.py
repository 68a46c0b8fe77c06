#!/usr/bin/env python3
"""Print today's bookings and the ones whose window is open right now."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.constraints import interval_contains, parse_clock_time
from backend.domain.models import Booking
from backend.repository.booking_repository import BookingRepository, StorageError
from backend.utils.clock import Clock, FixedClock, SystemClock
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _is_open(booking: Booking, now_time: str) -> bool:
    return booking.is_active and interval_contains(
        parse_clock_time(booking.start_time),
        parse_clock_time(booking.end_time, end_of_day=True),
        parse_clock_time(now_time),
    )


def _describe(index: int, booking: Booking) -> list[str]:
    return [
        f"{index}. Booking ID: {booking.booking_id}",
        f"   Room: {booking.room_name} (ID: {booking.room_id})",
        f"   Access Code: {booking.access_code}",
        f"   Time: {booking.start_time} - {booking.display_end_time}",
        f"   Status: {booking.status.value}",
        f"   User ID: {booking.user_id}",
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--at",
        help="evaluate at this local ISO datetime instead of now (e.g. 2024-06-01T10:30)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    clock: Clock = (
        FixedClock(datetime.fromisoformat(args.at))
        if args.at
        else SystemClock(settings.timezone_name)
    )
    reading = clock.snapshot()
    repository = BookingRepository(settings)

    try:
        bookings = repository.list_bookings_for_date(reading.date)
    except StorageError as exc:
        print(f"[FAIL] {exc}")
        return 1

    print(SEPARATOR_LINE)
    print(f"Bookings for {reading.date} (now {reading.time})")
    print(SEPARATOR_LINE)
    if not bookings:
        print("No bookings found for today")
    for index, booking in enumerate(bookings, start=1):
        print("\n".join(_describe(index, booking)))

    open_now = [booking for booking in bookings if _is_open(booking, reading.time)]
    print(SEPARATOR_LINE)
    print(f"Currently ACTIVE bookings: {len(open_now)}")
    for index, booking in enumerate(open_now, start=1):
        print("\n".join(_describe(index, booking)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
