from __future__ import annotations

from dataclasses import replace

import pytest

from backend.domain.models import CreateBookingStatus
from backend.repository.booking_repository import BookingRepository
from backend.services.booking_service import BookingService, BookingValidationError
from backend.utils.config import get_settings


def _build_service(tmp_path, **service_kwargs) -> tuple[BookingService, BookingRepository, int]:
    settings = replace(get_settings(), database_path=tmp_path / "booking_service.db")
    repository = BookingRepository(settings)
    repository.initialize_database()
    repository.seed_default_data("seed-hash")
    user = repository.create_user("user7", "hash")
    service = BookingService(repository=repository, settings=settings, **service_kwargs)
    return service, repository, user.user_id


def test_generated_access_code_is_six_digits(tmp_path):
    service, _, _ = _build_service(tmp_path)

    codes = {service.generate_access_code() for _ in range(200)}

    assert all(len(code) == 6 and code.isdigit() for code in codes)
    assert all(100000 <= int(code) <= 999999 for code in codes)


def test_create_booking_normalizes_times(tmp_path):
    service, _, user_id = _build_service(tmp_path, access_code_factory=lambda: "424242")

    result = service.create_booking(
        room_id=1,
        date="2024-06-01",
        start_time="22:00:00",
        end_time="00:00",
        user_id=user_id,
    )

    assert result.status is CreateBookingStatus.CREATED
    assert result.booking.start_time == "22:00"
    assert result.booking.end_time == "24:00"
    assert result.booking.access_code == "424242"


def test_create_booking_reports_conflict(tmp_path):
    service, _, user_id = _build_service(tmp_path)
    service.create_booking(
        room_id=3, date="2024-06-01", start_time="10:00", end_time="11:00", user_id=user_id
    )

    result = service.create_booking(
        room_id=3, date="2024-06-01", start_time="09:30", end_time="10:30", user_id=user_id
    )

    assert result.status is CreateBookingStatus.CONFLICT


def test_duplicate_codes_are_not_rerolled(tmp_path):
    service, _, user_id = _build_service(tmp_path, access_code_factory=lambda: "111111")

    first = service.create_booking(
        room_id=1, date="2024-06-01", start_time="10:00", end_time="11:00", user_id=user_id
    )
    second = service.create_booking(
        room_id=2, date="2024-06-01", start_time="10:00", end_time="11:00", user_id=user_id
    )

    assert first.booking.access_code == second.booking.access_code == "111111"


@pytest.mark.parametrize(
    ("date", "start_time", "end_time"),
    [
        ("", "10:00", "11:00"),
        ("2024-06-01", "", "11:00"),
        ("2024-06-01", "10:00", ""),
        ("2024/06/01", "10:00", "11:00"),
        ("2024-06-01", "10am", "11:00"),
        ("2024-06-01", "11:00", "10:00"),
        ("2024-06-01", "10:00", "10:00"),
    ],
)
def test_invalid_input_is_rejected_before_store(tmp_path, date, start_time, end_time):
    service, repository, user_id = _build_service(tmp_path)

    with pytest.raises(BookingValidationError):
        service.create_booking(
            room_id=1,
            date=date,
            start_time=start_time,
            end_time=end_time,
            user_id=user_id,
        )
    assert repository.list_all_bookings() == []


def test_cancel_and_user_listing(tmp_path):
    service, _, user_id = _build_service(tmp_path)
    booking = service.create_booking(
        room_id=1, date="2024-06-01", start_time="10:00", end_time="11:00", user_id=user_id
    ).booking

    assert [item.booking_id for item in service.list_bookings_for_user(user_id)] == [
        booking.booking_id
    ]
    assert service.cancel_booking(booking.booking_id, user_id) is True
    assert service.cancel_booking(booking.booking_id, user_id + 100) is False
