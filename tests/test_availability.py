from __future__ import annotations

from dataclasses import replace

import pytest

from backend.domain.models import TimeSlot
from backend.repository.booking_repository import BookingRepository
from backend.services.availability_service import (
    AvailabilityService,
    AvailabilityValidationError,
    build_slot_grid,
)
from backend.utils.config import get_settings


TARGET_DATE = "2024-06-01"


def _build_test_settings(tmp_path, **overrides):
    return replace(get_settings(), database_path=tmp_path / "availability.db", **overrides)


def _build(tmp_path, **overrides) -> tuple[AvailabilityService, BookingRepository, int]:
    settings = _build_test_settings(tmp_path, **overrides)
    repository = BookingRepository(settings)
    repository.initialize_database()
    repository.seed_default_data("seed-hash")
    user = repository.create_user("user7", "hash")
    return AvailabilityService(repository=repository, settings=settings), repository, user.user_id


def _book(repository, user_id, start, end, room_id=3):
    return repository.create_booking(
        room_id=room_id,
        date=TARGET_DATE,
        start_time=start,
        end_time=end,
        user_id=user_id,
        access_code="123456",
    ).booking


def _starts(slots) -> list[str]:
    return [slot.start for slot in slots]


def test_full_day_grid():
    grid = build_slot_grid(0, 24, 60)

    assert len(grid) == 24
    assert (grid[0].start, grid[0].end) == ("00:00", "01:00")
    assert (grid[-1].start, grid[-1].end) == ("23:00", "00:00")


def test_empty_day_is_fully_available(tmp_path):
    service, _, _ = _build(tmp_path)

    slots = service.get_available_slots(3, TARGET_DATE)

    assert slots == service.grid
    assert len(slots) == 24


def test_daytime_grid_has_sixteen_slots(tmp_path):
    service, _, _ = _build(tmp_path, slot_grid_start_hour=8)

    slots = service.get_available_slots(3, TARGET_DATE)

    assert len(slots) == 16
    assert slots[0] == TimeSlot(8 * 60, 9 * 60)
    assert slots[-1].end == "00:00"


def test_on_grid_booking_removes_its_slot(tmp_path):
    service, repository, user_id = _build(tmp_path)
    _book(repository, user_id, "10:00", "12:00")

    starts = _starts(service.get_available_slots(3, TARGET_DATE))

    assert "10:00" not in starts
    assert "11:00" not in starts
    assert "09:00" in starts and "12:00" in starts
    assert len(starts) == 22


def test_off_grid_booking_blocks_every_touched_slot_in_overlap_mode(tmp_path):
    service, repository, user_id = _build(tmp_path, availability_mode="overlap")
    _book(repository, user_id, "09:30", "10:30")

    starts = _starts(service.get_available_slots(3, TARGET_DATE))

    assert "09:00" not in starts
    assert "10:00" not in starts


def test_off_grid_booking_in_start_point_mode(tmp_path):
    service, repository, user_id = _build(tmp_path, availability_mode="start_point")
    _book(repository, user_id, "09:30", "10:30")

    starts = _starts(service.get_available_slots(3, TARGET_DATE))

    assert "09:00" in starts
    assert "10:00" not in starts


def test_end_of_day_booking_blocks_last_slot(tmp_path):
    service, repository, user_id = _build(tmp_path)
    _book(repository, user_id, "23:00", "24:00")

    starts = _starts(service.get_available_slots(3, TARGET_DATE))

    assert "23:00" not in starts
    assert len(starts) == 23


@pytest.mark.parametrize("mode", ["overlap", "start_point"])
def test_available_and_booked_slots_partition_the_grid(tmp_path, mode):
    service, repository, user_id = _build(tmp_path, availability_mode=mode)
    _book(repository, user_id, "01:15", "02:45")
    _book(repository, user_id, "08:00", "09:00")
    _book(repository, user_id, "17:30", "20:00")

    schedule = service.get_day_schedule(3, TARGET_DATE)
    available = service.get_available_slots(3, TARGET_DATE)
    booked = [state.slot for state in schedule.slots if state.booked]

    assert sorted(available + booked, key=lambda slot: slot.start_minute) == service.grid
    assert not set(available) & set(booked)


def test_other_rooms_are_unaffected(tmp_path):
    service, repository, user_id = _build(tmp_path)
    _book(repository, user_id, "10:00", "11:00", room_id=3)

    assert len(service.get_available_slots(4, TARGET_DATE)) == 24


def test_cancelled_booking_slot_reappears(tmp_path):
    service, repository, user_id = _build(tmp_path)
    booking = _book(repository, user_id, "10:00", "11:00")
    assert "10:00" not in _starts(service.get_available_slots(3, TARGET_DATE))

    repository.cancel_booking(booking.booking_id, user_id)

    assert "10:00" in _starts(service.get_available_slots(3, TARGET_DATE))


def test_unknown_room_returns_none(tmp_path):
    service, _, _ = _build(tmp_path)

    assert service.get_available_slots(999, TARGET_DATE) is None


def test_malformed_date_raises(tmp_path):
    service, _, _ = _build(tmp_path)

    with pytest.raises(AvailabilityValidationError):
        service.get_available_slots(3, "June 1st")


def test_invalid_grid_settings_fail_fast(tmp_path):
    with pytest.raises(ValueError):
        _build(tmp_path, slot_grid_start_hour=25)
