"""Tests for clock-time parsing, interval rules and slot grid validation."""

from __future__ import annotations

import pytest

from backend.domain.constraints import (
    SlotGridConfig,
    interval_contains,
    intervals_overlap,
    parse_clock_time,
    storage_clock_time,
    validate_date,
    validate_slot_grid_config,
)
from backend.domain.models import format_clock_time


def grid_config(**overrides) -> SlotGridConfig:
    defaults = {
        "start_hour": 0,
        "end_hour": 24,
        "slot_minutes": 60,
        "mode": "overlap",
    }
    defaults.update(overrides)
    return SlotGridConfig(**defaults)


# --- parse_clock_time ---

def test_parse_clock_time_reads_minutes() -> None:
    assert parse_clock_time("00:00") == 0
    assert parse_clock_time("10:30") == 630
    assert parse_clock_time("23:59") == 1439


def test_parse_clock_time_accepts_seconds_suffix() -> None:
    assert parse_clock_time("10:30:45") == 630


def test_parse_clock_time_end_of_day() -> None:
    assert parse_clock_time("00:00", end_of_day=True) == 1440
    assert parse_clock_time("24:00", end_of_day=True) == 1440


def test_parse_clock_time_rejects_24_as_start() -> None:
    with pytest.raises(ValueError):
        parse_clock_time("24:00")


@pytest.mark.parametrize("value", ["", "9:00", "10-11", "25:00", "10:60", "abc"])
def test_parse_clock_time_rejects_malformed(value: str) -> None:
    with pytest.raises(ValueError):
        parse_clock_time(value)


def test_storage_and_display_of_end_of_day() -> None:
    assert storage_clock_time(1440) == "24:00"
    assert format_clock_time(1440) == "00:00"
    assert storage_clock_time(9 * 60) == "09:00"


def test_validate_date() -> None:
    assert validate_date("2024-06-01") == "2024-06-01"
    with pytest.raises(ValueError):
        validate_date("01/06/2024")


# --- intervals ---

def test_half_open_intervals_touching_do_not_overlap() -> None:
    assert not intervals_overlap(600, 660, 660, 720)
    assert not intervals_overlap(660, 720, 600, 660)


def test_partial_and_nested_intervals_overlap() -> None:
    assert intervals_overlap(570, 630, 600, 660)
    assert intervals_overlap(600, 660, 610, 620)


def test_interval_contains_is_start_inclusive_end_exclusive() -> None:
    assert interval_contains(600, 660, 600)
    assert interval_contains(600, 660, 659)
    assert not interval_contains(600, 660, 660)


# --- slot grid config ---

def test_default_grid_config_passes() -> None:
    validate_slot_grid_config(grid_config())


def test_daytime_grid_config_passes() -> None:
    validate_slot_grid_config(grid_config(start_hour=8))


def test_grid_end_before_start_raises() -> None:
    with pytest.raises(ValueError):
        validate_slot_grid_config(grid_config(start_hour=10, end_hour=9))


def test_grid_slot_minutes_must_divide_span() -> None:
    with pytest.raises(ValueError):
        validate_slot_grid_config(grid_config(slot_minutes=50))


def test_grid_unknown_mode_raises() -> None:
    with pytest.raises(ValueError):
        validate_slot_grid_config(grid_config(mode="fuzzy"))
