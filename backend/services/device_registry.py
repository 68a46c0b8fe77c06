"""Ephemeral per-room indicator overrides for door controllers."""

from __future__ import annotations

from threading import Lock

from backend.domain.models import IndicatorState


INDICATOR_ACTIONS = ("on", "off", "toggle")


class DeviceStateRegistry:
    """Process-lifetime map of room id to manual LED state.

    Nothing here is persisted; a restart returns every room to all-off.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._states: dict[int, IndicatorState] = {}

    def get(self, room_id: int) -> IndicatorState:
        with self._lock:
            state = self._states.setdefault(room_id, IndicatorState())
            return IndicatorState(**state.as_dict())

    def apply(self, room_id: int, action: str) -> IndicatorState:
        if action not in INDICATOR_ACTIONS:
            raise ValueError(f"action must be one of {INDICATOR_ACTIONS}")
        with self._lock:
            state = self._states.setdefault(room_id, IndicatorState())
            if action == "on":
                value = True
            elif action == "off":
                value = False
            else:
                value = not (state.led2 or state.led3 or state.led4)
            state.led2 = state.led3 = state.led4 = value
            return IndicatorState(**state.as_dict())

    def reset(self) -> None:
        with self._lock:
            self._states.clear()
