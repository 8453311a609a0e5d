"""In-memory event bus for wave telemetry.

UI and audio collaborators drain it once per frame; tests read it directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

WAVE_STARTED = "wave_started"
BOSS_WAVE_STARTED = "boss_wave_started"
WAVE_COMPLETE = "wave_complete"
ENEMY_SPAWNED = "enemy_spawned"
ENEMY_DEFEATED = "enemy_defeated"


@dataclass
class Event:
    name: str
    payload: dict[str, Any]

    @property
    def wave_number(self) -> int | None:
        return self.payload.get("wave_number")


class EventBus:
    def __init__(self) -> None:
        self._events: list[Event] = []

    def emit(self, name: str, **payload: Any) -> None:
        self._events.append(Event(name=name, payload=payload))

    @property
    def events(self) -> list[Event]:
        return self._events

    def named(self, name: str) -> list[Event]:
        return [event for event in self._events if event.name == name]

    def drain(self) -> list[Event]:
        events = self._events[:]
        self._events.clear()
        return events
