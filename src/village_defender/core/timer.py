"""Countdown and repeating timers advanced by frame delta time."""

from __future__ import annotations

from enum import Enum


class TimerMode(str, Enum):
    ONCE = "once"
    REPEATING = "repeating"


class Timer:
    """Tracks elapsed seconds against a duration.

    ``ONCE`` timers stop at the duration and stay finished until reset.
    ``REPEATING`` timers wrap around and report how many times they
    completed during the last tick.
    """

    def __init__(self, duration: float, mode: TimerMode = TimerMode.ONCE) -> None:
        self._duration = max(float(duration), 0.0)
        self.mode = mode
        self._elapsed = 0.0
        self._finished = False
        self._times_finished_this_tick = 0

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def just_finished(self) -> bool:
        return self._times_finished_this_tick > 0

    @property
    def times_finished_this_tick(self) -> int:
        return self._times_finished_this_tick

    def set_duration(self, duration: float) -> None:
        self._duration = max(float(duration), 0.0)

    def reset(self) -> None:
        self._elapsed = 0.0
        self._finished = False
        self._times_finished_this_tick = 0

    def remaining_secs(self) -> float:
        return max(self._duration - self._elapsed, 0.0)

    def tick(self, dt: float) -> None:
        self._times_finished_this_tick = 0
        dt = max(dt, 0.0)

        if self.mode == TimerMode.ONCE:
            if self._finished:
                return
            self._elapsed = min(self._elapsed + dt, self._duration)
            if self._elapsed >= self._duration:
                self._finished = True
                self._times_finished_this_tick = 1
            return

        self._elapsed += dt
        if self._duration == 0.0:
            # Zero-length repeating timers fire once per tick.
            self._finished = True
            self._times_finished_this_tick = 1
            self._elapsed = 0.0
            return

        self._finished = self._elapsed >= self._duration
        while self._elapsed >= self._duration:
            self._elapsed -= self._duration
            self._times_finished_this_tick += 1
