"""Wave phase definitions for progression flow."""

from enum import Enum


class WavePhase(str, Enum):
    INTERMISSION = "intermission"
    SPAWNING = "spawning"
