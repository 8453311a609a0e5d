"""Toggles for which random decisions are seeded from the world seed."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RandomizationPolicy:
    """Seeded decisions replay identically for the same world seed.

    Unseeded decisions draw fresh randomness every run.
    """

    wave_composition_seeded: bool = True

    def wave_seed(self, world_seed: int) -> int | None:
        return world_seed if self.wave_composition_seeded else None
