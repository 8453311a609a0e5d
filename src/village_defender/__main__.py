"""CLI entry point for a headless Village Defender wave simulation."""

from __future__ import annotations

from village_defender.core.event_bus import WAVE_COMPLETE
from village_defender.core.game_state import WavePhase
from village_defender.game import VillageDefenderGame

_TICK_SECS = 0.1
_WAVES_TO_RUN = 12


def main() -> None:
    game = VillageDefenderGame()
    completed: list[tuple[int, int, bool]] = []

    while len(completed) < _WAVES_TO_RUN:
        game.tick(_TICK_SECS)
        # Stand-in for combat: every spawned enemy falls immediately.
        game.clear_enemies()

        for event in game.events.drain():
            if event.name == WAVE_COMPLETE:
                plan = game.wave_state.plan
                completed.append(
                    (event.wave_number, game.wave_state.enemies_spawned, bool(plan and plan.is_boss))
                )

    print("Village Defender Wave Run")
    for wave_number, spawned, is_boss in completed:
        marker = " boss" if is_boss else ""
        print(f"wave={wave_number} spawned={spawned}{marker}")

    summary = game.snapshot()
    print(f"phase={summary['phase']}")
    print(f"waves_cleared={len(completed)}")
    print(f"in_intermission={summary['phase'] == WavePhase.INTERMISSION.value}")


if __name__ == "__main__":
    main()
