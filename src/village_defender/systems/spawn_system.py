"""Spawn execution: pulls kinds off the wave queue at a fixed cadence."""

from __future__ import annotations

from loguru import logger

from village_defender.config import Tunables
from village_defender.core.event_bus import ENEMY_SPAWNED, EventBus
from village_defender.core.game_state import WavePhase
from village_defender.entities.enemy import Enemy
from village_defender.systems.wave_system import WaveState


class EnemySpawnSystem:
    def __init__(self, tunables: Tunables, events: EventBus | None = None) -> None:
        self.tunables = tunables
        self.events = events or EventBus()
        self._enemy_counter = 0

    def tick(self, state: WaveState, dt: float) -> list[Enemy]:
        if state.phase != WavePhase.SPAWNING or state.is_finished_spawning:
            return []

        interval = self.tunables.enemy_spawn_interval_secs
        if state.spawn_timer.duration != interval:
            state.spawn_timer.set_duration(interval)

        state.spawn_timer.tick(dt)
        # At most one spawn per tick, however many intervals the frame covered.
        if not state.spawn_timer.just_finished:
            return []
        kind = state.pop_next_kind()
        if kind is None:
            return []

        self._enemy_counter += 1
        enemy = Enemy.spawn(
            enemy_id=f"enemy_{self._enemy_counter:04d}",
            kind=kind,
            multipliers=state.multipliers_for(kind),
        )
        self.events.emit(
            ENEMY_SPAWNED,
            enemy_id=enemy.enemy_id,
            kind=enemy.kind.value,
            wave_number=state.current_wave,
        )
        logger.debug(f"Spawned {enemy.kind.value} {enemy.enemy_id} (hp={enemy.hp})")
        return [enemy]
