"""Main game orchestrator for the Village Defender wave loop."""

from __future__ import annotations

from pathlib import Path

from village_defender.config import Tunables, load_tunables, load_wave_rules
from village_defender.core.event_bus import ENEMY_DEFEATED, EventBus
from village_defender.core.random_policy import RandomizationPolicy
from village_defender.entities.enemy import Enemy
from village_defender.systems.spawn_system import EnemySpawnSystem
from village_defender.systems.wave_rules import WaveRules
from village_defender.systems.wave_system import WaveProgressionSystem, WaveState


class VillageDefenderGame:
    """Engine-agnostic game model wiring wave progression to spawning."""

    def __init__(
        self,
        tunables: Tunables | None = None,
        rules: WaveRules | None = None,
        policy: RandomizationPolicy | None = None,
        data_dir: Path | None = None,
    ) -> None:
        if tunables is None:
            tunables = load_tunables(data_dir / "tunables.json" if data_dir else None)
        if rules is None:
            rules = load_wave_rules(data_dir / "waves" / "wave_rules.json" if data_dir else None)

        self.tunables = tunables
        self.rules = rules
        self.events = EventBus()

        self.wave_state = WaveState(tunables, rules)
        self.progression = WaveProgressionSystem(self.wave_state, tunables, policy=policy, events=self.events)
        self.spawner = EnemySpawnSystem(tunables, events=self.events)

        self.active_enemies: list[Enemy] = []

    def tick(self, dt: float) -> list[Enemy]:
        spawned = self.spawner.tick(self.wave_state, dt)
        self.active_enemies.extend(spawned)
        self.progression.tick(dt, alive_enemies=len(self.active_enemies))
        return spawned

    def damage_enemy(self, enemy_id: str, amount: float) -> bool:
        for enemy in self.active_enemies:
            if enemy.enemy_id != enemy_id:
                continue
            defeated = enemy.apply_damage(amount)
            if defeated:
                self._remove(enemy)
            return defeated
        raise ValueError(f"Unknown enemy_id: {enemy_id}")

    def clear_enemies(self) -> int:
        cleared = len(self.active_enemies)
        for enemy in list(self.active_enemies):
            enemy.defeated = True
            self._remove(enemy)
        return cleared

    def snapshot(self) -> dict[str, int | float | str | bool]:
        state = self.wave_state
        return {
            "phase": state.phase.value,
            "current_wave": state.current_wave,
            "upcoming_wave": state.upcoming_wave_number(),
            "is_boss_wave": bool(state.plan and state.plan.is_boss),
            "enemies_to_spawn": state.enemies_to_spawn,
            "enemies_spawned": state.enemies_spawned,
            "queued": len(state.spawn_queue),
            "alive": len(self.active_enemies),
            "intermission_remaining": round(state.remaining_intermission_secs(), 2),
        }

    def _remove(self, enemy: Enemy) -> None:
        self.active_enemies.remove(enemy)
        self.events.emit(
            ENEMY_DEFEATED,
            enemy_id=enemy.enemy_id,
            kind=enemy.kind.value,
            wave_number=self.wave_state.current_wave,
        )
