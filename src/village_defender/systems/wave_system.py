"""Wave progression state machine and spawn queue."""

from __future__ import annotations

from collections import deque

from loguru import logger

from village_defender.config import Tunables
from village_defender.core.event_bus import BOSS_WAVE_STARTED, WAVE_COMPLETE, WAVE_STARTED, EventBus
from village_defender.core.game_state import WavePhase
from village_defender.core.random_policy import RandomizationPolicy
from village_defender.core.timer import Timer, TimerMode
from village_defender.entities.enemy import EnemyKind
from village_defender.systems.wave_rules import Multipliers, WavePlan, WaveRules


class WaveState:
    """Live per-run wave controller.

    Alternates between an intermission countdown and a spawning phase.
    While spawning, ``len(spawn_queue) == enemies_to_spawn - enemies_spawned``.
    """

    def __init__(self, tunables: Tunables, rules: WaveRules | None = None) -> None:
        self.rules = rules or WaveRules()
        self.current_wave = 0
        self.phase = WavePhase.INTERMISSION
        self.intermission_timer = Timer(tunables.wave_initial_delay_secs, TimerMode.ONCE)
        self.spawn_timer = Timer(tunables.enemy_spawn_interval_secs, TimerMode.REPEATING)
        self.enemies_to_spawn = 0
        self.enemies_spawned = 0
        self.spawn_queue: deque[EnemyKind] = deque()
        self.plan: WavePlan | None = None

    def start_next_wave(self, tunables: Tunables, seed: int | None = None) -> WavePlan:
        self.current_wave += 1
        self.phase = WavePhase.SPAWNING

        plan = self.rules.plan(self.current_wave, tunables, seed)
        self.plan = plan
        self.spawn_queue = deque(plan.enemies)
        self.enemies_to_spawn = len(plan.enemies)
        self.enemies_spawned = 0

        self.spawn_timer.set_duration(tunables.enemy_spawn_interval_secs)
        self.spawn_timer.reset()
        return plan

    def start_intermission(self, duration_secs: float) -> None:
        self.phase = WavePhase.INTERMISSION
        self.intermission_timer.set_duration(duration_secs)
        self.intermission_timer.reset()

    def upcoming_wave_number(self) -> int:
        if self.phase == WavePhase.INTERMISSION:
            return self.current_wave + 1
        return max(self.current_wave, 1)

    def remaining_intermission_secs(self) -> float:
        return self.intermission_timer.remaining_secs()

    @property
    def is_finished_spawning(self) -> bool:
        return self.enemies_spawned >= self.enemies_to_spawn

    def pop_next_kind(self) -> EnemyKind | None:
        """Dequeue the next kind to spawn and count it as spawned."""
        if not self.spawn_queue:
            return None
        kind = self.spawn_queue.popleft()
        self.enemies_spawned += 1
        return kind

    def multipliers_for(self, kind: EnemyKind) -> Multipliers:
        if self.plan is None:
            return Multipliers()
        return self.plan.multipliers.get(kind, Multipliers())


class WaveProgressionSystem:
    """Drives ``WaveState`` between intermission and spawning each tick."""

    def __init__(
        self,
        state: WaveState,
        tunables: Tunables,
        policy: RandomizationPolicy | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.state = state
        self.tunables = tunables
        self.policy = policy or RandomizationPolicy()
        self.events = events or EventBus()

    def tick(self, dt: float, alive_enemies: int) -> None:
        if self.state.phase == WavePhase.INTERMISSION:
            self._tick_intermission(dt)
        else:
            self._tick_spawning(alive_enemies)

    def _tick_intermission(self, dt: float) -> None:
        state = self.state
        if state.current_wave == 0:
            target_duration = self.tunables.wave_initial_delay_secs
        else:
            target_duration = self.tunables.wave_intermission_secs
        if state.intermission_timer.duration != target_duration:
            state.intermission_timer.set_duration(target_duration)

        state.intermission_timer.tick(dt)
        if not state.intermission_timer.just_finished:
            return

        seed = self.policy.wave_seed(self.tunables.world_seed)
        plan = state.start_next_wave(self.tunables, seed)
        event_name = BOSS_WAVE_STARTED if plan.is_boss else WAVE_STARTED
        self.events.emit(
            event_name,
            wave_number=state.current_wave,
            planned_enemies=state.enemies_to_spawn,
        )
        logger.info(
            f"Wave {state.current_wave} started: {state.enemies_to_spawn} enemies"
            + (" (boss)" if plan.is_boss else "")
        )

    def _tick_spawning(self, alive_enemies: int) -> None:
        state = self.state
        # Cleared only once the queue is drained and stragglers are gone.
        if not state.is_finished_spawning or alive_enemies > 0:
            return
        state.start_intermission(self.tunables.wave_intermission_secs)
        self.events.emit(WAVE_COMPLETE, wave_number=state.current_wave)
        logger.info(f"Wave {state.current_wave} cleared")
