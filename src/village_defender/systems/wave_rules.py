"""Declarative wave rules and per-wave plan evaluation.

A ``WaveRules`` value describes how wave statistics scale with the wave
number and which scoped overrides apply on top.  ``WaveRules.plan`` turns
it into a ``WavePlan`` for one wave: the ordered spawn queue, the stat
multipliers for every enemy kind and the boss flag.

Overrides are evaluated in a fixed order, each multiplying into one
accumulated ``Edit``:

  every(n) -> range(a, b) -> wave(n) -> nth_boss(k)

Scalar factors multiply, so their order does not matter.  ``boss`` and
``composition`` are last-write-wins, so later scopes beat earlier ones.
Per-kind curves replace the global curve for one kind before the
accumulated factors are applied.

Planning is a pure function of (rules, wave, seed).  Without a seed the
spawn order is shuffled from fresh OS entropy.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Union

from loguru import logger

from village_defender.entities.enemy import EnemyKind

if TYPE_CHECKING:
    from village_defender.config import Tunables

# 64-bit golden ratio constant used to decorrelate per-wave seeds.
_GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_U64_MASK = (1 << 64) - 1

_FALLBACK_WEIGHTS = {EnemyKind.MINION: 0.6, EnemyKind.ZOMBIE: 0.4}
_MIN_WEIGHT_SUM = 0.0001


def _waves_elapsed(wave: int) -> int:
    return max(wave - 1, 0)


@dataclass(frozen=True)
class Multipliers:
    hp: float = 1.0
    dmg: float = 1.0
    spd: float = 1.0

    def scaled(self, hp: float, dmg: float, spd: float) -> Multipliers:
        return Multipliers(hp=self.hp * hp, dmg=self.dmg * dmg, spd=self.spd * spd)


@dataclass(frozen=True)
class ConstScale:
    value: float

    def evaluate(self, wave: int) -> float:
        return self.value


@dataclass(frozen=True)
class LinearScale:
    start: float
    per_wave: float

    def evaluate(self, wave: int) -> float:
        return self.start + self.per_wave * _waves_elapsed(wave)


@dataclass(frozen=True)
class ExpScale:
    """Compounding multiplier; wave 1 is always exactly 1.0."""

    factor_per_wave: float

    def evaluate(self, wave: int) -> float:
        exponent = _waves_elapsed(wave)
        try:
            return self.factor_per_wave ** exponent
        except OverflowError:
            # Saturate instead of failing on very late waves.
            if self.factor_per_wave < 0 and exponent % 2:
                return -math.inf
            return math.inf


StatScale = Union[ConstScale, LinearScale, ExpScale]


@dataclass(frozen=True)
class KindRule:
    health: StatScale = ConstScale(1.0)
    damage: StatScale = ConstScale(1.0)
    speed: StatScale = ConstScale(1.0)

    def evaluate(self, wave: int) -> Multipliers:
        return Multipliers(
            hp=self.health.evaluate(wave),
            dmg=self.damage.evaluate(wave),
            spd=self.speed.evaluate(wave),
        )


@dataclass(frozen=True)
class LinearCount:
    start: int
    per_wave: int

    def evaluate(self, wave: int) -> int:
        return self.start + self.per_wave * _waves_elapsed(wave)


CountCurve = LinearCount


@dataclass(frozen=True)
class Weights:
    """Unnormalized composition weights keyed by enemy kind."""

    values: dict[EnemyKind, float] = field(default_factory=dict)

    def set(self, kind: EnemyKind, weight: float) -> Weights:
        values = dict(self.values)
        values[kind] = float(weight)
        return Weights(values)

    def normalized(self) -> dict[EnemyKind, float]:
        """Weights divided by their sum.

        A zero or negative total returns the raw weights unchanged; callers
        must tolerate weights that do not sum to 1.
        """
        total = sum(self.values.values())
        if total <= 0.0:
            return dict(self.values)
        return {kind: weight / total for kind, weight in self.values.items()}


@dataclass(frozen=True)
class Edit:
    boss: bool | None = None
    health_mul: float = 1.0
    damage_mul: float = 1.0
    speed_mul: float = 1.0
    composition: Weights | None = None

    @classmethod
    def identity(cls) -> Edit:
        return cls()

    def merged(self, other: Edit) -> Edit:
        """Fold ``other`` into this edit.

        Factors multiply, each clamped at zero so a stat never flips sign.
        ``boss`` and ``composition`` take ``other``'s value when it sets one.
        """
        return Edit(
            boss=other.boss if other.boss is not None else self.boss,
            health_mul=self.health_mul * max(other.health_mul, 0.0),
            damage_mul=self.damage_mul * max(other.damage_mul, 0.0),
            speed_mul=self.speed_mul * max(other.speed_mul, 0.0),
            composition=other.composition if other.composition is not None else self.composition,
        )


@dataclass(frozen=True)
class ExactNode:
    wave: int
    edit: Edit

    def matches(self, wave: int) -> bool:
        return wave == self.wave


@dataclass(frozen=True)
class RangeNode:
    start: int
    end: int
    edit: Edit

    def matches(self, wave: int) -> bool:
        return self.start <= wave <= self.end


@dataclass(frozen=True)
class EveryNode:
    n: int
    edit: Edit

    def matches(self, wave: int) -> bool:
        return self.n != 0 and wave % self.n == 0


@dataclass(frozen=True)
class NthBossNode:
    index: int
    edit: Edit

    def matches(self, boss_index: int) -> bool:
        return boss_index > 0 and boss_index == self.index


RuleNode = Union[ExactNode, RangeNode, EveryNode, NthBossNode]

# Wave-scoped nodes, lowest precedence first.
_WAVE_SCOPES = (EveryNode, RangeNode, ExactNode)


@dataclass
class WavePlan:
    enemies: list[EnemyKind]
    multipliers: dict[EnemyKind, Multipliers]
    is_boss: bool

    def count_of(self, kind: EnemyKind) -> int:
        return sum(1 for enemy in self.enemies if enemy == kind)


def _default_composition() -> Weights:
    return Weights().set(EnemyKind.MINION, 0.6).set(EnemyKind.ZOMBIE, 0.4)


@dataclass(frozen=True)
class WaveRules:
    count: CountCurve = LinearCount(start=10, per_wave=2)
    global_rule: KindRule = KindRule()
    per_kind: dict[EnemyKind, KindRule] = field(default_factory=dict)
    composition: Weights = field(default_factory=_default_composition)
    boss_every: int | None = 10
    nodes: tuple[RuleNode, ...] = ()

    @classmethod
    def from_tunables(cls, tunables: Tunables) -> WaveRules:
        return cls(
            count=LinearCount(
                start=tunables.wave_base_enemy_count,
                per_wave=tunables.wave_enemy_increment,
            )
        )

    @classmethod
    def single_wave(cls, n: int, edit: Edit) -> WaveRules:
        """Default ruleset with one override on wave ``n``."""
        return WaveRulesBuilder().wave(n, edit).build()

    def is_boss_wave(self, wave: int) -> bool:
        if self.boss_every is None:
            return False
        return self.boss_every > 0 and wave % self.boss_every == 0

    def boss_index(self, wave: int) -> int:
        if not self.boss_every:
            return 0
        return wave // self.boss_every

    def plan(self, wave: int, tunables: Tunables | None = None, seed: int | None = None) -> WavePlan:
        """Evaluate the rules for a 1-based wave number.

        ``tunables`` is accepted for callers that pass the game configuration
        through; the rules carry their own count curve.  With a ``seed`` the
        result is fully reproducible.
        """
        is_boss = self.is_boss_wave(wave)
        acc = Edit.identity()

        for scope in _WAVE_SCOPES:
            for node in self.nodes:
                if isinstance(node, scope) and node.matches(wave):
                    acc = acc.merged(node.edit)

        if is_boss:
            if acc.boss is not None:
                is_boss = acc.boss
            boss_index = self.boss_index(wave)
            for node in self.nodes:
                if isinstance(node, NthBossNode) and node.matches(boss_index):
                    acc = acc.merged(node.edit)

        multipliers: dict[EnemyKind, Multipliers] = {}
        for kind in EnemyKind:
            base = self.per_kind.get(kind, self.global_rule).evaluate(wave)
            multipliers[kind] = base.scaled(acc.health_mul, acc.damage_mul, acc.speed_mul)

        count = self.count.evaluate(wave)
        composition = acc.composition if acc.composition is not None else self.composition
        weights = composition.normalized()
        enemies = _split_regulars(count, weights)

        rng = random.Random(_wave_seed(seed, wave)) if seed is not None else random.Random()
        rng.shuffle(enemies)

        if is_boss:
            enemies.append(EnemyKind.BOSS)

        logger.debug(f"Planned wave {wave}: {len(enemies)} enemies, boss={is_boss}")
        return WavePlan(enemies=enemies, multipliers=multipliers, is_boss=is_boss)


def _wave_seed(seed: int, wave: int) -> int:
    return (seed ^ (wave * _GOLDEN_GAMMA)) & _U64_MASK


def _split_regulars(count: int, weights: dict[EnemyKind, float]) -> list[EnemyKind]:
    # Minions take the floor share; zombies take the remainder.
    minion_weight = weights.get(EnemyKind.MINION, _FALLBACK_WEIGHTS[EnemyKind.MINION])
    zombie_weight = weights.get(EnemyKind.ZOMBIE, _FALLBACK_WEIGHTS[EnemyKind.ZOMBIE])
    total = max(minion_weight + zombie_weight, _MIN_WEIGHT_SUM)
    minions = max(math.floor(minion_weight / total * count), 0)
    zombies = max(count - minions, 0)
    return [EnemyKind.MINION] * minions + [EnemyKind.ZOMBIE] * zombies


class WaveRulesBuilder:
    """Fluent builder for ``WaveRules``, starting from the default ruleset."""

    def __init__(self) -> None:
        defaults = WaveRules()
        self._count: CountCurve = defaults.count
        self._global = defaults.global_rule
        self._per_kind: dict[EnemyKind, KindRule] = {}
        self._composition = defaults.composition
        self._boss_every = defaults.boss_every
        self._nodes: list[RuleNode] = []

    def defaults_count_linear(self, start: int, per_wave: int) -> WaveRulesBuilder:
        self._count = LinearCount(start=start, per_wave=per_wave)
        return self

    def defaults_scales(self, health: StatScale, damage: StatScale, speed: StatScale) -> WaveRulesBuilder:
        self._global = KindRule(health=health, damage=damage, speed=speed)
        return self

    def defaults_health(self, health: StatScale) -> WaveRulesBuilder:
        self._global = replace(self._global, health=health)
        return self

    def defaults_damage(self, damage: StatScale) -> WaveRulesBuilder:
        self._global = replace(self._global, damage=damage)
        return self

    def defaults_speed(self, speed: StatScale) -> WaveRulesBuilder:
        self._global = replace(self._global, speed=speed)
        return self

    def defaults_composition(self, weights: Weights) -> WaveRulesBuilder:
        self._composition = weights
        return self

    def defaults_boss_every(self, every: int | None) -> WaveRulesBuilder:
        self._boss_every = every
        return self

    def every(self, n: int, edit: Edit) -> WaveRulesBuilder:
        self._nodes.append(EveryNode(n=n, edit=edit))
        return self

    def range(self, start: int, end: int, edit: Edit) -> WaveRulesBuilder:
        self._nodes.append(RangeNode(start=start, end=end, edit=edit))
        return self

    def wave(self, n: int, edit: Edit) -> WaveRulesBuilder:
        self._nodes.append(ExactNode(wave=n, edit=edit))
        return self

    def nth_boss(self, n: int, edit: Edit) -> WaveRulesBuilder:
        self._nodes.append(NthBossNode(index=n, edit=edit))
        return self

    def per_kind(self, kind: EnemyKind, rule: KindRule) -> WaveRulesBuilder:
        self._per_kind[kind] = rule
        return self

    def build(self) -> WaveRules:
        return WaveRules(
            count=self._count,
            global_rule=self._global,
            per_kind=dict(self._per_kind),
            composition=self._composition,
            boss_every=self._boss_every,
            nodes=tuple(self._nodes),
        )


@dataclass
class WaveSchedule:
    """Plans for waves ``1..max_waves`` computed up front with one seed."""

    plans: list[WavePlan] = field(default_factory=list)

    @classmethod
    def precompute(
        cls,
        max_waves: int,
        rules: WaveRules,
        tunables: Tunables | None,
        seed: int,
    ) -> WaveSchedule:
        plans = [rules.plan(wave, tunables, seed) for wave in range(1, max_waves + 1)]
        return cls(plans=plans)

    def plan_for(self, wave: int) -> WavePlan | None:
        if 1 <= wave <= len(self.plans):
            return self.plans[wave - 1]
        return None
