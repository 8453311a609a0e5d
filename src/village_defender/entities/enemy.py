"""Enemy kinds, base stats and spawned enemy entities."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from village_defender.systems.wave_rules import Multipliers


@dataclass(frozen=True)
class EnemyStats:
    hp: int
    damage: int
    speed: float
    size: float


class EnemyKind(str, Enum):
    MINION = "minion"
    ZOMBIE = "zombie"
    BOSS = "boss"

    @property
    def stats(self) -> EnemyStats:
        return _BASE_STATS[self]


_BASE_STATS: dict[EnemyKind, EnemyStats] = {
    EnemyKind.MINION: EnemyStats(hp=30, damage=5, speed=24.0, size=0.8),
    EnemyKind.ZOMBIE: EnemyStats(hp=50, damage=10, speed=18.0, size=1.2),
    EnemyKind.BOSS: EnemyStats(hp=100, damage=50, speed=12.0, size=1.8),
}

# Whole-number stats saturate at the unsigned 32-bit range.
_MAX_WHOLE_STAT = 2**32 - 1


def _whole_stat(value: float) -> int:
    if math.isnan(value) or value <= 0.0:
        return 0
    if value >= _MAX_WHOLE_STAT:
        return _MAX_WHOLE_STAT
    return round(value)


def parse_enemy_kind(value: str) -> EnemyKind:
    try:
        return EnemyKind(value.lower())
    except ValueError:
        raise ValueError(f"Unknown enemy kind: {value}") from None


@dataclass
class Enemy:
    enemy_id: str
    kind: EnemyKind
    max_hp: int
    hp: int
    damage: int
    speed: float
    size: float
    defeated: bool = False

    @classmethod
    def spawn(cls, enemy_id: str, kind: EnemyKind, multipliers: Multipliers) -> Enemy:
        """Build an enemy from its kind's base stats scaled by wave multipliers."""
        base = kind.stats
        speed = base.speed * multipliers.spd
        hp = max(1, _whole_stat(base.hp * multipliers.hp))
        return cls(
            enemy_id=enemy_id,
            kind=kind,
            max_hp=hp,
            hp=hp,
            damage=_whole_stat(base.damage * multipliers.dmg),
            speed=speed if not math.isnan(speed) else 0.0,
            size=base.size,
        )

    def apply_damage(self, amount: float) -> bool:
        if self.defeated:
            return False
        self.hp -= max(round(amount), 0)
        if self.hp <= 0:
            self.hp = 0
            self.defeated = True
            return True
        return False
