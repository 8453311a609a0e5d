import math

import pytest

from village_defender.config import Tunables
from village_defender.entities.enemy import EnemyKind
from village_defender.systems.wave_rules import (
    ConstScale,
    Edit,
    ExpScale,
    KindRule,
    LinearCount,
    LinearScale,
    WaveRules,
    WaveRulesBuilder,
    WaveSchedule,
    Weights,
)


def test_scales_start_from_base_value_at_wave_one() -> None:
    assert LinearCount(start=7, per_wave=3).evaluate(1) == 7
    assert LinearScale(start=1.5, per_wave=0.25).evaluate(1) == 1.5
    assert ExpScale(factor_per_wave=3.0).evaluate(1) == 1.0
    assert ExpScale(factor_per_wave=0.5).evaluate(1) == 1.0


def test_scales_compound_after_wave_one() -> None:
    assert LinearCount(start=10, per_wave=2).evaluate(4) == 16
    assert LinearScale(start=1.0, per_wave=0.5).evaluate(3) == 2.0
    assert ExpScale(factor_per_wave=2.0).evaluate(4) == 8.0
    assert ConstScale(0.75).evaluate(99) == 0.75
    assert LinearCount(start=5, per_wave=4).evaluate(0) == 5


def test_weights_normalize_and_tolerate_non_positive_totals() -> None:
    weights = Weights().set(EnemyKind.MINION, 3.0).set(EnemyKind.ZOMBIE, 1.0)
    assert weights.normalized() == {EnemyKind.MINION: 0.75, EnemyKind.ZOMBIE: 0.25}

    zero = Weights().set(EnemyKind.MINION, 0.0).set(EnemyKind.ZOMBIE, 0.0)
    assert zero.normalized() == {EnemyKind.MINION: 0.0, EnemyKind.ZOMBIE: 0.0}


def test_edit_merge_multiplies_and_clamps() -> None:
    merged = Edit(health_mul=2.0, boss=True).merged(Edit(health_mul=1.5, damage_mul=-3.0))
    assert merged.health_mul == 3.0
    assert merged.damage_mul == 0.0
    assert merged.speed_mul == 1.0
    assert merged.boss is True


def test_plan_is_deterministic_for_same_seed() -> None:
    rules = WaveRules()
    tunables = Tunables()
    for wave in (1, 5, 10, 23):
        first = rules.plan(wave, tunables, 42)
        second = rules.plan(wave, tunables, 42)
        assert first.enemies == second.enemies
        assert first.multipliers == second.multipliers
        assert first.is_boss == second.is_boss


def test_different_seeds_shuffle_differently() -> None:
    rules = WaveRules()
    orders_a = [rules.plan(wave, None, 0xC0FFEE).enemies for wave in range(1, 6)]
    orders_b = [rules.plan(wave, None, 0xC0FFEE ^ 0xDEADBEEFDEADBEEF).enemies for wave in range(1, 6)]
    assert orders_a != orders_b


def test_default_rules_wave_ten_is_boss_wave() -> None:
    plan = WaveRules().plan(10, Tunables(), 42)
    assert plan.is_boss
    assert len(plan.enemies) == 10 + 2 * 9 + 1
    assert plan.enemies[-1] == EnemyKind.BOSS
    assert plan.count_of(EnemyKind.BOSS) == 1

    plan_nine = WaveRules().plan(9, Tunables(), 42)
    assert not plan_nine.is_boss
    assert EnemyKind.BOSS not in plan_nine.enemies


def test_composition_split_gives_floor_share_to_minions() -> None:
    plan = WaveRules().plan(2, None, 7)
    # 12 enemies at 0.6 / 0.4 -> floor(7.2) minions, remainder zombies.
    assert plan.count_of(EnemyKind.MINION) == 7
    assert plan.count_of(EnemyKind.ZOMBIE) == 5


def test_zero_weights_send_everything_to_zombies() -> None:
    rules = (
        WaveRulesBuilder()
        .defaults_composition(Weights().set(EnemyKind.MINION, 0.0).set(EnemyKind.ZOMBIE, 0.0))
        .build()
    )
    plan = rules.plan(1, None, 1)
    assert plan.count_of(EnemyKind.MINION) == 0
    assert plan.count_of(EnemyKind.ZOMBIE) == 10


def test_unseeded_plan_keeps_counts() -> None:
    plan = WaveRules().plan(3, None, None)
    assert len(plan.enemies) == 14
    assert plan.count_of(EnemyKind.MINION) == 8


def test_range_override_only_touches_waves_in_range() -> None:
    damage_curve = LinearScale(start=1.0, per_wave=0.02)
    rules = (
        WaveRulesBuilder()
        .defaults_damage(damage_curve)
        .range(11, 20, Edit(damage_mul=1.1))
        .build()
    )
    plan_ten = rules.plan(10, None, 1)
    plan_fifteen = rules.plan(15, None, 1)

    for kind in EnemyKind:
        assert plan_ten.multipliers[kind].dmg == pytest.approx(damage_curve.evaluate(10))
        assert plan_fifteen.multipliers[kind].dmg == pytest.approx(damage_curve.evaluate(15) * 1.1)


def test_per_kind_override_replaces_global_curve() -> None:
    rules = WaveRulesBuilder().per_kind(EnemyKind.ZOMBIE, KindRule(health=ExpScale(1.07))).build()

    assert rules.plan(1, None, 5).multipliers[EnemyKind.ZOMBIE].hp == 1.0
    assert rules.plan(5, None, 5).multipliers[EnemyKind.ZOMBIE].hp > 1.0
    assert rules.plan(5, None, 5).multipliers[EnemyKind.MINION].hp == 1.0


def test_exact_wave_beats_periodic_for_composition() -> None:
    all_zombies = Weights().set(EnemyKind.MINION, 0.0).set(EnemyKind.ZOMBIE, 1.0)
    all_minions = Weights().set(EnemyKind.MINION, 1.0).set(EnemyKind.ZOMBIE, 0.0)
    rules = (
        WaveRulesBuilder()
        .wave(5, Edit(composition=all_minions))
        .every(5, Edit(composition=all_zombies, speed_mul=2.0))
        .build()
    )
    plan = rules.plan(5, None, 3)
    assert plan.count_of(EnemyKind.ZOMBIE) == 0
    assert plan.multipliers[EnemyKind.MINION].spd == 2.0

    plan_ten = rules.plan(10, None, 3)
    assert plan_ten.count_of(EnemyKind.MINION) == 0


def test_boss_flag_override_only_applies_on_boss_waves() -> None:
    rules = (
        WaveRulesBuilder()
        .every(10, Edit(boss=False))
        .wave(3, Edit(boss=True))
        .build()
    )
    assert not rules.plan(10, None, 1).is_boss
    assert EnemyKind.BOSS not in rules.plan(10, None, 1).enemies
    assert not rules.plan(3, None, 1).is_boss


def test_zero_boss_cadence_never_spawns_boss() -> None:
    rules = WaveRulesBuilder().defaults_boss_every(0).nth_boss(1, Edit(health_mul=5.0)).build()
    for wave in (1, 10, 20):
        plan = rules.plan(wave, None, 9)
        assert not plan.is_boss
        assert plan.multipliers[EnemyKind.MINION].hp == 1.0


def test_nth_boss_targets_one_boss_wave() -> None:
    rules = WaveRulesBuilder().nth_boss(2, Edit(health_mul=2.0)).build()
    assert rules.plan(10, None, 1).multipliers[EnemyKind.BOSS].hp == 1.0
    assert rules.plan(20, None, 1).multipliers[EnemyKind.BOSS].hp == 2.0
    assert rules.plan(21, None, 1).multipliers[EnemyKind.BOSS].hp == 1.0


def test_reversed_range_never_matches() -> None:
    rules = WaveRulesBuilder().range(8, 4, Edit(health_mul=3.0)).build()
    assert all(rules.plan(wave, None, 1).multipliers[EnemyKind.MINION].hp == 1.0 for wave in range(1, 10))


def test_rules_from_tunables_use_tunable_counts() -> None:
    rules = WaveRules.from_tunables(Tunables(wave_base_enemy_count=4, wave_enemy_increment=3))
    assert len(rules.plan(3, None, 1).enemies) == 10


def test_schedule_precomputes_seeded_plans() -> None:
    rules = WaveRules()
    schedule = WaveSchedule.precompute(12, rules, Tunables(), seed=99)
    assert len(schedule.plans) == 12
    assert schedule.plan_for(10).is_boss
    assert schedule.plan_for(4).enemies == rules.plan(4, None, 99).enemies
    assert schedule.plan_for(0) is None
    assert schedule.plan_for(13) is None


def test_exponential_scale_saturates_on_late_waves() -> None:
    assert ExpScale(2.0).evaluate(1100) == math.inf
    assert ExpScale(-2.0).evaluate(1101) == math.inf
    assert ExpScale(-2.0).evaluate(1102) == -math.inf
    assert ExpScale(0.5).evaluate(5000) == 0.0

    plan = WaveRulesBuilder().defaults_health(ExpScale(1.5)).build().plan(2000, Tunables(), 1)
    assert plan.multipliers[EnemyKind.MINION].hp == math.inf
    assert plan.is_boss
    assert len(plan.enemies) == 10 + 2 * 1999 + 1


def test_single_wave_rules_touch_only_that_wave() -> None:
    rules = WaveRules.single_wave(17, Edit(damage_mul=1.13))
    assert rules.plan(17, None, 1).multipliers[EnemyKind.ZOMBIE].dmg == 1.13
    assert rules.plan(16, None, 1).multipliers[EnemyKind.ZOMBIE].dmg == 1.0
    assert rules.plan(18, None, 1).multipliers[EnemyKind.ZOMBIE].dmg == 1.0
    assert rules.count == WaveRules().count
