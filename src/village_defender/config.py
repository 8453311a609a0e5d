"""Config loading and validation for Village Defender waves."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import json

from loguru import logger

from village_defender.entities.enemy import parse_enemy_kind
from village_defender.systems.wave_rules import (
    ConstScale,
    Edit,
    ExpScale,
    KindRule,
    LinearScale,
    StatScale,
    WaveRules,
    WaveRulesBuilder,
    Weights,
)


@dataclass
class Tunables:
    wave_initial_delay_secs: float = 20.0
    wave_intermission_secs: float = 3.0
    enemy_spawn_interval_secs: float = 1.0
    wave_base_enemy_count: int = 10
    wave_enemy_increment: int = 2
    world_seed: int = 0xC0FFEE


DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"

_DURATION_KEYS = ("wave_initial_delay_secs", "wave_intermission_secs", "enemy_spawn_interval_secs")
_EDIT_KEYS = {"boss", "health", "damage", "speed", "composition"}
_SCALE_KEYS = {"health", "damage", "speed"}


def _load_json(path: Path) -> dict | list:
    if not path.exists():
        raise ValueError(f"Missing config file: {path}")
    return json.loads(path.read_text())


def _require_keys(data: dict, keys: set[str], context: str) -> None:
    missing = keys - set(data.keys())
    if missing:
        raise ValueError(f"{context}: missing keys {sorted(missing)}")


def _require_object(data: object, context: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{context}: expected an object")
    return data


def _require_list(data: object, context: str) -> list:
    if not isinstance(data, list):
        raise ValueError(f"{context}: expected a list")
    return data


def _parse_linear_pair(value: object, context: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{context}: linear expects [start, per_wave]")
    start, per_wave = value
    return float(start), float(per_wave)


def _reject_unknown_keys(data: dict, allowed: set[str], context: str) -> None:
    unknown = set(data.keys()) - allowed
    if unknown:
        raise ValueError(f"{context}: unknown keys {sorted(unknown)}")


def load_tunables(path: Path | None = None) -> Tunables:
    tunables_path = path or DEFAULT_DATA_DIR / "tunables.json"
    raw = _load_json(tunables_path)
    if not isinstance(raw, dict):
        raise ValueError("tunables: expected an object")

    field_types = {f.name: f.type for f in fields(Tunables)}
    _reject_unknown_keys(raw, set(field_types), "tunables")

    values: dict[str, float | int] = {}
    for key, value in raw.items():
        values[key] = float(value) if field_types[key] == "float" else int(value)

    tunables = Tunables(**values)
    for key in _DURATION_KEYS:
        if getattr(tunables, key) < 0:
            raise ValueError(f"{key} must be non-negative")
    if tunables.wave_base_enemy_count < 0 or tunables.wave_enemy_increment < 0:
        raise ValueError("wave enemy counts must be non-negative")

    logger.info(f"Loaded tunables from {tunables_path}")
    return tunables


def _parse_scale(raw: dict, context: str) -> StatScale:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ValueError(f"{context}: expected exactly one of const/linear/exp")
    (kind, value), = raw.items()
    if kind == "const":
        return ConstScale(float(value))
    if kind == "linear":
        start, per_wave = _parse_linear_pair(value, context)
        return LinearScale(start=start, per_wave=per_wave)
    if kind == "exp":
        return ExpScale(factor_per_wave=float(value))
    raise ValueError(f"{context}: unknown scale type {kind!r}")


def _parse_weights(raw: dict, context: str) -> Weights:
    _require_object(raw, context)
    weights = Weights()
    for kind_name, weight in raw.items():
        try:
            kind = parse_enemy_kind(kind_name)
        except ValueError as exc:
            raise ValueError(f"{context}: {exc}") from None
        weights = weights.set(kind, float(weight))
    return weights


def _parse_edit(raw: dict, context: str) -> Edit:
    _require_object(raw, context)
    _reject_unknown_keys(raw, _EDIT_KEYS, context)
    boss = raw.get("boss")
    if boss is not None and not isinstance(boss, bool):
        raise ValueError(f"{context}.boss: expected true or false")
    composition = raw.get("composition")
    return Edit(
        boss=boss,
        health_mul=float(raw.get("health", 1.0)),
        damage_mul=float(raw.get("damage", 1.0)),
        speed_mul=float(raw.get("speed", 1.0)),
        composition=None if composition is None else _parse_weights(composition, f"{context}.composition"),
    )


def _parse_kind_rule(raw: dict, context: str) -> KindRule:
    _require_object(raw, context)
    _reject_unknown_keys(raw, _SCALE_KEYS, context)
    return KindRule(
        **{key: _parse_scale(value, f"{context}.{key}") for key, value in raw.items()}
    )


def wave_rules_from_dict(raw: dict) -> WaveRules:
    """Build ``WaveRules`` from the declarative JSON schema.

    Every section maps onto one ``WaveRulesBuilder`` call; sections that are
    absent keep the default ruleset's values.
    """
    _require_object(raw, "wave_rules")
    _reject_unknown_keys(raw, {"defaults", "per_kind", "every", "range", "wave", "nth_boss"}, "wave_rules")
    builder = WaveRulesBuilder()

    defaults = _require_object(raw.get("defaults", {}), "defaults")
    _reject_unknown_keys(defaults, {"count", "composition", "boss_every"} | _SCALE_KEYS, "defaults")
    if "count" in defaults:
        count = _require_object(defaults["count"], "defaults.count")
        _require_keys(count, {"linear"}, "defaults.count")
        start, per_wave = _parse_linear_pair(count["linear"], "defaults.count")
        if int(start) < 0 or int(per_wave) < 0:
            raise ValueError("defaults.count: values must be non-negative")
        builder.defaults_count_linear(int(start), int(per_wave))
    if "health" in defaults:
        builder.defaults_health(_parse_scale(defaults["health"], "defaults.health"))
    if "damage" in defaults:
        builder.defaults_damage(_parse_scale(defaults["damage"], "defaults.damage"))
    if "speed" in defaults:
        builder.defaults_speed(_parse_scale(defaults["speed"], "defaults.speed"))
    if "composition" in defaults:
        builder.defaults_composition(_parse_weights(defaults["composition"], "defaults.composition"))
    if "boss_every" in defaults:
        boss_every = defaults["boss_every"]
        builder.defaults_boss_every(None if boss_every is None else int(boss_every))

    for kind_name, rule_raw in _require_object(raw.get("per_kind", {}), "per_kind").items():
        context = f"per_kind.{kind_name}"
        try:
            kind = parse_enemy_kind(kind_name)
        except ValueError as exc:
            raise ValueError(f"{context}: {exc}") from None
        builder.per_kind(kind, _parse_kind_rule(rule_raw, context))

    for index, node in enumerate(_require_list(raw.get("every", []), "every")):
        context = f"every[{index}]"
        _require_object(node, context)
        _require_keys(node, {"n", "edit"}, context)
        builder.every(int(node["n"]), _parse_edit(node["edit"], context))

    for index, node in enumerate(_require_list(raw.get("range", []), "range")):
        context = f"range[{index}]"
        _require_object(node, context)
        _require_keys(node, {"start", "end", "edit"}, context)
        builder.range(int(node["start"]), int(node["end"]), _parse_edit(node["edit"], context))

    for index, node in enumerate(_require_list(raw.get("wave", []), "wave")):
        context = f"wave[{index}]"
        _require_object(node, context)
        _require_keys(node, {"n", "edit"}, context)
        builder.wave(int(node["n"]), _parse_edit(node["edit"], context))

    for index, node in enumerate(_require_list(raw.get("nth_boss", []), "nth_boss")):
        context = f"nth_boss[{index}]"
        _require_object(node, context)
        _require_keys(node, {"n", "edit"}, context)
        builder.nth_boss(int(node["n"]), _parse_edit(node["edit"], context))

    return builder.build()


def load_wave_rules(path: Path | None = None) -> WaveRules:
    rules_path = path or DEFAULT_DATA_DIR / "waves" / "wave_rules.json"
    raw = _load_json(rules_path)
    if not isinstance(raw, dict):
        raise ValueError("wave_rules: expected an object")
    rules = wave_rules_from_dict(raw)
    logger.info(f"Loaded wave rules from {rules_path}: {len(rules.nodes)} scoped overrides")
    return rules
