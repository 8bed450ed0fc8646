"""Tunable simulation settings for Idlewild."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

DEFAULT_SAVE_KEY = "idlewild:save:v2"


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def _as_float(data: Mapping[str, Any], key: str, default: float) -> float:
    try:
        return float(data.get(key, default))
    except (TypeError, ValueError):
        return default


def _as_int(data: Mapping[str, Any], key: str, default: int) -> int:
    try:
        return int(data.get(key, default))
    except (TypeError, ValueError):
        return default


def _as_str(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def _default_drain() -> Dict[str, float]:
    return {"hunger": 1.0, "thirst": 1.0, "warmth": 0.5}


def _default_consumables() -> Dict[str, Dict[str, Any]]:
    return {
        "food": {"need": "hunger", "perUnit": 25.0},
        "water": {"need": "thirst", "perUnit": 30.0},
    }


@dataclass
class GameSettings:
    """Simulation tunables read from the ``settings`` block of the game data."""

    save_key: str = DEFAULT_SAVE_KEY
    default_tick_interval_ms: int = 1000
    autosave_interval_ms: int = 5000
    max_offline_seconds: int = 86400
    offline_safety_padding: float = 5.0
    expedition_drain: Dict[str, float] = field(default_factory=_default_drain)
    fuel_drain_per_tick: float = 1.0
    light_cost_resource: str = "materials"
    light_cost_amount: float = 2.0
    light_fuel_amount: float = 50.0
    cost_rounding: str = "ceil"
    default_cost_resource: str = "materials"
    consumables: Dict[str, Dict[str, Any]] = field(default_factory=_default_consumables)
    effect_cache_size: int = 64

    _COST_ROUNDING_MODES = {"ceil", "floor"}

    def clamp(self) -> "GameSettings":
        self.default_tick_interval_ms = max(int(self.default_tick_interval_ms), 50)
        self.autosave_interval_ms = max(int(self.autosave_interval_ms), 250)
        self.max_offline_seconds = max(int(self.max_offline_seconds), 0)
        self.offline_safety_padding = max(float(self.offline_safety_padding), 0.0)
        self.fuel_drain_per_tick = max(float(self.fuel_drain_per_tick), 0.0)
        self.light_cost_amount = max(float(self.light_cost_amount), 0.0)
        self.light_fuel_amount = max(float(self.light_fuel_amount), 0.0)
        self.effect_cache_size = int(_clamp(int(self.effect_cache_size), 1, 4096))

        mode = str(self.cost_rounding).lower()
        if mode not in self._COST_ROUNDING_MODES:
            mode = "ceil"
        self.cost_rounding = mode

        self.expedition_drain = {
            str(need): max(float(value), 0.0) for need, value in self.expedition_drain.items()
        }
        return self

    def copy(self) -> "GameSettings":
        return GameSettings.from_dict(self.to_dict())

    def consumable_for(self, resource_id: str) -> tuple[str, float] | None:
        entry = self.consumables.get(resource_id)
        if not isinstance(entry, Mapping):
            return None
        need = entry.get("need")
        if not isinstance(need, str) or not need:
            return None
        return need, _as_float(entry, "perUnit", 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "saveKey": self.save_key,
            "defaultTickIntervalMs": self.default_tick_interval_ms,
            "autosaveIntervalMs": self.autosave_interval_ms,
            "maxOfflineSeconds": self.max_offline_seconds,
            "offlineSafetyPadding": self.offline_safety_padding,
            "expeditionDrain": dict(self.expedition_drain),
            "campfire": {
                "fuelDrainPerTick": self.fuel_drain_per_tick,
                "lightCostResource": self.light_cost_resource,
                "lightCostAmount": self.light_cost_amount,
                "lightFuelAmount": self.light_fuel_amount,
            },
            "production": {
                "costRounding": self.cost_rounding,
                "defaultCostResource": self.default_cost_resource,
            },
            "consumables": copy.deepcopy(self.consumables),
            "effectCacheSize": self.effect_cache_size,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "GameSettings":
        if not isinstance(data, Mapping):
            return cls().clamp()

        defaults = cls()
        drain = dict(defaults.expedition_drain)
        for need, value in _section(data, "expeditionDrain").items():
            try:
                drain[str(need)] = float(value)
            except (TypeError, ValueError):
                continue

        consumables = defaults.consumables
        raw_consumables = data.get("consumables")
        if isinstance(raw_consumables, Mapping):
            consumables = {
                str(resource_id): dict(entry)
                for resource_id, entry in raw_consumables.items()
                if isinstance(entry, Mapping)
            }

        campfire = _section(data, "campfire")
        production = _section(data, "production")
        settings = cls(
            save_key=_as_str(data, "saveKey", defaults.save_key),
            default_tick_interval_ms=_as_int(
                data, "defaultTickIntervalMs", defaults.default_tick_interval_ms
            ),
            autosave_interval_ms=_as_int(data, "autosaveIntervalMs", defaults.autosave_interval_ms),
            max_offline_seconds=_as_int(data, "maxOfflineSeconds", defaults.max_offline_seconds),
            offline_safety_padding=_as_float(
                data, "offlineSafetyPadding", defaults.offline_safety_padding
            ),
            expedition_drain=drain,
            fuel_drain_per_tick=_as_float(
                campfire, "fuelDrainPerTick", defaults.fuel_drain_per_tick
            ),
            light_cost_resource=_as_str(
                campfire, "lightCostResource", defaults.light_cost_resource
            ),
            light_cost_amount=_as_float(campfire, "lightCostAmount", defaults.light_cost_amount),
            light_fuel_amount=_as_float(campfire, "lightFuelAmount", defaults.light_fuel_amount),
            cost_rounding=_as_str(production, "costRounding", defaults.cost_rounding),
            default_cost_resource=_as_str(
                production, "defaultCostResource", defaults.default_cost_resource
            ),
            consumables=consumables,
            effect_cache_size=_as_int(data, "effectCacheSize", defaults.effect_cache_size),
        )
        return settings.clamp()
