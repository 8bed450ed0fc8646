"""Cumulative upgrade effects, memoised per purchased-upgrade set."""

from __future__ import annotations

import logging
from collections import OrderedDict
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from .data_schema import EffectType
from .game_data import Upgrade

log = logging.getLogger("idlewild.effects")

_EMPTY: Mapping[str, float] = MappingProxyType({})


class EffectResolver:
    """Resolve purchased upgrades into per-target factors.

    Results are cached by the exact purchased-id tuple in a small LRU, so a
    tick with an unchanged upgrade list costs one dictionary lookup.
    """

    def __init__(self, upgrades: Iterable[Upgrade], cache_size: int = 64) -> None:
        self._upgrades: Dict[str, Upgrade] = {upg.id: upg for upg in upgrades}
        self.cache_size = max(int(cache_size), 1)
        self._cache: "OrderedDict[Tuple[str, ...], Dict[EffectType, Mapping[str, float]]]" = (
            OrderedDict()
        )

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def multipliers(self, purchased: Sequence[str]) -> Mapping[str, float]:
        return self._resolve(purchased).get(EffectType.MULTIPLIER, _EMPTY)

    def multiplier(self, purchased: Sequence[str], target: str) -> float:
        return self.multipliers(purchased).get(target, 1.0)

    def survival_modifier(
        self, purchased: Sequence[str], need_id: str, attribute: str = "decayRate"
    ) -> float:
        modifiers = self._resolve(purchased).get(EffectType.SURVIVAL_MODIFIER, _EMPTY)
        return modifiers.get(f"{need_id}.{attribute}", 1.0)

    def exploration_efficiency(self, purchased: Sequence[str]) -> float:
        modifiers = self._resolve(purchased).get(EffectType.EXPLORATION_MODIFIER, _EMPTY)
        return modifiers.get("efficiency", 1.0)

    def _resolve(self, purchased: Sequence[str]) -> Dict[EffectType, Mapping[str, float]]:
        key = tuple(purchased)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        factors: Dict[EffectType, Dict[str, float]] = {}
        for upgrade_id in key:
            upg = self._upgrades.get(upgrade_id)
            if upg is None or upg.effect is None:
                if upg is None:
                    log.debug("Ignoring unknown purchased upgrade %r", upgrade_id)
                continue
            effect = upg.effect
            if effect.type is EffectType.MULTIPLIER:
                slot = effect.target
            elif effect.type is EffectType.SURVIVAL_MODIFIER:
                slot = f"{effect.target}.{effect.attribute or 'decayRate'}"
            elif effect.type is EffectType.EXPLORATION_MODIFIER:
                slot = effect.attribute or "efficiency"
            else:
                continue
            if not slot:
                continue
            bucket = factors.setdefault(effect.type, {})
            bucket[slot] = bucket.get(slot, 1.0) * effect.value

        resolved = {kind: MappingProxyType(values) for kind, values in factors.items()}
        self._cache[key] = resolved
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return resolved
