import pytest

from idlewild.data_schema import EffectType
from idlewild.effects import EffectResolver
from idlewild.game_data import Effect, Upgrade


def upgrade(upgrade_id: str, effect_type: EffectType, target, value: float, attribute=None) -> Upgrade:
    return Upgrade(
        id=upgrade_id,
        name=upgrade_id,
        desc="",
        cost=1,
        cost_resource="materials",
        effect=Effect(type=effect_type, target=target, value=value, attribute=attribute),
    )


UPGRADES = (
    upgrade("picks", EffectType.MULTIPLIER, "miner", 2),
    upgrade("carts", EffectType.MULTIPLIER, "miner", 1.5),
    upgrade("saws", EffectType.MULTIPLIER, "logger", 3),
    upgrade("jerky", EffectType.SURVIVAL_MODIFIER, "hunger", 0.5, "decayRate"),
    upgrade("maps", EffectType.EXPLORATION_MODIFIER, None, 0.8, "efficiency"),
    upgrade("compass", EffectType.EXPLORATION_MODIFIER, None, 0.5, "efficiency"),
)


def test_multipliers_stack_per_target() -> None:
    resolver = EffectResolver(UPGRADES)
    multipliers = resolver.multipliers(["picks", "carts", "saws"])
    assert multipliers["miner"] == pytest.approx(3.0)
    assert multipliers["logger"] == 3
    assert resolver.multiplier(["picks"], "logger") == 1.0


def test_unknown_upgrades_are_ignored() -> None:
    resolver = EffectResolver(UPGRADES)
    assert resolver.multiplier(["ghost", "picks"], "miner") == 2
    assert dict(resolver.multipliers(["ghost"])) == {}


def test_survival_and_exploration_modifiers() -> None:
    resolver = EffectResolver(UPGRADES)
    assert resolver.survival_modifier(["jerky"], "hunger") == 0.5
    assert resolver.survival_modifier(["jerky"], "thirst") == 1.0
    assert resolver.survival_modifier(["jerky"], "hunger", "max") == 1.0
    assert resolver.exploration_efficiency(["maps", "compass"]) == pytest.approx(0.4)
    assert resolver.exploration_efficiency([]) == 1.0


def test_results_are_read_only() -> None:
    resolver = EffectResolver(UPGRADES)
    multipliers = resolver.multipliers(["picks"])
    with pytest.raises(TypeError):
        multipliers["miner"] = 10  # type: ignore[index]


def test_cache_is_bounded_lru() -> None:
    resolver = EffectResolver(UPGRADES, cache_size=2)
    resolver.multipliers(["picks"])
    resolver.multipliers(["saws"])
    resolver.multipliers(["picks"])
    resolver.multipliers(["carts"])
    assert len(resolver) == 2
    assert ("picks",) in resolver._cache
    assert ("saws",) not in resolver._cache

    resolver.clear()
    assert len(resolver) == 0


def test_cache_hit_returns_same_mapping() -> None:
    resolver = EffectResolver(UPGRADES)
    assert resolver.multipliers(["picks", "saws"]) is resolver.multipliers(["picks", "saws"])
