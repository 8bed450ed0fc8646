"""Player actions.

Every handler takes the current ``GameState`` plus the static ``GameData`` and
returns the next state. A rejected action returns the *same* object it was
given, so callers can tell "nothing happened" apart with an identity check.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional

from .effects import EffectResolver
from .game_data import GameData, default_state
from .ledger import (
    find_resource,
    has_enough_resource,
    has_enough_resources,
    update_multiple_resources,
    update_resource_amount,
    update_survival_need,
)
from .models import ActiveExpedition, Campfire, GameState, Producer
from .settings import GameSettings
from .unlocks import apply_discoveries

log = logging.getLogger("idlewild.actions")


def _settings(game_data: GameData, settings: Optional[GameSettings]) -> GameSettings:
    return settings if settings is not None else game_data.settings


def producer_cost(producer: Producer, rounding: str = "ceil") -> float:
    """Price of the next unit: ``baseCost * growth ** count`` rounded to a whole number."""

    raw = producer.base_cost * producer.growth ** producer.count
    if rounding == "floor":
        return float(math.floor(raw))
    return float(math.ceil(raw))


def click_gather(
    state: GameState, game_data: GameData, resource_id: str, amount: float = 1.0
) -> GameState:
    if amount <= 0 or find_resource(state.resources, resource_id) is None:
        log.debug("Rejected gather of %r x%s", resource_id, amount)
        return state
    return replace(
        state, resources=update_resource_amount(state.resources, resource_id, amount, True)
    )


def forage(state: GameState, game_data: GameData, activity_id: str) -> GameState:
    activity = game_data.forage_activity(activity_id)
    if activity is None:
        log.debug("Unknown forage activity %r", activity_id)
        return state
    return click_gather(state, game_data, activity.resource, activity.base_amount)


def buy_producer(
    state: GameState,
    game_data: GameData,
    producer_id: str,
    *,
    settings: Optional[GameSettings] = None,
) -> GameState:
    settings = _settings(game_data, settings)
    producer = next((p for p in state.producers if p.id == producer_id), None)
    if producer is None:
        return state

    cost = producer_cost(producer, settings.cost_rounding)
    cost_resource = producer.cost_resource or settings.default_cost_resource
    if not has_enough_resource(state.resources, cost_resource, cost):
        return state

    bought = replace(
        state,
        resources=update_resource_amount(state.resources, cost_resource, -cost),
        producers=tuple(
            replace(p, count=p.count + 1, discovered=True) if p.id == producer_id else p
            for p in state.producers
        ),
    )
    log.debug("Bought %s for %s %s", producer_id, cost, cost_resource)
    return apply_discoveries(bought, game_data.upgrades)[0]


def purchase_upgrade(state: GameState, game_data: GameData, upgrade_id: str) -> GameState:
    upgrade = game_data.upgrade(upgrade_id)
    if upgrade is None or not upgrade.cost_resource:
        return state
    if upgrade_id in state.upgrades_purchased:
        return state
    if not has_enough_resource(state.resources, upgrade.cost_resource, upgrade.cost):
        return state

    discovered = state.upgrades_discovered
    if upgrade_id not in discovered:
        discovered = discovered + (upgrade_id,)
    bought = replace(
        state,
        resources=update_resource_amount(state.resources, upgrade.cost_resource, -upgrade.cost),
        upgrades_purchased=state.upgrades_purchased + (upgrade_id,),
        upgrades_discovered=discovered,
    )
    log.debug("Purchased upgrade %s", upgrade_id)
    return apply_discoveries(bought, game_data.upgrades)[0]


def light_campfire(
    state: GameState, game_data: GameData, *, settings: Optional[GameSettings] = None
) -> GameState:
    settings = _settings(game_data, settings)
    resource_id = settings.light_cost_resource
    if not has_enough_resource(state.resources, resource_id, settings.light_cost_amount):
        return state

    fire: Campfire = state.survival.campfire
    fuel = min(fire.max_fuel, fire.fuel + settings.light_fuel_amount)
    if fuel <= 0:
        return state
    return replace(
        state,
        resources=update_resource_amount(state.resources, resource_id, -settings.light_cost_amount),
        survival=replace(state.survival, campfire=replace(fire, lit=True, fuel=fuel)),
    )


def start_expedition(
    state: GameState,
    game_data: GameData,
    expedition_id: str,
    *,
    effects: Optional[EffectResolver] = None,
) -> GameState:
    if state.active_expedition is not None:
        return state
    expedition = next((e for e in state.expeditions if e.id == expedition_id), None)
    if expedition is None or not expedition.discovered or expedition.duration <= 0:
        return state

    resolver = effects if effects is not None else EffectResolver(game_data.upgrades)
    efficiency = resolver.exploration_efficiency(state.upgrades_purchased)
    costs = [(cost.resource_id, cost.amount * efficiency) for cost in expedition.costs]
    if not has_enough_resources(state.resources, costs):
        return state

    resources = state.resources
    if costs:
        # update_multiple_resources marks everything it touches as discovered;
        # the costs were affordable so those resources already are.
        resources = update_multiple_resources(resources, [(rid, -amount) for rid, amount in costs])
    active = ActiveExpedition(
        expedition_id=expedition.id,
        time_remaining=expedition.duration,
        total_time=expedition.duration,
    )
    log.debug("Expedition %s started for %ss", expedition.id, expedition.duration)
    return replace(
        state,
        resources=resources,
        survival=replace(state.survival, active_expedition=active),
    )


def consume_resource(
    state: GameState,
    game_data: GameData,
    resource_id: str,
    amount: float = 1.0,
    *,
    settings: Optional[GameSettings] = None,
) -> GameState:
    settings = _settings(game_data, settings)
    if amount <= 0 or not has_enough_resource(state.resources, resource_id, amount):
        return state

    survival = state.survival
    restores = settings.consumable_for(resource_id)
    if restores is not None:
        need_id, per_unit = restores
        survival = replace(
            survival, needs=update_survival_need(survival.needs, need_id, amount * per_unit)
        )
    return replace(
        state,
        resources=update_resource_amount(state.resources, resource_id, -amount),
        survival=survival,
    )


def reset_state(state: GameState, game_data: GameData, now_ms: int = 0) -> GameState:
    """Start over from the configured defaults. ``state`` is ignored."""

    return default_state(game_data, now_ms)
