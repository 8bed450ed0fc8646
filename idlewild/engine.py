"""Simulation engine: the per-second tick and the load-time offline catch-up."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from .effects import EffectResolver
from .events import EventKind, GameEvent
from .game_data import GameData
from .ledger import (
    set_survival_need,
    update_multiple_survival_needs,
    update_resource_amount,
    update_survival_need,
)
from .models import Expedition, GameState, Producer, Resource, Survival
from .settings import GameSettings
from .timekeeping import offline_seconds
from .unlocks import apply_discoveries

log = logging.getLogger("idlewild.engine")

EventSink = Callable[[GameEvent], None]

WARMTH_NEED = "warmth"


class SimulationEngine:
    """Produce the next ``GameState`` from the previous one.

    The engine never mutates a snapshot. Each tick runs its phases in a fixed
    order (expedition, campfire, production, discovery) and every phase reads
    the output of the one before it.
    """

    def __init__(
        self,
        game_data: GameData,
        settings: Optional[GameSettings] = None,
        *,
        rng: Optional[random.Random] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self.game_data = game_data
        self.settings = (settings or game_data.settings).copy()
        self.rng = rng or random.Random()
        self.events = events
        self.effects = EffectResolver(game_data.upgrades, self.settings.effect_cache_size)

    # ---------- Public API ----------
    def tick(self, state: GameState) -> GameState:
        if not state.producers:
            return state

        purchased = state.upgrades_purchased
        multipliers = self.effects.multipliers(purchased)

        resources, survival = self._advance_expedition(
            state.resources, state.survival, state.expeditions, purchased
        )
        survival = self._burn_campfire(survival)
        resources = self._produce(resources, state.producers, multipliers, 1)
        return self.discover(replace(state, resources=resources, survival=survival))

    def offline_catchup(self, state: GameState, now: int) -> GameState:
        """Fast-forward production and need decay for the time the game was closed.

        Expeditions and the campfire are left exactly where they were; they
        only advance on live ticks.
        """

        if state.last_saved <= 0:
            return state
        dt = offline_seconds(now, state.last_saved, max_seconds=self.settings.max_offline_seconds)
        if dt <= 0:
            return state

        purchased = state.upgrades_purchased
        needs = state.survival.needs
        for need in state.survival.needs:
            decay = need.decay_rate * self.effects.survival_modifier(purchased, need.id) * dt
            floor = need.critical_threshold + self.settings.offline_safety_padding
            needs = set_survival_need(needs, need.id, max(floor, need.current - decay))

        resources = self._produce(
            state.resources, state.producers, self.effects.multipliers(purchased), dt
        )
        self._emit(
            EventKind.OFFLINE_PROGRESS,
            f"While you were away {dt} seconds passed.",
            seconds=dt,
        )
        caught_up = replace(
            state,
            resources=resources,
            survival=replace(state.survival, needs=needs),
            last_saved=int(now),
        )
        return self.discover(caught_up)

    def discover(self, state: GameState) -> GameState:
        """Merge newly unlocked upgrades and expeditions into ``state``."""

        state, new_upgrades, new_expeditions = apply_discoveries(state, self.game_data.upgrades)
        for upgrade_id in new_upgrades:
            upg = self.game_data.upgrade(upgrade_id)
            name = upg.name if upg is not None else upgrade_id
            self._emit(EventKind.UPGRADE_DISCOVERED, f"New upgrade available: {name}.", id=upgrade_id)
        for exp in state.expeditions:
            if exp.id in new_expeditions:
                self._emit(
                    EventKind.EXPEDITION_DISCOVERED,
                    f"New expedition available: {exp.name}.",
                    id=exp.id,
                )
        return state

    # ---------- Tick phases ----------
    def _advance_expedition(
        self,
        resources: Tuple[Resource, ...],
        survival: Survival,
        expeditions: Sequence[Expedition],
        purchased: Sequence[str],
    ) -> Tuple[Tuple[Resource, ...], Survival]:
        active = survival.active_expedition
        if active is None:
            return resources, survival

        expedition = next((e for e in expeditions if e.id == active.expedition_id), None)
        needs = survival.needs
        remaining = active.time_remaining
        if remaining > 0:
            remaining -= 1
            needs = update_multiple_survival_needs(needs, self._drain(expedition, purchased))

        depleted = next((need for need in needs if need.current <= 0), None)
        if depleted is not None:
            self._emit(
                EventKind.EXPEDITION_FAILED,
                f"The expedition was abandoned: {depleted.name.lower()} ran out.",
                expedition_id=active.expedition_id,
                need=depleted.id,
            )
            return resources, replace(survival, needs=needs, active_expedition=None)

        if remaining <= 0:
            resources, found = self._roll_rewards(resources, expedition)
            name = expedition.name if expedition is not None else "expedition"
            self._emit(
                EventKind.EXPEDITION_COMPLETED,
                f"The {name} returned.",
                expedition_id=active.expedition_id,
                rewards=found,
            )
            return resources, replace(survival, needs=needs, active_expedition=None)

        return resources, replace(
            survival, needs=needs, active_expedition=replace(active, time_remaining=remaining)
        )

    def _drain(
        self, expedition: Optional[Expedition], purchased: Sequence[str]
    ) -> List[Tuple[str, float]]:
        if expedition is not None and expedition.drain is not None:
            drain: Mapping[str, float] = expedition.drain
        else:
            drain = self.settings.expedition_drain
        efficiency = self.effects.exploration_efficiency(purchased)
        return [
            (need_id, -amount * efficiency * self.effects.survival_modifier(purchased, need_id))
            for need_id, amount in drain.items()
            if amount
        ]

    def _roll_rewards(
        self, resources: Tuple[Resource, ...], expedition: Optional[Expedition]
    ) -> Tuple[Tuple[Resource, ...], dict]:
        found: dict = {}
        if expedition is None:
            return resources, found
        for reward in expedition.rewards:
            amount = math.floor(self.rng.random() * (reward.max - reward.min + 1)) + reward.min
            if amount <= 0:
                continue
            resources = update_resource_amount(resources, reward.resource_id, amount, True)
            found[reward.resource_id] = found.get(reward.resource_id, 0) + amount
        return resources, found

    def _burn_campfire(self, survival: Survival) -> Survival:
        fire = survival.campfire
        if not fire.lit:
            return survival
        if fire.fuel <= 0:
            return replace(survival, campfire=replace(fire, lit=False, fuel=0.0))

        fuel = max(0.0, fire.fuel - self.settings.fuel_drain_per_tick)
        needs = update_survival_need(survival.needs, WARMTH_NEED, fire.warmth_per_tick)
        lit = fuel > 0
        if not lit:
            self._emit(EventKind.CAMPFIRE_OUT, "The campfire has burned out.")
        return replace(survival, needs=needs, campfire=replace(fire, fuel=fuel, lit=lit))

    def _produce(
        self,
        resources: Tuple[Resource, ...],
        producers: Iterable[Producer],
        multipliers: Mapping[str, float],
        seconds: int,
    ) -> Tuple[Resource, ...]:
        for producer in producers:
            if producer.count <= 0:
                continue
            output = producer.count * producer.power * multipliers.get(producer.id, 1.0) * seconds
            if output > 0:
                resources = update_resource_amount(resources, producer.resource, output, True)
        return resources

    def _emit(self, kind: EventKind, message: str, **data) -> None:
        log.debug("%s: %s", kind.value, message)
        if self.events is not None:
            self.events(GameEvent(kind=kind, message=message, data=data))
