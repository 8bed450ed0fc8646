import copy
import random
from dataclasses import replace
from typing import Any, Dict

import pytest

from idlewild.game_data import GameData, default_state, parse_game_data
from idlewild.models import GameState

BASE_DATA: Dict[str, Any] = {
    "resources": [
        {"id": "materials", "name": "Materials", "amount": 0, "discovered": True},
        {"id": "food", "name": "Food", "amount": 10, "discovered": True},
        {"id": "water", "name": "Water", "amount": 10, "discovered": True},
        {"id": "wood", "name": "Wood", "amount": 0, "discovered": False},
    ],
    "producers": [
        {
            "id": "miner",
            "name": "Miner",
            "resource": "materials",
            "count": 0,
            "baseCost": 10,
            "costResource": "materials",
            "growth": 1.15,
            "power": 1,
        },
        {
            "id": "logger",
            "name": "Logger",
            "resource": "wood",
            "count": 0,
            "baseCost": 20,
            "growth": 1.2,
            "power": 0.5,
        },
    ],
    "upgrades": [
        {
            "id": "sharp_picks",
            "name": "Sharp Picks",
            "desc": "Miners produce twice as much.",
            "cost": 100,
            "costResource": "materials",
            "effect": {"type": "multiplier", "target": "miner", "value": 2},
            "unlock": {"type": "resource", "id": "materials", "amount": 50},
        },
        {
            "id": "jerky",
            "name": "Jerky",
            "desc": "Hunger drains half as fast.",
            "cost": 5,
            "costResource": "food",
            "effect": {
                "type": "survival_modifier",
                "target": "hunger",
                "attribute": "decayRate",
                "value": 0.5,
            },
            "unlock": {"type": "producer", "id": "miner", "count": 1},
        },
        {
            "id": "maps",
            "name": "Maps",
            "desc": "Expeditions are cheaper.",
            "cost": 5,
            "costResource": "materials",
            "effect": {"type": "exploration_modifier", "attribute": "efficiency", "value": 0.5},
            "unlock": {"type": "upgrade", "id": "sharp_picks"},
        },
        {
            "id": "bunkhouse",
            "name": "Bunkhouse",
            "desc": "Needs a colonist first.",
            "cost": 1,
            "costResource": "materials",
            "effect": {"type": "multiplier", "target": "logger", "value": 3},
            "unlock": {"type": "colonist", "id": "builder"},
        },
    ],
    "expeditions": [
        {
            "id": "scout",
            "name": "Scout",
            "desc": "A quick look around.",
            "duration": 3,
            "costs": [
                {"resourceId": "food", "amount": 2},
                {"resourceId": "water", "amount": 2},
            ],
            "rewards": [{"resourceId": "materials", "min": 5, "max": 5}],
        },
        {
            "id": "deep_woods",
            "name": "Deep Woods",
            "desc": "Far from camp.",
            "duration": 5,
            "costs": [{"resourceId": "food", "amount": 4}],
            "drain": {"hunger": 10, "thirst": 10},
            "rewards": [{"resourceId": "wood", "min": 2, "max": 6}],
            "unlock": {"type": "producer", "id": "miner", "count": 2},
        },
    ],
    "survival": {
        "needs": [
            {
                "id": "hunger",
                "name": "Hunger",
                "current": 100,
                "max": 100,
                "decayRate": 1,
                "criticalThreshold": 20,
            },
            {
                "id": "thirst",
                "name": "Thirst",
                "current": 100,
                "max": 100,
                "decayRate": 2,
                "criticalThreshold": 20,
            },
            {
                "id": "warmth",
                "name": "Warmth",
                "current": 50,
                "max": 100,
                "decayRate": 0.5,
                "criticalThreshold": 10,
            },
        ],
        "colonists": [{"id": "ada", "name": "Ada", "health": 90, "morale": 70}],
        "campfire": {"lit": False, "fuel": 0, "maxFuel": 100, "warmthPerTick": 2},
        "foraging": [{"id": "berries", "name": "Pick Berries", "resource": "food", "baseAmount": 0.5}],
    },
    "settings": {},
}


def make_data(**overrides: Any) -> Dict[str, Any]:
    data = copy.deepcopy(BASE_DATA)
    data.update(copy.deepcopy(overrides))
    return data


@pytest.fixture
def game_data() -> GameData:
    return parse_game_data(make_data())


@pytest.fixture
def state(game_data: GameData) -> GameState:
    return default_state(game_data, now_ms=1_000_000)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


class FakeClock:
    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def with_amount(state: GameState, resource_id: str, amount: float) -> GameState:
    return replace(
        state,
        resources=tuple(
            replace(r, amount=amount) if r.id == resource_id else r for r in state.resources
        ),
    )


def with_count(state: GameState, producer_id: str, count: int) -> GameState:
    return replace(
        state,
        producers=tuple(
            replace(p, count=count) if p.id == producer_id else p for p in state.producers
        ),
    )


def amount_of(state: GameState, resource_id: str) -> float:
    return next(r.amount for r in state.resources if r.id == resource_id)


def need_of(state: GameState, need_id: str) -> float:
    return next(n.current for n in state.survival.needs if n.id == need_id)
