"""Static game definitions loaded once per session."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .data_schema import EffectType, UnlockType
from .models import (
    Campfire,
    Colonist,
    Expedition,
    GameState,
    Producer,
    Resource,
    Survival,
    SurvivalNeed,
    Unlock,
)
from .schema import validate_game_data
from .settings import GameSettings

DEFAULT_GAME_DATA_PATH = Path(__file__).resolve().parent / "data" / "game_data.json"


@dataclass(frozen=True)
class Effect:
    type: EffectType
    target: Optional[str]
    value: float
    attribute: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Effect":
        target = data.get("target")
        attribute = data.get("attribute")
        return cls(
            type=EffectType.parse(data.get("type")),
            target=target if isinstance(target, str) else None,
            value=float(data.get("value", 1.0)),
            attribute=attribute if isinstance(attribute, str) else None,
        )


@dataclass(frozen=True)
class Upgrade:
    id: str
    name: str
    desc: str
    cost: float
    cost_resource: Optional[str]
    effect: Optional[Effect]
    unlock: Optional[Unlock] = None

    @property
    def unlock_type(self) -> Optional[UnlockType]:
        if self.unlock is None:
            return None
        return UnlockType.parse(self.unlock.type)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Upgrade":
        effect = data.get("effect")
        unlock = data.get("unlock")
        cost_resource = data.get("costResource")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            desc=str(data.get("desc") or ""),
            cost=float(data.get("cost", 0)),
            cost_resource=cost_resource if isinstance(cost_resource, str) and cost_resource else None,
            effect=Effect.from_dict(effect) if isinstance(effect, Mapping) else None,
            unlock=Unlock.from_dict(unlock) if isinstance(unlock, Mapping) else None,
        )


@dataclass(frozen=True)
class ForageActivity:
    id: str
    name: str
    resource: str
    base_amount: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ForageActivity":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            resource=str(data["resource"]),
            base_amount=float(data.get("baseAmount", 0)),
        )


@dataclass(frozen=True)
class GameData:
    """Parsed, validated game definitions. Never mutated after loading."""

    resources: Tuple[Resource, ...] = ()
    producers: Tuple[Producer, ...] = ()
    upgrades: Tuple[Upgrade, ...] = ()
    expeditions: Tuple[Expedition, ...] = ()
    needs: Tuple[SurvivalNeed, ...] = ()
    colonists: Tuple[Colonist, ...] = ()
    campfire: Campfire = field(default_factory=Campfire)
    foraging: Tuple[ForageActivity, ...] = ()
    settings: GameSettings = field(default_factory=GameSettings)

    def upgrade(self, upgrade_id: str) -> Optional[Upgrade]:
        for upg in self.upgrades:
            if upg.id == upgrade_id:
                return upg
        return None

    def expedition(self, expedition_id: Optional[str]) -> Optional[Expedition]:
        for exp in self.expeditions:
            if exp.id == expedition_id:
                return exp
        return None

    def forage_activity(self, activity_id: str) -> Optional[ForageActivity]:
        for activity in self.foraging:
            if activity.id == activity_id:
                return activity
        return None


def _raise_game_data_validation(errors):
    raise ValueError("Invalid game data:\n- " + "\n- ".join(errors))


def parse_game_data(data: Any) -> GameData:
    if not isinstance(data, Mapping):
        _raise_game_data_validation(["Game data must be a JSON object."])
    errors = validate_game_data(data)
    if errors:
        _raise_game_data_validation(errors)

    survival = data.get("survival") or {}
    campfire = survival.get("campfire")
    return GameData(
        resources=tuple(Resource.from_dict(r) for r in data.get("resources") or []),
        producers=tuple(Producer.from_dict(p) for p in data.get("producers") or []),
        upgrades=tuple(Upgrade.from_dict(u) for u in data.get("upgrades") or []),
        expeditions=tuple(Expedition.from_dict(e) for e in data.get("expeditions") or []),
        needs=tuple(SurvivalNeed.from_dict(n) for n in survival.get("needs") or []),
        colonists=tuple(Colonist.from_dict(c) for c in survival.get("colonists") or []),
        campfire=Campfire.from_dict(campfire) if isinstance(campfire, Mapping) else Campfire(),
        foraging=tuple(ForageActivity.from_dict(f) for f in survival.get("foraging") or []),
        settings=GameSettings.from_dict(data.get("settings")),
    )


def load_game_data(path: Path | str = DEFAULT_GAME_DATA_PATH) -> GameData:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    return parse_game_data(data)


def default_state(game_data: GameData, now_ms: int = 0) -> GameState:
    """Fresh new-game state built from the config defaults."""

    return GameState(
        resources=game_data.resources,
        producers=game_data.producers,
        expeditions=tuple(
            replace(exp, discovered=exp.discovered or exp.unlock is None)
            for exp in game_data.expeditions
        ),
        upgrades_purchased=(),
        upgrades_discovered=(),
        survival=Survival(
            needs=game_data.needs,
            colonists=game_data.colonists,
            campfire=game_data.campfire,
            active_expedition=None,
        ),
        last_saved=int(now_ms),
    )
