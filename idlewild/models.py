"""Immutable game state records and their JSON document codecs.

Every record is a frozen dataclass; ``GameState`` holds tuples of records so a
snapshot can be handed to a renderer without copying. Documents use the
camelCase keys of the save format. Keys a record does not model are kept in
``extras`` and written back unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

Extras = Dict[str, Any]


def _split(data: Mapping[str, Any], known: Iterable[str]) -> Extras:
    known_keys = set(known)
    return {key: value for key, value in data.items() if key not in known_keys}


def _float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _with_extras(extras: Extras, payload: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(extras)
    merged.update(payload)
    return merged


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    amount: float = 0.0
    discovered: bool = False
    category: Optional[str] = None
    description: Optional[str] = None
    extras: Extras = field(default_factory=dict)

    _KEYS = ("id", "name", "amount", "discovered", "category", "description")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Resource":
        rid = str(data["id"])
        return cls(
            id=rid,
            name=str(data.get("name") or rid),
            amount=_float(data.get("amount")),
            discovered=bool(data.get("discovered", False)),
            category=_optional_str(data.get("category")),
            description=_optional_str(data.get("description")),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            _drop_none(
                {
                    "id": self.id,
                    "name": self.name,
                    "amount": self.amount,
                    "discovered": self.discovered,
                    "category": self.category,
                    "description": self.description,
                }
            ),
        )


@dataclass(frozen=True)
class Producer:
    id: str
    name: str
    resource: str
    count: int = 0
    base_cost: float = 0.0
    cost_resource: Optional[str] = None
    growth: float = 1.15
    power: float = 0.0
    discovered: bool = False
    description: Optional[str] = None
    extras: Extras = field(default_factory=dict)

    _KEYS = (
        "id",
        "name",
        "resource",
        "count",
        "baseCost",
        "costResource",
        "growth",
        "power",
        "discovered",
        "description",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Producer":
        pid = str(data["id"])
        return cls(
            id=pid,
            name=str(data.get("name") or pid),
            resource=str(data.get("resource", "")),
            count=max(_int(data.get("count")), 0),
            base_cost=_float(data.get("baseCost")),
            cost_resource=_optional_str(data.get("costResource")),
            growth=_float(data.get("growth"), 1.15),
            power=_float(data.get("power")),
            discovered=bool(data.get("discovered", False)),
            description=_optional_str(data.get("description")),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            _drop_none(
                {
                    "id": self.id,
                    "name": self.name,
                    "resource": self.resource,
                    "count": self.count,
                    "baseCost": self.base_cost,
                    "costResource": self.cost_resource,
                    "growth": self.growth,
                    "power": self.power,
                    "discovered": self.discovered,
                    "description": self.description,
                }
            ),
        )


@dataclass(frozen=True)
class SurvivalNeed:
    id: str
    name: str
    current: float
    max: float = 100.0
    decay_rate: float = 0.0
    critical_threshold: float = 0.0
    extras: Extras = field(default_factory=dict)

    _KEYS = ("id", "name", "current", "max", "decayRate", "criticalThreshold")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SurvivalNeed":
        nid = str(data["id"])
        maximum = max(_float(data.get("max"), 100.0), 0.0)
        current = _float(data.get("current"), maximum)
        return cls(
            id=nid,
            name=str(data.get("name") or nid),
            current=max(0.0, min(maximum, current)),
            max=maximum,
            decay_rate=_float(data.get("decayRate")),
            critical_threshold=_float(data.get("criticalThreshold")),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            {
                "id": self.id,
                "name": self.name,
                "current": self.current,
                "max": self.max,
                "decayRate": self.decay_rate,
                "criticalThreshold": self.critical_threshold,
            },
        )


@dataclass(frozen=True)
class Campfire:
    lit: bool = False
    fuel: float = 0.0
    max_fuel: float = 100.0
    warmth_per_tick: float = 2.0
    extras: Extras = field(default_factory=dict)

    _KEYS = ("lit", "fuel", "maxFuel", "warmthPerTick")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Campfire":
        max_fuel = max(_float(data.get("maxFuel"), 100.0), 0.0)
        fuel = max(0.0, min(max_fuel, _float(data.get("fuel"))))
        return cls(
            lit=bool(data.get("lit", False)) and fuel > 0,
            fuel=fuel,
            max_fuel=max_fuel,
            warmth_per_tick=_float(data.get("warmthPerTick"), 2.0),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            {
                "lit": self.lit,
                "fuel": self.fuel,
                "maxFuel": self.max_fuel,
                "warmthPerTick": self.warmth_per_tick,
            },
        )


@dataclass(frozen=True)
class Colonist:
    id: str
    name: str
    health: float = 100.0
    morale: float = 100.0
    skills: Dict[str, float] = field(default_factory=dict)
    conditions: Tuple[str, ...] = ()
    extras: Extras = field(default_factory=dict)

    _KEYS = ("id", "name", "health", "morale", "skills", "conditions")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Colonist":
        cid = str(data["id"])
        skills = data.get("skills")
        conditions = data.get("conditions")
        return cls(
            id=cid,
            name=str(data.get("name") or cid),
            health=_float(data.get("health"), 100.0),
            morale=_float(data.get("morale"), 100.0),
            skills={str(k): _float(v) for k, v in skills.items()} if isinstance(skills, Mapping) else {},
            conditions=tuple(str(c) for c in conditions) if isinstance(conditions, list) else (),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            {
                "id": self.id,
                "name": self.name,
                "health": self.health,
                "morale": self.morale,
                "skills": dict(self.skills),
                "conditions": list(self.conditions),
            },
        )


@dataclass(frozen=True)
class Cost:
    resource_id: str
    amount: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cost":
        return cls(resource_id=str(data["resourceId"]), amount=_float(data.get("amount")))

    def to_dict(self) -> Dict[str, Any]:
        return {"resourceId": self.resource_id, "amount": self.amount}


@dataclass(frozen=True)
class Reward:
    resource_id: str
    min: int
    max: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reward":
        low = _int(data.get("min"))
        high = _int(data.get("max"), low)
        return cls(resource_id=str(data["resourceId"]), min=low, max=max(low, high))

    def to_dict(self) -> Dict[str, Any]:
        return {"resourceId": self.resource_id, "min": self.min, "max": self.max}


@dataclass(frozen=True)
class Unlock:
    """Discovery condition; ``type`` keeps the authored tag for round-tripping."""

    type: str
    id: Optional[str] = None
    amount: Optional[float] = None
    count: Optional[int] = None
    extras: Extras = field(default_factory=dict)

    _KEYS = ("type", "id", "amount", "count")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Unlock":
        amount = data.get("amount")
        count = data.get("count")
        return cls(
            type=str(data.get("type", "")),
            id=_optional_str(data.get("id")),
            amount=_float(amount) if amount is not None else None,
            count=_int(count) if count is not None else None,
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            _drop_none({"type": self.type, "id": self.id, "amount": self.amount, "count": self.count}),
        )


@dataclass(frozen=True)
class Expedition:
    id: str
    name: str
    desc: str = ""
    duration: int = 0
    costs: Tuple[Cost, ...] = ()
    drain: Optional[Dict[str, float]] = None
    rewards: Tuple[Reward, ...] = ()
    unlock: Optional[Unlock] = None
    discovered: bool = False
    extras: Extras = field(default_factory=dict)

    _KEYS = ("id", "name", "desc", "duration", "costs", "drain", "rewards", "unlock", "discovered")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Expedition":
        eid = str(data["id"])
        drain = data.get("drain")
        unlock = data.get("unlock")
        return cls(
            id=eid,
            name=str(data.get("name") or eid),
            desc=str(data.get("desc") or ""),
            duration=max(_int(data.get("duration")), 0),
            costs=tuple(Cost.from_dict(c) for c in data.get("costs") or [] if isinstance(c, Mapping)),
            drain={str(k): _float(v) for k, v in drain.items()} if isinstance(drain, Mapping) else None,
            rewards=tuple(
                Reward.from_dict(r) for r in data.get("rewards") or [] if isinstance(r, Mapping)
            ),
            unlock=Unlock.from_dict(unlock) if isinstance(unlock, Mapping) else None,
            discovered=bool(data.get("discovered", unlock is None)),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            _drop_none(
                {
                    "id": self.id,
                    "name": self.name,
                    "desc": self.desc,
                    "duration": self.duration,
                    "costs": [c.to_dict() for c in self.costs],
                    "drain": dict(self.drain) if self.drain is not None else None,
                    "rewards": [r.to_dict() for r in self.rewards],
                    "unlock": self.unlock.to_dict() if self.unlock is not None else None,
                    "discovered": self.discovered,
                }
            ),
        )


@dataclass(frozen=True)
class ActiveExpedition:
    expedition_id: Optional[str]
    time_remaining: int
    total_time: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActiveExpedition":
        total = max(_int(data.get("totalTime")), 1)
        remaining = max(0, min(total, _int(data.get("timeRemaining"))))
        return cls(
            expedition_id=_optional_str(data.get("expeditionId")),
            time_remaining=remaining,
            total_time=total,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expeditionId": self.expedition_id,
            "timeRemaining": self.time_remaining,
            "totalTime": self.total_time,
        }


@dataclass(frozen=True)
class Survival:
    needs: Tuple[SurvivalNeed, ...] = ()
    colonists: Tuple[Colonist, ...] = ()
    campfire: Campfire = field(default_factory=Campfire)
    active_expedition: Optional[ActiveExpedition] = None
    extras: Extras = field(default_factory=dict)

    _KEYS = ("needs", "colonists", "campfire", "activeExpedition")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Survival":
        campfire = data.get("campfire")
        active = data.get("activeExpedition")
        return cls(
            needs=tuple(
                SurvivalNeed.from_dict(n) for n in data.get("needs") or [] if isinstance(n, Mapping)
            ),
            colonists=tuple(
                Colonist.from_dict(c) for c in data.get("colonists") or [] if isinstance(c, Mapping)
            ),
            campfire=Campfire.from_dict(campfire) if isinstance(campfire, Mapping) else Campfire(),
            active_expedition=ActiveExpedition.from_dict(active)
            if isinstance(active, Mapping)
            else None,
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            {
                "needs": [n.to_dict() for n in self.needs],
                "colonists": [c.to_dict() for c in self.colonists],
                "campfire": self.campfire.to_dict(),
                "activeExpedition": self.active_expedition.to_dict()
                if self.active_expedition is not None
                else None,
            },
        )


@dataclass(frozen=True)
class GameState:
    resources: Tuple[Resource, ...] = ()
    producers: Tuple[Producer, ...] = ()
    expeditions: Tuple[Expedition, ...] = ()
    upgrades_purchased: Tuple[str, ...] = ()
    upgrades_discovered: Tuple[str, ...] = ()
    survival: Survival = field(default_factory=Survival)
    last_saved: int = 0
    extras: Extras = field(default_factory=dict)

    _KEYS = (
        "resources",
        "producers",
        "expeditions",
        "upgradesPurchased",
        "upgradesDiscovered",
        "survival",
        "lastSaved",
    )

    @property
    def active_expedition(self) -> Optional[ActiveExpedition]:
        return self.survival.active_expedition

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameState":
        survival = data.get("survival")
        return cls(
            resources=tuple(
                Resource.from_dict(r) for r in data.get("resources") or [] if isinstance(r, Mapping)
            ),
            producers=tuple(
                Producer.from_dict(p) for p in data.get("producers") or [] if isinstance(p, Mapping)
            ),
            expeditions=tuple(
                Expedition.from_dict(e)
                for e in data.get("expeditions") or []
                if isinstance(e, Mapping)
            ),
            upgrades_purchased=_unique_ids(data.get("upgradesPurchased")),
            upgrades_discovered=_unique_ids(data.get("upgradesDiscovered")),
            survival=Survival.from_dict(survival) if isinstance(survival, Mapping) else Survival(),
            last_saved=_int(data.get("lastSaved")),
            extras=_split(data, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_extras(
            self.extras,
            {
                "resources": [r.to_dict() for r in self.resources],
                "producers": [p.to_dict() for p in self.producers],
                "expeditions": [e.to_dict() for e in self.expeditions],
                "upgradesPurchased": list(self.upgrades_purchased),
                "upgradesDiscovered": list(self.upgrades_discovered),
                "survival": self.survival.to_dict(),
                "lastSaved": self.last_saved,
            },
        )


def _unique_ids(value: Any) -> Tuple[str, ...]:
    seen = []
    for entry in value or []:
        if isinstance(entry, str) and entry not in seen:
            seen.append(entry)
    return tuple(seen)
