"""Discovery rules for upgrades and expeditions."""

from __future__ import annotations

from dataclasses import replace
from typing import Collection, Iterable, List, Optional, Protocol, Sequence, Tuple

from .data_schema import UnlockType
from .models import GameState, Producer, Resource, Unlock


class Unlockable(Protocol):
    id: str
    unlock: Optional[Unlock]


def meets_unlock(
    unlock: Unlock,
    resources: Sequence[Resource],
    purchased: Collection[str],
    producers: Sequence[Producer] = (),
) -> bool:
    unlock_type = UnlockType.parse(unlock.type)
    if unlock_type is UnlockType.RESOURCE:
        res = next((r for r in resources if r.id == unlock.id), None)
        if res is None:
            return False
        return unlock.amount is None or res.amount >= unlock.amount
    if unlock_type is UnlockType.PRODUCER:
        producer = next((p for p in producers if p.id == unlock.id), None)
        if producer is None:
            return False
        return unlock.count is None or producer.count >= unlock.count
    if unlock_type is UnlockType.UPGRADE:
        return unlock.id in purchased
    # colonist/campfire and unknown tags are never satisfied.
    return False


def evaluate_unlocks(
    candidates: Iterable[Unlockable],
    resources: Sequence[Resource],
    discovered: Collection[str],
    purchased: Collection[str],
    producers: Sequence[Producer] = (),
    *,
    owned: Optional[Collection[str]] = None,
) -> List[str]:
    """Return ids of candidates whose unlock condition newly holds, in config order.

    Candidates in ``owned`` (the purchased set unless given) or in ``discovered``
    are skipped, so a second call with the merged result returns nothing.
    """

    owned = purchased if owned is None else owned
    newly: List[str] = []
    for entry in candidates:
        if entry.id in owned or entry.id in discovered or entry.id in newly:
            continue
        if entry.unlock is None:
            continue
        if meets_unlock(entry.unlock, resources, purchased, producers):
            newly.append(entry.id)
    return newly


def evaluate_upgrade_unlocks(upgrades: Iterable[Unlockable], state: GameState) -> List[str]:
    return evaluate_unlocks(
        upgrades,
        state.resources,
        set(state.upgrades_discovered),
        set(state.upgrades_purchased),
        state.producers,
    )


def evaluate_expedition_unlocks(state: GameState) -> List[str]:
    discovered = {exp.id for exp in state.expeditions if exp.discovered}
    return evaluate_unlocks(
        state.expeditions,
        state.resources,
        discovered,
        set(state.upgrades_purchased),
        state.producers,
        owned=(),
    )


def apply_discoveries(
    state: GameState, upgrades: Iterable[Unlockable]
) -> Tuple[GameState, List[str], List[str]]:
    """Merge newly unlocked upgrades and expeditions into ``state``.

    Returns the new state along with the upgrade ids and expedition ids that
    were discovered by this call. ``state`` is returned as-is when nothing new
    unlocked.
    """

    new_upgrades = evaluate_upgrade_unlocks(upgrades, state)
    new_expeditions = evaluate_expedition_unlocks(state)
    if not new_upgrades and not new_expeditions:
        return state, [], []

    fresh = set(new_expeditions)
    return (
        replace(
            state,
            upgrades_discovered=state.upgrades_discovered + tuple(new_upgrades),
            expeditions=tuple(
                replace(exp, discovered=True) if exp.id in fresh else exp
                for exp in state.expeditions
            ),
        ),
        new_upgrades,
        new_expeditions,
    )
