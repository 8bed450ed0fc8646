"""Pure helpers for applying deltas to resources and survival needs.

These are the only functions that change resource amounts or need levels.
Each returns a new tuple and leaves its input untouched; unknown ids are
no-ops. Needs are clamped to ``[0, max]`` on every update.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from .models import Cost, Resource, SurvivalNeed

CostLike = Union[Cost, Tuple[str, float], Mapping[str, float]]


def find_resource(resources: Sequence[Resource], resource_id: str) -> Optional[Resource]:
    for res in resources:
        if res.id == resource_id:
            return res
    return None


def find_need(needs: Sequence[SurvivalNeed], need_id: str) -> Optional[SurvivalNeed]:
    for need in needs:
        if need.id == need_id:
            return need
    return None


def update_resource_amount(
    resources: Sequence[Resource],
    resource_id: str,
    delta: float,
    mark_discovered: bool = False,
) -> Tuple[Resource, ...]:
    return tuple(
        replace(
            res,
            amount=res.amount + delta,
            discovered=res.discovered or mark_discovered,
        )
        if res.id == resource_id
        else res
        for res in resources
    )


def update_multiple_resources(
    resources: Sequence[Resource], updates: Iterable[Tuple[str, float]]
) -> Tuple[Resource, ...]:
    """Apply ``(resource_id, delta)`` pairs; every touched resource is discovered."""

    totals: dict = {}
    for resource_id, delta in updates:
        totals[resource_id] = totals.get(resource_id, 0.0) + delta
    return tuple(
        replace(res, amount=res.amount + totals[res.id], discovered=True)
        if res.id in totals
        else res
        for res in resources
    )


def _cost_pair(cost: CostLike) -> Tuple[str, float]:
    if isinstance(cost, Cost):
        return cost.resource_id, cost.amount
    if isinstance(cost, Mapping):
        return str(cost.get("resourceId") or cost.get("id")), float(cost.get("amount", 0))
    resource_id, amount = cost
    return resource_id, amount


def has_enough_resource(resources: Sequence[Resource], resource_id: str, amount: float) -> bool:
    res = find_resource(resources, resource_id)
    return res is not None and res.amount >= amount


def has_enough_resources(resources: Sequence[Resource], costs: Iterable[CostLike]) -> bool:
    return all(has_enough_resource(resources, *_cost_pair(cost)) for cost in costs)


def _clamp_need(need: SurvivalNeed, value: float) -> float:
    return max(0.0, min(need.max, value))


def update_survival_need(
    needs: Sequence[SurvivalNeed], need_id: str, delta: float
) -> Tuple[SurvivalNeed, ...]:
    return tuple(
        replace(need, current=_clamp_need(need, need.current + delta)) if need.id == need_id else need
        for need in needs
    )


def update_multiple_survival_needs(
    needs: Sequence[SurvivalNeed], updates: Iterable[Tuple[str, float]]
) -> Tuple[SurvivalNeed, ...]:
    result = tuple(needs)
    for need_id, delta in updates:
        result = update_survival_need(result, need_id, delta)
    return result


def set_survival_need(
    needs: Sequence[SurvivalNeed], need_id: str, value: float
) -> Tuple[SurvivalNeed, ...]:
    return tuple(
        replace(need, current=_clamp_need(need, value)) if need.id == need_id else need
        for need in needs
    )
