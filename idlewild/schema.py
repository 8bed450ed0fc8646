"""Shared schema validation utilities for Idlewild game data."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from .data_schema import (
    EFFECT_SPECS,
    KNOWN_UNSUPPORTED_UNLOCKS,
    UNLOCK_SPECS,
    EffectType,
    UnlockType,
    format_validation_message,
    is_non_empty_str,
    is_number,
    path,
)


class ValidationContext:
    """Utility container for accumulating validation errors."""

    def __init__(self) -> None:
        self.errors: List[str] = []

    def add(self, context: str, path_str: str, message: str) -> None:
        self.errors.append(format_validation_message(path_str, context, message))

    def extend_with_path(self, messages: Iterable[str], path_str: str) -> None:
        for message in messages:
            self.errors.append(f"{path_str}: {message}")


def require(condition: bool, context: str, path_str: str, message: str, ctx: ValidationContext) -> None:
    if not condition:
        ctx.add(context, path_str, message)


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, Mapping))


def validate_unlock(
    unlock: Any, context: str, path_parts: Sequence[object], ctx: ValidationContext
) -> None:
    if unlock is None:
        return
    if not isinstance(unlock, Mapping):
        ctx.add(context, path(*path_parts), "unlock must be an object or null.")
        return
    unlock_type = UnlockType.parse(unlock.get("type"))
    spec = UNLOCK_SPECS.get(unlock_type)
    if spec is None:
        # Unsupported unlock tags are legal data; they simply never unlock.
        return
    ctx.extend_with_path(spec.validate(unlock, context), path(*path_parts))


def validate_effect(
    effect: Any, context: str, path_parts: Sequence[object], ctx: ValidationContext
) -> None:
    if not isinstance(effect, Mapping):
        ctx.add(context, path(*path_parts), "effect must be an object.")
        return
    effect_type = EffectType.parse(effect.get("type"))
    spec = EFFECT_SPECS.get(effect_type)
    if spec is None:
        ctx.add(
            context,
            path(*path_parts, "type"),
            f"unsupported effect type '{effect.get('type')}'.",
        )
        return
    ctx.extend_with_path(spec.validate(effect, context), path(*path_parts))


def _validate_entries(
    entries: Any, section: Sequence[object], label: str, ctx: ValidationContext
) -> List[Tuple[int, Mapping[str, Any]]]:
    if entries is None:
        return []
    if not _is_list(entries):
        ctx.add("Game data", path(*section), f"'{section[-1]}' must be a list of {label} objects.")
        return []
    valid: List[Tuple[int, Mapping[str, Any]]] = []
    ids: List[str] = []
    for idx, entry in enumerate(entries, start=1):
        if not isinstance(entry, Mapping):
            ctx.add(f"{label.title()} entry {idx}", path(*section, idx - 1), "must be an object.")
            continue
        entry_id = entry.get("id")
        if not is_non_empty_str(entry_id):
            ctx.add(
                f"{label.title()} entry {idx}",
                path(*section, idx - 1, "id"),
                "is missing a valid 'id'.",
            )
            continue
        ids.append(entry_id)
        valid.append((idx - 1, entry))
    duplicates = [entry_id for entry_id, count in Counter(ids).items() if count > 1]
    if duplicates:
        ctx.add(
            label.title(),
            path(*section),
            f"duplicate {label} IDs found: {', '.join(sorted(duplicates))}.",
        )
    return valid


def _number_field(
    entry: Mapping[str, Any],
    key: str,
    context: str,
    path_parts: Sequence[object],
    ctx: ValidationContext,
    *,
    required: bool = True,
    minimum: float | None = None,
    strict: bool = False,
) -> None:
    value = entry.get(key)
    if value is None:
        if required:
            ctx.add(context, path(*path_parts, key), f"requires a numeric '{key}'.")
        return
    if not is_number(value):
        ctx.add(context, path(*path_parts, key), f"'{key}' must be a number.")
        return
    if minimum is None:
        return
    if strict and value <= minimum:
        ctx.add(context, path(*path_parts, key), f"'{key}' must be greater than {minimum}.")
    elif not strict and value < minimum:
        ctx.add(context, path(*path_parts, key), f"'{key}' must be at least {minimum}.")


def _validate_producer(entry: Mapping[str, Any], idx: int, ctx: ValidationContext) -> None:
    context = f"Producer '{entry['id']}'"
    parts = ("producers", idx)
    require(
        is_non_empty_str(entry.get("resource")),
        context,
        path(*parts, "resource"),
        "requires a non-empty 'resource'.",
        ctx,
    )
    _number_field(entry, "baseCost", context, parts, ctx, minimum=0)
    _number_field(entry, "growth", context, parts, ctx, minimum=1, strict=True)
    _number_field(entry, "power", context, parts, ctx)
    _number_field(entry, "count", context, parts, ctx, required=False, minimum=0)


def _validate_upgrade(entry: Mapping[str, Any], idx: int, ctx: ValidationContext) -> None:
    context = f"Upgrade '{entry['id']}'"
    parts = ("upgrades", idx)
    _number_field(entry, "cost", context, parts, ctx, minimum=0)
    cost_resource = entry.get("costResource")
    if cost_resource is not None and not is_non_empty_str(cost_resource):
        ctx.add(context, path(*parts, "costResource"), "'costResource' must be a non-empty string.")
    if "effect" in entry:
        validate_effect(entry.get("effect"), context, (*parts, "effect"), ctx)
    validate_unlock(entry.get("unlock"), context, (*parts, "unlock"), ctx)


def _validate_expedition(entry: Mapping[str, Any], idx: int, ctx: ValidationContext) -> None:
    context = f"Expedition '{entry['id']}'"
    parts = ("expeditions", idx)
    duration = entry.get("duration")
    if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
        ctx.add(context, path(*parts, "duration"), "requires a positive integer 'duration'.")

    costs = entry.get("costs", [])
    if not _is_list(costs):
        ctx.add(context, path(*parts, "costs"), "'costs' must be a list.")
        costs = []
    for c_idx, cost in enumerate(costs):
        cost_parts = (*parts, "costs", c_idx)
        if not isinstance(cost, Mapping) or not is_non_empty_str(cost.get("resourceId")):
            ctx.add(context, path(*cost_parts), "cost entries need a 'resourceId'.")
            continue
        _number_field(cost, "amount", context, cost_parts, ctx, minimum=0)

    rewards = entry.get("rewards", [])
    if not _is_list(rewards):
        ctx.add(context, path(*parts, "rewards"), "'rewards' must be a list.")
        rewards = []
    for r_idx, reward in enumerate(rewards):
        reward_parts = (*parts, "rewards", r_idx)
        if not isinstance(reward, Mapping) or not is_non_empty_str(reward.get("resourceId")):
            ctx.add(context, path(*reward_parts), "reward entries need a 'resourceId'.")
            continue
        low, high = reward.get("min"), reward.get("max")
        if not isinstance(low, int) or not isinstance(high, int):
            ctx.add(context, path(*reward_parts), "rewards require integer 'min' and 'max'.")
        elif low > high:
            ctx.add(context, path(*reward_parts), "reward 'min' must not exceed 'max'.")

    drain = entry.get("drain")
    if drain is not None:
        if not isinstance(drain, Mapping):
            ctx.add(context, path(*parts, "drain"), "'drain' must be an object of need amounts.")
        else:
            for need_id, value in drain.items():
                if not is_number(value) or value < 0:
                    ctx.add(
                        context,
                        path(*parts, "drain", need_id),
                        "drain values must be non-negative numbers.",
                    )
    validate_unlock(entry.get("unlock"), context, (*parts, "unlock"), ctx)


def _validate_need(entry: Mapping[str, Any], idx: int, ctx: ValidationContext) -> None:
    context = f"Need '{entry['id']}'"
    parts = ("survival", "needs", idx)
    _number_field(entry, "max", context, parts, ctx, minimum=0, strict=True)
    _number_field(entry, "current", context, parts, ctx, minimum=0)
    _number_field(entry, "decayRate", context, parts, ctx, required=False, minimum=0)
    _number_field(entry, "criticalThreshold", context, parts, ctx, required=False, minimum=0)


def _validate_forage(entry: Mapping[str, Any], idx: int, ctx: ValidationContext) -> None:
    context = f"Forage activity '{entry['id']}'"
    parts = ("survival", "foraging", idx)
    require(
        is_non_empty_str(entry.get("resource")),
        context,
        path(*parts, "resource"),
        "requires a non-empty 'resource'.",
        ctx,
    )
    _number_field(entry, "baseAmount", context, parts, ctx, minimum=0, strict=True)


def validate_game_data(data: Mapping[str, Any]) -> List[str]:
    ctx = ValidationContext()

    _validate_entries(data.get("resources"), ("resources",), "resource", ctx)
    for idx, entry in _validate_entries(data.get("producers"), ("producers",), "producer", ctx):
        _validate_producer(entry, idx, ctx)
    for idx, entry in _validate_entries(data.get("upgrades"), ("upgrades",), "upgrade", ctx):
        _validate_upgrade(entry, idx, ctx)
    for idx, entry in _validate_entries(
        data.get("expeditions"), ("expeditions",), "expedition", ctx
    ):
        _validate_expedition(entry, idx, ctx)

    survival = data.get("survival")
    if survival is not None and not isinstance(survival, Mapping):
        ctx.add("Game data", path("survival"), "'survival' must be an object.")
        survival = None
    survival = survival or {}
    for idx, entry in _validate_entries(survival.get("needs"), ("survival", "needs"), "need", ctx):
        _validate_need(entry, idx, ctx)
    _validate_entries(survival.get("colonists"), ("survival", "colonists"), "colonist", ctx)
    for idx, entry in _validate_entries(
        survival.get("foraging"), ("survival", "foraging"), "forage activity", ctx
    ):
        _validate_forage(entry, idx, ctx)
    campfire = survival.get("campfire")
    if campfire is not None and not isinstance(campfire, Mapping):
        ctx.add("Survival", path("survival", "campfire"), "'campfire' must be an object.")

    settings = data.get("settings")
    if settings is not None and not isinstance(settings, Mapping):
        ctx.add("Game data", path("settings"), "'settings' must be an object.")

    return ctx.errors


def find_dangling_references(data: Mapping[str, Any]) -> List[str]:
    """Return warnings for ids that point at nothing.

    Dangling references are authoring bugs, not load failures: the affected
    upgrade or expedition quietly never takes effect at runtime.
    """

    def ids(entries: Any) -> set:
        if not _is_list(entries):
            return set()
        return {e.get("id") for e in entries if isinstance(e, Mapping)}

    survival = data.get("survival") if isinstance(data.get("survival"), Mapping) else {}
    resource_ids = ids(data.get("resources"))
    producer_ids = ids(data.get("producers"))
    upgrade_ids = ids(data.get("upgrades"))
    need_ids = ids(survival.get("needs"))
    known = {
        UnlockType.RESOURCE: resource_ids,
        UnlockType.PRODUCER: producer_ids,
        UnlockType.UPGRADE: upgrade_ids,
    }

    warnings: List[str] = []
    for section in ("upgrades", "expeditions"):
        entries = data.get(section)
        if not _is_list(entries):
            continue
        for idx, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                continue
            unlock = entry.get("unlock")
            if isinstance(unlock, Mapping):
                unlock_type = UnlockType.parse(unlock.get("type"))
                if unlock_type is UnlockType.UNSUPPORTED:
                    tag = unlock.get("type")
                    reason = (
                        "is never satisfied"
                        if tag in KNOWN_UNSUPPORTED_UNLOCKS
                        else "is not a known unlock type"
                    )
                    warnings.append(
                        f"{path(section, idx, 'unlock', 'type')}: unlock type '{tag}' {reason}."
                    )
                elif unlock.get("id") not in known[unlock_type]:
                    warnings.append(
                        f"{path(section, idx, 'unlock', 'id')}: unknown "
                        f"{unlock_type.value} '{unlock.get('id')}'."
                    )
            effect = entry.get("effect")
            if isinstance(effect, Mapping):
                effect_type = EffectType.parse(effect.get("type"))
                target = effect.get("target")
                if effect_type is EffectType.MULTIPLIER and target not in producer_ids:
                    warnings.append(
                        f"{path(section, idx, 'effect', 'target')}: unknown producer '{target}'."
                    )
                if effect_type is EffectType.SURVIVAL_MODIFIER and target not in need_ids:
                    warnings.append(
                        f"{path(section, idx, 'effect', 'target')}: unknown need '{target}'."
                    )
    producers = data.get("producers")
    if _is_list(producers):
        for idx, entry in enumerate(producers):
            if isinstance(entry, Mapping) and entry.get("resource") not in resource_ids:
                warnings.append(
                    f"{path('producers', idx, 'resource')}: unknown resource '{entry.get('resource')}'."
                )
    return warnings
