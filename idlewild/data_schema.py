"""Machine-readable schema specs for Idlewild game data."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Tuple

FieldValidator = Callable[[Mapping[str, Any], str], List[str]]


class UnlockType(str, Enum):
    RESOURCE = "resource"
    PRODUCER = "producer"
    UPGRADE = "upgrade"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, raw: Any) -> "UnlockType":
        for member in cls:
            if member is not cls.UNSUPPORTED and member.value == raw:
                return member
        return cls.UNSUPPORTED


class EffectType(str, Enum):
    MULTIPLIER = "multiplier"
    SURVIVAL_MODIFIER = "survival_modifier"
    EXPLORATION_MODIFIER = "exploration_modifier"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, raw: Any) -> "EffectType":
        for member in cls:
            if member is not cls.UNSUPPORTED and member.value == raw:
                return member
        return cls.UNSUPPORTED


# Unlock tags that appear in authored data but are never satisfied.
KNOWN_UNSUPPORTED_UNLOCKS = ("colonist", "campfire")


def path(*parts: object) -> str:
    path_str = ""
    for part in parts:
        if isinstance(part, int):
            path_str = f"{path_str}[{part}]"
            continue
        if not isinstance(part, str):
            part = str(part)
        if part.isidentifier():
            path_str = f"{path_str}.{part}" if path_str else part
        else:
            path_str = f"{path_str}[{json.dumps(part)}]"
    return path_str


def format_validation_message(path_str: str, context: str, message: str) -> str:
    if context:
        return f"{path_str}: {context}: {message}"
    return f"{path_str}: {message}"


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class UnlockSpec:
    required_fields: Tuple[str, ...]
    optional_fields: Tuple[str, ...]
    field_rules: Mapping[str, str]
    validate: FieldValidator


@dataclass(frozen=True)
class EffectSpec:
    required_fields: Tuple[str, ...]
    optional_fields: Tuple[str, ...]
    field_rules: Mapping[str, str]
    validate: FieldValidator


def _validate_threshold_unlock(
    unlock: Mapping[str, Any], context: str, name: str, threshold: str
) -> List[str]:
    errors: List[str] = []
    if not is_non_empty_str(unlock.get("id")):
        errors.append(f"{context}: '{name}' unlock requires a non-empty string 'id'.")
    value = unlock.get(threshold)
    if value is not None and (not is_number(value) or value < 0):
        errors.append(
            f"{context}: '{name}' unlock optional '{threshold}' must be a non-negative number."
        )
    return errors


def _validate_upgrade_unlock(unlock: Mapping[str, Any], context: str) -> List[str]:
    errors: List[str] = []
    if not is_non_empty_str(unlock.get("id")):
        errors.append(f"{context}: 'upgrade' unlock requires a non-empty string 'id'.")
    return errors


def _validate_effect(effect: Mapping[str, Any], context: str, name: str) -> List[str]:
    errors: List[str] = []
    if not is_non_empty_str(effect.get("target")) and name != "exploration_modifier":
        errors.append(f"{context}: '{name}' effect requires a non-empty string 'target'.")
    if not is_number(effect.get("value")):
        errors.append(f"{context}: '{name}' effect requires a numeric 'value'.")
    attribute = effect.get("attribute")
    if attribute is not None and not is_non_empty_str(attribute):
        errors.append(f"{context}: '{name}' effect optional 'attribute' must be a string.")
    return errors


UNLOCK_SPECS: Dict[UnlockType, UnlockSpec] = {
    UnlockType.RESOURCE: UnlockSpec(
        required_fields=("id",),
        optional_fields=("amount",),
        field_rules={"id": "resource id", "amount": "optional minimum amount held"},
        validate=lambda unlock, context: _validate_threshold_unlock(
            unlock, context, "resource", "amount"
        ),
    ),
    UnlockType.PRODUCER: UnlockSpec(
        required_fields=("id",),
        optional_fields=("count",),
        field_rules={"id": "producer id", "count": "optional minimum producers owned"},
        validate=lambda unlock, context: _validate_threshold_unlock(
            unlock, context, "producer", "count"
        ),
    ),
    UnlockType.UPGRADE: UnlockSpec(
        required_fields=("id",),
        optional_fields=(),
        field_rules={"id": "upgrade id that must be purchased"},
        validate=_validate_upgrade_unlock,
    ),
}

EFFECT_SPECS: Dict[EffectType, EffectSpec] = {
    EffectType.MULTIPLIER: EffectSpec(
        required_fields=("target", "value"),
        optional_fields=(),
        field_rules={"target": "producer id", "value": "output multiplier"},
        validate=lambda effect, context: _validate_effect(effect, context, "multiplier"),
    ),
    EffectType.SURVIVAL_MODIFIER: EffectSpec(
        required_fields=("target", "value"),
        optional_fields=("attribute",),
        field_rules={
            "target": "survival need id",
            "attribute": "need attribute to scale (decayRate)",
            "value": "factor applied to the attribute",
        },
        validate=lambda effect, context: _validate_effect(effect, context, "survival_modifier"),
    ),
    EffectType.EXPLORATION_MODIFIER: EffectSpec(
        required_fields=("value",),
        optional_fields=("target", "attribute"),
        field_rules={
            "attribute": "exploration attribute to scale (efficiency)",
            "value": "factor applied to expedition costs and drain",
        },
        validate=lambda effect, context: _validate_effect(
            effect, context, "exploration_modifier"
        ),
    ),
}
