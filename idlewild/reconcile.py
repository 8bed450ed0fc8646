"""Merge a loaded save document with the current game configuration.

Config entries and saved entries are both indexed by id and unioned: saved
entries keep their order and values, fields they lack come from the config
entry with the same id, and config entries the save never heard of are
appended. Entries that exist only in the save are kept untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from .game_data import GameData, default_state
from .models import GameState

log = logging.getLogger("idlewild.reconcile")


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def merge_by_id(saved: Any, defaults: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    by_id = {entry["id"]: entry for entry in defaults}
    merged: List[Dict[str, Any]] = []
    seen = set()
    for entry in _as_list(saved):
        if not isinstance(entry, Mapping) or "id" not in entry:
            log.debug("Dropping malformed saved entry %r", entry)
            continue
        entry_id = entry["id"]
        if entry_id in seen:
            continue
        seen.add(entry_id)
        record = dict(by_id.get(entry_id, {}))
        record.update(entry)
        merged.append(record)
    for entry in defaults:
        if entry["id"] not in seen:
            merged.append(dict(entry))
    return merged


def reconcile_document(saved: Mapping[str, Any], game_data: GameData) -> Dict[str, Any]:
    """Return a complete state document; raises ``ValueError`` for a non-object."""

    if not isinstance(saved, Mapping):
        raise ValueError("Saved state was not an object.")
    defaults = default_state(game_data).to_dict()

    doc = dict(saved)
    for key in ("resources", "producers", "expeditions"):
        doc[key] = merge_by_id(saved.get(key), defaults[key])
    purchased = _as_list(saved.get("upgradesPurchased"))
    discovered = _as_list(saved.get("upgradesDiscovered"))
    doc["upgradesPurchased"] = purchased
    doc["upgradesDiscovered"] = discovered + [uid for uid in purchased if uid not in discovered]

    default_survival = defaults["survival"]
    survival = saved.get("survival")
    survival = dict(survival) if isinstance(survival, Mapping) else {}
    survival["needs"] = merge_by_id(survival.get("needs"), default_survival["needs"])
    survival["colonists"] = merge_by_id(survival.get("colonists"), default_survival["colonists"])
    campfire = dict(default_survival["campfire"])
    if isinstance(survival.get("campfire"), Mapping):
        campfire.update(survival["campfire"])
    survival["campfire"] = campfire
    if not isinstance(survival.get("activeExpedition"), Mapping):
        survival["activeExpedition"] = None
    doc["survival"] = survival

    doc.setdefault("lastSaved", 0)
    return doc


def reconcile_state(saved: Mapping[str, Any], game_data: GameData) -> GameState:
    return GameState.from_dict(reconcile_document(saved, game_data))
