"""Save migration registry for Idlewild."""

from __future__ import annotations

import copy
from typing import Callable, Dict

SCHEMA_VERSION = 2


class SaveMigrationError(Exception):
    """Raised when a save cannot be migrated to the latest schema."""


Migration = Callable[[Dict], Dict]

_LEGACY_STATE_KEYS = (
    "resources",
    "producers",
    "upgradesPurchased",
    "upgradesDiscovered",
    "survival",
    "lastSaved",
)


def _migrate_v0_to_v1(payload: Dict) -> Dict:
    # v0 saves are the bare state document with no envelope.
    state = payload.get("state")
    if not isinstance(state, dict):
        state = {key: value for key, value in payload.items() if key != "version"}
        if not any(key in state for key in _LEGACY_STATE_KEYS):
            raise SaveMigrationError("Missing state block for legacy save.")

    metadata = payload.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    return {
        "version": 1,
        "metadata": {
            "schema": "save_v1",
            "version": 1,
            "saved_at": metadata.get("saved_at", state.get("lastSaved")),
        },
        "state": state,
    }


def _migrate_v1_to_v2(payload: Dict) -> Dict:
    """Replace the anonymous ``survival.exploration`` timer with ``activeExpedition``."""

    state = payload.get("state")
    if not isinstance(state, dict):
        raise SaveMigrationError("Save payload has no state block.")
    state = dict(state)

    survival = state.get("survival")
    if isinstance(survival, dict):
        survival = dict(survival)
        exploration = survival.pop("exploration", None)
        if isinstance(exploration, dict) and exploration.get("active"):
            survival.setdefault(
                "activeExpedition",
                {
                    "expeditionId": None,
                    "timeRemaining": exploration.get("timeRemaining", 0),
                    "totalTime": exploration.get("totalTime", 0),
                },
            )
        else:
            survival.setdefault("activeExpedition", None)
        state["survival"] = survival
    if not isinstance(state.get("expeditions"), list):
        state["expeditions"] = []

    metadata = payload.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    metadata = dict(metadata)
    metadata["schema"] = "save_v2"
    metadata["version"] = 2

    upgraded = dict(payload)
    upgraded["version"] = 2
    upgraded["metadata"] = metadata
    upgraded["state"] = state
    return upgraded


MIGRATIONS: Dict[int, Migration] = {
    0: _migrate_v0_to_v1,
    1: _migrate_v1_to_v2,
}


def migrate_save_payload(payload: Dict, target_version: int = SCHEMA_VERSION) -> Dict:
    if not isinstance(payload, dict):
        raise SaveMigrationError("Save payload was not an object.")

    version = payload.get("version", 0)
    if version is None:
        version = 0
    if isinstance(version, bool) or not isinstance(version, int):
        raise SaveMigrationError("Save version missing or invalid.")
    if version > target_version:
        raise SaveMigrationError(
            f"Save schema {version} is newer than supported {target_version}."
        )

    current = copy.deepcopy(payload)
    while version < target_version:
        migrator = MIGRATIONS.get(version)
        if migrator is None:
            raise SaveMigrationError(f"No migration available for save schema {version}.")
        current = migrator(current)
        version = current.get("version", version + 1)
        if not isinstance(version, int):
            raise SaveMigrationError("Migration produced an invalid schema version.")

    return current
