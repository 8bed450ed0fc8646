"""Save management utilities for Idlewild."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol
from urllib.parse import quote

from .game_data import GameData, default_state
from .models import GameState
from .reconcile import reconcile_state
from .save_migrations import SCHEMA_VERSION, SaveMigrationError, migrate_save_payload
from .timekeeping import MS_PER_SECOND, now_ms

log = logging.getLogger("idlewild.save")

IS_WEB = sys.platform == "emscripten"


class SaveError(Exception):
    """Base class for save related failures."""


class SaveCorruptError(SaveError):
    """Raised when a save cannot be parsed or validated."""


class KeyValueStore(Protocol):
    """The subset of the browser ``localStorage`` API the save manager uses."""

    def getItem(self, key: str) -> Optional[str]: ...

    def setItem(self, key: str, value: str) -> None: ...

    def removeItem(self, key: str) -> None: ...


def get_local_storage() -> Optional[Any]:
    if not IS_WEB:
        return None
    try:
        from js import localStorage  # type: ignore
    except ImportError:
        return None
    return localStorage


class MemoryStorage:
    """In-process store, used by tests and headless runs."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self.items: Dict[str, str] = dict(items or {})

    def getItem(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def setItem(self, key: str, value: str) -> None:
        self.items[key] = str(value)

    def removeItem(self, key: str) -> None:
        self.items.pop(key, None)


class FileStorage:
    """One JSON file per key under ``base_path``; writes go through a temp file."""

    def __init__(self, base_path: Path | str = "saves") -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.base_path / f"{quote(key, safe='')}.json"

    def getItem(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise SaveCorruptError(f"Save file {path} is not valid UTF-8: {exc}") from exc

    def setItem(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(value)
            if not value.endswith("\n"):
                handle.write("\n")
        tmp_path.replace(path)

    def removeItem(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class SaveManager:
    """Persist the game state under a single key, with a backup of the previous save."""

    SCHEMA_VERSION = SCHEMA_VERSION
    BACKUP_SUFFIX = ".bak"

    def __init__(
        self,
        game_data: GameData,
        store: Optional[KeyValueStore] = None,
        *,
        save_key: Optional[str] = None,
        base_path: Path | str = "saves",
        print_func: Callable[[str], None] = print,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.game_data = game_data
        self.save_key = save_key or game_data.settings.save_key
        self.backup_key = f"{self.save_key}{self.BACKUP_SUFFIX}"
        self.print = print_func
        self.clock = clock
        if store is None:
            store = get_local_storage()
            if store is None:
                if IS_WEB:
                    self.print(
                        "[Save] localStorage unavailable in web build; "
                        "falling back to filesystem storage."
                    )
                store = FileStorage(base_path)
        self.store = store

    # ---------- Public API ----------
    def has_save(self) -> bool:
        return self._exists(self.save_key)

    def save(self, state: GameState, *, quiet: bool = True) -> GameState:
        """Write ``state`` stamped with the current time and return the stamped copy."""

        stamped = replace(state, last_saved=int(self.clock()))
        self._write_payload(self._build_payload(stamped), make_backup=True)
        if not quiet:
            self.print(f"[Save] Game stored under '{self.save_key}'.")
        log.debug("Saved state under %s at %s", self.save_key, stamped.last_saved)
        return stamped

    def load(self) -> GameState:
        """Return the saved game, the backup, or a new game. Never raises."""

        try:
            if not self.has_save():
                log.info("No save under %s; starting a new game", self.save_key)
                return self.new_game()
            state = self._read_state(self.save_key)
        except (SaveError, SaveMigrationError) as err:
            self.print(f"[!] Save '{self.save_key}' could not be loaded: {err}")
            restored = self._restore_backup()
            if restored is not None:
                return restored
            self.print("[!] Starting a new game.")
            return self.new_game()

        self.print(f"[Loaded] Save '{self.save_key}'.")
        return state

    def clear(self) -> None:
        self.store.removeItem(self.save_key)
        self.store.removeItem(self.backup_key)
        log.info("Cleared save %s", self.save_key)

    def new_game(self) -> GameState:
        return default_state(self.game_data, int(self.clock()))

    def export_state(self, state: GameState) -> str:
        return json.dumps(self._build_payload(state), indent=2)

    def import_state(self, text: str) -> GameState:
        """Parse an exported save. Raises ``SaveCorruptError`` for anything unusable."""

        try:
            payload = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise SaveCorruptError(f"Invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise SaveCorruptError("Imported save was not an object.")

        doc = payload.get("state") if isinstance(payload.get("state"), dict) else payload
        survival = doc.get("survival")
        if (
            not isinstance(doc.get("resources"), list)
            or not isinstance(doc.get("producers"), list)
            or not isinstance(survival, dict)
            or not isinstance(survival.get("needs"), list)
        ):
            raise SaveCorruptError("Invalid save data format.")

        try:
            return self._state_from_payload(payload)
        except SaveMigrationError as exc:
            raise SaveCorruptError(str(exc)) from exc

    # ---------- Internal helpers ----------
    def _exists(self, key: str) -> bool:
        try:
            return self.store.getItem(key) is not None
        except OSError as exc:
            raise SaveError(f"Could not read save: {exc}") from exc

    def _build_payload(self, state: GameState) -> Dict[str, Any]:
        try:
            saved_at: Optional[str] = datetime.fromtimestamp(
                state.last_saved / MS_PER_SECOND, tz=timezone.utc
            ).isoformat()
        except (OverflowError, OSError, ValueError):
            log.warning("lastSaved %s is out of range; saving without a timestamp", state.last_saved)
            saved_at = None
        return {
            "version": self.SCHEMA_VERSION,
            "metadata": {
                "schema": f"save_v{self.SCHEMA_VERSION}",
                "version": self.SCHEMA_VERSION,
                "save_key": self.save_key,
                "saved_at": saved_at,
            },
            "state": state.to_dict(),
        }

    def _write_payload(self, payload: Dict[str, Any], *, make_backup: bool) -> None:
        try:
            if make_backup:
                try:
                    existing = self.store.getItem(self.save_key)
                except SaveCorruptError as exc:
                    log.warning("Not backing up unreadable save %s: %s", self.save_key, exc)
                    existing = None
                if existing is not None:
                    self.store.setItem(self.backup_key, existing)
            self.store.setItem(self.save_key, json.dumps(payload, indent=2))
        except OSError as exc:
            raise SaveError(f"Could not write save: {exc}") from exc

    def _read_state(self, key: str) -> GameState:
        try:
            raw = self.store.getItem(key)
        except OSError as exc:
            raise SaveError(f"Could not read save: {exc}") from exc
        if raw is None:
            raise SaveError("Save missing.")
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SaveCorruptError(f"Invalid JSON: {exc}") from exc
        return self._state_from_payload(payload)

    def _state_from_payload(self, payload: Any) -> GameState:
        payload = migrate_save_payload(payload, self.SCHEMA_VERSION)
        self._validate_payload(payload)
        try:
            return reconcile_state(payload["state"], self.game_data)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise SaveCorruptError(f"State could not be reconciled: {exc}") from exc

    def _validate_payload(self, payload: Dict[str, Any]) -> None:
        version = payload.get("version")
        if version != self.SCHEMA_VERSION:
            raise SaveCorruptError(f"Unsupported schema version: {version!r}")
        if not isinstance(payload.get("state"), dict):
            raise SaveCorruptError("State block missing.")

    def _restore_backup(self) -> Optional[GameState]:
        try:
            if not self._exists(self.backup_key):
                return None
            state = self._read_state(self.backup_key)
        except (SaveError, SaveMigrationError) as backup_err:
            self.print(f"[!] Backup for '{self.save_key}' also failed: {backup_err}")
            return None
        try:
            self._write_payload(self._build_payload(state), make_backup=False)
        except SaveError as err:
            self.print(f"[!] Backup loaded but could not be written back: {err}")
        self.print(f"[Restore] Backup save applied for '{self.save_key}'.")
        return state
