"""A running game: the latest snapshot plus the tick and autosave timers."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, List, Optional

from . import actions
from .engine import SimulationEngine
from .events import EventKind, EventLog, GameEvent
from .game_data import GameData, default_state
from .models import GameState
from .save_manager import SaveError, SaveManager
from .settings import GameSettings
from .timekeeping import interval_seconds, now_ms

log = logging.getLogger("idlewild.session")


class GameSession:
    """Own the current ``GameState`` and route every change through it.

    The renderer reads :attr:`state` and calls the action methods, each of
    which returns ``True`` when the action was applied. Timers run as two
    asyncio tasks on the caller's event loop and only ever swap in a whole
    new snapshot.
    """

    def __init__(
        self,
        game_data: GameData,
        *,
        save_manager: Optional[SaveManager] = None,
        settings: Optional[GameSettings] = None,
        rng: Optional[random.Random] = None,
        print_func: Callable[[str], None] = print,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.game_data = game_data
        self.settings = (settings or game_data.settings).copy()
        self.clock = clock
        self.print = print_func
        self.events = EventLog()
        self.engine = SimulationEngine(game_data, self.settings, rng=rng, events=self.events)
        self.saves = save_manager or SaveManager(game_data, print_func=print_func, clock=clock)
        self._state = default_state(game_data, clock())
        self._tasks: List[asyncio.Task] = []

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    # ---------- Lifecycle ----------
    def start(self) -> GameState:
        """Load the save and fast-forward it to now. Call once before the timers."""

        loaded = self.saves.load()
        self._state = self.engine.offline_catchup(loaded, self.clock())
        return self._state

    def tick(self) -> GameState:
        self._state = self.engine.tick(self._state)
        return self._state

    def save(self) -> bool:
        try:
            self.saves.save(self._state)
        except SaveError as err:
            self.print(f"[!] Save failed: {err}")
            return False
        return True

    def start_timers(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._tick_loop()),
            asyncio.create_task(self._autosave_loop()),
        ]

    async def run(self, duration: Optional[float] = None) -> None:
        """Run the timers until cancelled, or for ``duration`` seconds."""

        self.start_timers()
        try:
            if duration is None:
                await asyncio.gather(*self._tasks)
            else:
                await asyncio.sleep(duration)
        finally:
            await self.stop()

    async def stop(self, *, save: bool = True) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                log.error("Session timer failed", exc_info=result)
        if save:
            self.save()

    async def _tick_loop(self) -> None:
        delay = interval_seconds(self.settings.default_tick_interval_ms)
        while True:
            await asyncio.sleep(delay)
            self.tick()

    async def _autosave_loop(self) -> None:
        delay = interval_seconds(self.settings.autosave_interval_ms)
        while True:
            await asyncio.sleep(delay)
            self.save()

    # ---------- Actions ----------
    def _apply(self, next_state: GameState) -> bool:
        if next_state is self._state:
            return False
        self._state = next_state
        return True

    def click_gather(self, resource_id: str, amount: float = 1.0) -> bool:
        return self._apply(actions.click_gather(self._state, self.game_data, resource_id, amount))

    def forage(self, activity_id: str) -> bool:
        return self._apply(actions.forage(self._state, self.game_data, activity_id))

    def buy_producer(self, producer_id: str) -> bool:
        return self._apply(
            actions.buy_producer(self._state, self.game_data, producer_id, settings=self.settings)
        )

    def purchase_upgrade(self, upgrade_id: str) -> bool:
        return self._apply(actions.purchase_upgrade(self._state, self.game_data, upgrade_id))

    def light_campfire(self) -> bool:
        return self._apply(
            actions.light_campfire(self._state, self.game_data, settings=self.settings)
        )

    def start_expedition(self, expedition_id: str) -> bool:
        started = self._apply(
            actions.start_expedition(
                self._state, self.game_data, expedition_id, effects=self.engine.effects
            )
        )
        if started:
            self.events.emit(
                GameEvent(
                    kind=EventKind.EXPEDITION_STARTED,
                    message=f"Expedition '{expedition_id}' set out.",
                    data={"expedition_id": expedition_id},
                )
            )
        return started

    def consume_resource(self, resource_id: str, amount: float = 1.0) -> bool:
        return self._apply(
            actions.consume_resource(
                self._state, self.game_data, resource_id, amount, settings=self.settings
            )
        )

    def reset(self) -> GameState:
        self.saves.clear()
        self._state = actions.reset_state(self._state, self.game_data, self.clock())
        self.print("[Save] Progress reset.")
        return self._state

    def import_state(self, text: str) -> GameState:
        """Replace the current game with an exported save; raises ``SaveCorruptError``."""

        self._state = self.saves.import_state(text)
        return self._state

    def export_state(self) -> str:
        return self.saves.export_state(self._state)

    def replace_state(self, state: GameState) -> None:
        """Swap in ``state`` without any checks. Debug use only."""

        log.warning("State replaced directly; consistency checks skipped")
        self._state = state

    def consume_events(self) -> List[GameEvent]:
        return self.events.consume()
