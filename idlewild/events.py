"""Observable game events for the rendering layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class EventKind(str, Enum):
    EXPEDITION_STARTED = "expedition_started"
    EXPEDITION_COMPLETED = "expedition_completed"
    EXPEDITION_FAILED = "expedition_failed"
    CAMPFIRE_OUT = "campfire_out"
    UPGRADE_DISCOVERED = "upgrade_discovered"
    EXPEDITION_DISCOVERED = "expedition_discovered"
    OFFLINE_PROGRESS = "offline_progress"


@dataclass(frozen=True)
class GameEvent:
    kind: EventKind
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only buffer the renderer drains between frames."""

    def __init__(self, limit: int = 200) -> None:
        self.limit = max(int(limit), 1)
        self.pending: List[GameEvent] = []
        self.history: List[GameEvent] = []

    def __call__(self, event: GameEvent) -> None:
        self.emit(event)

    def emit(self, event: GameEvent) -> None:
        self.pending.append(event)
        self.history.append(event)
        if len(self.history) > self.limit:
            del self.history[: len(self.history) - self.limit]

    def consume(self) -> List[GameEvent]:
        events = self.pending
        self.pending = []
        return events
