"""Synchronous publish/subscribe for controller events.

Each controller owns one `EventEmitter`. Handlers are called in registration
order before `emit` returns; an exception raised by a handler propagates to
whoever triggered the event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Tuple

from .pieces import ActivePiece


class EventType(str, Enum):
    LINE_CLEAR = "line_clear"
    PIECE_LOCK = "piece_lock"
    SPIN = "spin"
    COMBO = "combo"
    LEVEL_UP = "level_up"
    GAME_OVER = "game_over"
    COMPLETED = "completed"


@dataclass(frozen=True)
class GameEvent:
    type: ClassVar[EventType]


@dataclass(frozen=True)
class LineClearEvent(GameEvent):
    type: ClassVar[EventType] = EventType.LINE_CLEAR
    rows: Tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PieceLockEvent(GameEvent):
    type: ClassVar[EventType] = EventType.PIECE_LOCK
    piece: ActivePiece


@dataclass(frozen=True)
class SpinEvent(GameEvent):
    type: ClassVar[EventType] = EventType.SPIN
    piece: ActivePiece


@dataclass(frozen=True)
class ComboEvent(GameEvent):
    type: ClassVar[EventType] = EventType.COMBO
    combo: int


@dataclass(frozen=True)
class LevelUpEvent(GameEvent):
    type: ClassVar[EventType] = EventType.LEVEL_UP
    level: int


@dataclass(frozen=True)
class GameOverEvent(GameEvent):
    type: ClassVar[EventType] = EventType.GAME_OVER


@dataclass(frozen=True)
class CompletedEvent(GameEvent):
    type: ClassVar[EventType] = EventType.COMPLETED


Handler = Callable[[GameEvent], None]


class EventEmitter:
    def __init__(self) -> None:
        self._handlers: Dict[EventType, List[Handler]] = {}

    def on(self, event_type: EventType, handler: Handler) -> None:
        self._handlers.setdefault(EventType(event_type), []).append(handler)

    def off(self, event_type: EventType, handler: Handler) -> bool:
        handlers = self._handlers.get(EventType(event_type), [])
        for i, registered in enumerate(handlers):
            if registered == handler:
                del handlers[i]
                return True
        return False

    def emit(self, event: GameEvent) -> None:
        # Copy so handlers may unsubscribe while being called.
        for handler in list(self._handlers.get(event.type, ())):
            handler(event)

    def clear(self) -> None:
        self._handlers.clear()
