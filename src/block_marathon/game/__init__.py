"""Game module for Block Marathon.

Exports the deterministic marathon engine and supporting classes:
- PieceType, RotationState, Position, ActivePiece: piece value types
- get_shape, get_wall_kicks: rotation system lookups
- SevenBag: fair, seedable piece sequencer
- Board, BoardStats: playfield with collision and line clearing
- ScoringRules, Timing: scoring and timing tables
- Game: frame-driven controller with hold, lock delay and DAS
"""

from .pieces import ActivePiece, PieceType, Position, RotationState, get_shape, get_wall_kicks, spawn_position
from .sequencer import SevenBag
from .board import Board, BoardStats
from .rules import ScoringRules, Timing
from .events import (
    ComboEvent,
    CompletedEvent,
    EventEmitter,
    EventType,
    GameEvent,
    GameOverEvent,
    LevelUpEvent,
    LineClearEvent,
    PieceLockEvent,
    SpinEvent,
)
from .core import Action, Game, GameConfig, GameState, GameStats

__all__ = [
    "ActivePiece",
    "PieceType",
    "Position",
    "RotationState",
    "get_shape",
    "get_wall_kicks",
    "spawn_position",
    "SevenBag",
    "Board",
    "BoardStats",
    "ScoringRules",
    "Timing",
    "EventEmitter",
    "EventType",
    "GameEvent",
    "LineClearEvent",
    "PieceLockEvent",
    "SpinEvent",
    "ComboEvent",
    "LevelUpEvent",
    "GameOverEvent",
    "CompletedEvent",
    "Action",
    "Game",
    "GameConfig",
    "GameState",
    "GameStats",
]
