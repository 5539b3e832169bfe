from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import List, Optional

import numpy as np

from .board import Board, BoardStats
from .events import (
    ComboEvent,
    CompletedEvent,
    EventEmitter,
    EventType,
    GameOverEvent,
    Handler,
    LevelUpEvent,
    LineClearEvent,
    PieceLockEvent,
    SpinEvent,
)
from .pieces import ActivePiece, PieceType, Position, get_wall_kicks, spawn_position
from .rules import ScoringRules, Timing
from .sequencer import SevenBag

logger = logging.getLogger(__name__)


class Action(IntEnum):
    MOVE_LEFT = 0
    MOVE_RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    HOLD = 6
    PAUSE = 7


class GameState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"
    COMPLETED = "completed"


@dataclass
class GameStats:
    score: int = 0
    lines: int = 0
    level: int = 0
    combo: int = 0
    back_to_back: bool = False


@dataclass
class GameConfig:
    width: int = 10
    visible_height: int = 20
    hidden_rows: int = 2
    random_seed: Optional[int] = None
    preview_count: int = 5
    line_target: int = 999

    def __post_init__(self) -> None:
        if self.width < 4 or self.visible_height <= 0:
            raise ValueError(f"board must be at least 4 wide with visible rows, got {self.width}x{self.visible_height}")
        if self.hidden_rows < 0:
            raise ValueError(f"hidden_rows must be >= 0, got {self.hidden_rows}")
        if self.preview_count < 0:
            raise ValueError(f"preview_count must be >= 0, got {self.preview_count}")

    @property
    def total_height(self) -> int:
        return self.visible_height + self.hidden_rows


class Game:
    """Marathon controller: owns the board and the 7-bag and runs the frame loop.

    Drive it with `update(delta_ms)` once per frame and `handle_input` for
    press/release events. Rejected actions return False and change nothing.
    Lifecycle outcomes (game over, completion) are reported via `state` and
    events, never exceptions.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        timing: Optional[Timing] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.timing = timing or Timing()
        self._board = Board(self.config.width, self.config.visible_height, self.config.hidden_rows)
        self._bag = SevenBag(self.config.random_seed)
        self._events = EventEmitter()
        self._state = GameState.IDLE
        self._stats = GameStats()
        self._piece: Optional[ActivePiece] = None
        self._held: Optional[PieceType] = None
        self._can_hold = True
        self._drop_timer = 0.0
        self._das_timer = 0.0
        self._das_direction = 0
        self._last_was_rotation = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self, seed: Optional[int] = None) -> None:
        self._board.reset()
        self._bag.reset(self.config.random_seed if seed is None else seed)
        self._state = GameState.IDLE
        self._stats = GameStats()
        self._piece = None
        self._held = None
        self._can_hold = True
        self._drop_timer = 0.0
        self._das_timer = 0.0
        self._das_direction = 0
        self._last_was_rotation = False

    def start(self, seed: Optional[int] = None) -> None:
        self.reset(seed)
        self._state = GameState.PLAYING
        logger.info("Game started (seed=%d)", self._bag.seed)
        self._spawn(self._bag.next())

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------
    def update(self, delta_ms: float) -> None:
        if self._state is not GameState.PLAYING or self._piece is None:
            return

        # Delayed auto shift
        if self._das_direction:
            self._das_timer += delta_ms
            delay = self.timing.das_delay_ms
            period = self.timing.das_period_ms
            if self._das_timer >= delay:
                due = int((self._das_timer - delay) // period)
                for _ in range(due):
                    self._move(self._das_direction, 0)
                self._das_timer = delay + (self._das_timer - delay) % period

        # Gravity
        self._drop_timer += delta_ms
        interval = self.timing.drop_interval_ms(self._stats.level)
        while self._drop_timer >= interval:
            self._drop_timer -= interval
            if not self._move(0, 1):
                self._piece.soft_locked = True

        # Lock delay
        piece = self._piece
        if piece.soft_locked:
            piece.lock_timer += delta_ms
            if piece.lock_timer >= self.timing.lock_delay_ms:
                self._lock_piece()
        else:
            piece.lock_timer = 0.0

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def handle_input(self, action: Action, pressed: bool = True) -> bool:
        """Apply a press or release. Returns whether anything changed."""
        action = Action(action)
        if action == Action.PAUSE:
            return pressed and self._toggle_pause()

        if action in (Action.MOVE_LEFT, Action.MOVE_RIGHT):
            direction = -1 if action == Action.MOVE_LEFT else 1
            if not pressed:
                # Releases disarm auto-shift in every state.
                if self._das_direction == direction:
                    self._das_direction = 0
                    self._das_timer = 0.0
                    return True
                return False
            if self._state is not GameState.PLAYING or self._piece is None:
                return False
            self._das_direction = direction
            self._das_timer = 0.0
            return self._move(direction, 0)

        if self._state is not GameState.PLAYING or self._piece is None:
            return False

        if not pressed:
            return False
        if action == Action.SOFT_DROP:
            moved = self._move(0, 1)
            if moved:
                self._stats.score += self.rules.soft_drop_per_cell
            return moved
        if action == Action.HARD_DROP:
            return self._hard_drop()
        if action == Action.ROTATE_CW:
            return self._rotate(clockwise=True)
        if action == Action.ROTATE_CCW:
            return self._rotate(clockwise=False)
        if action == Action.HOLD:
            return self._hold()
        return False

    def _toggle_pause(self) -> bool:
        if self._state is GameState.PLAYING:
            self._state = GameState.PAUSED
            logger.info("Game paused")
            return True
        if self._state is GameState.PAUSED:
            self._state = GameState.PLAYING
            logger.info("Game resumed")
            return True
        return False

    def _move(self, dx: int, dy: int) -> bool:
        piece = self._piece
        if piece is None:
            return False
        target = piece.position.moved(dx, dy)
        if not self._board.is_valid_position(piece.kind, target, piece.rotation):
            return False
        piece.position = target
        self._last_was_rotation = False
        if dy > 0:
            piece.soft_locked = False
            piece.lock_timer = 0.0
        elif dx != 0 and piece.soft_locked:
            piece.lock_timer = 0.0
        return True

    def _rotate(self, clockwise: bool) -> bool:
        piece = self._piece
        if piece is None:
            return False
        target = piece.rotation.cw() if clockwise else piece.rotation.ccw()
        offsets = [(0, 0)] + get_wall_kicks(piece.kind, piece.rotation, target)
        # First offset that fits wins.
        for dx, dy in offsets:
            position = piece.position.moved(dx, dy)
            if self._board.is_valid_position(piece.kind, position, target):
                piece.position = position
                piece.rotation = target
                self._last_was_rotation = True
                if piece.soft_locked:
                    piece.lock_timer = 0.0
                return True
        return False

    def _hard_drop(self) -> bool:
        distance = 0
        while self._move(0, 1):
            distance += 1
        self._stats.score += distance * self.rules.hard_drop_per_cell
        self._lock_piece()
        return True

    def _hold(self) -> bool:
        if not self._can_hold or self._piece is None:
            return False
        current = self._piece.kind
        swap = self._held
        self._held = current
        self._can_hold = False
        self._spawn(self._bag.next() if swap is None else swap)
        return True

    # ------------------------------------------------------------------
    # Locking, scoring, spawning
    # ------------------------------------------------------------------
    def _is_spin(self, piece: ActivePiece) -> bool:
        if piece.kind != PieceType.T or not self._last_was_rotation:
            return False
        x, y = piece.position
        corners = ((x, y), (x + 2, y), (x, y + 2), (x + 2, y + 2))
        return sum(1 for cx, cy in corners if self._board.is_occupied(cx, cy)) >= 3

    def _lock_piece(self) -> None:
        piece = self._piece
        if piece is None:
            return
        self._board.lock_piece(piece.kind, piece.position, piece.rotation)
        snapshot = piece.snapshot()
        self._piece = None

        if self._is_spin(piece):
            logger.debug("Spin detected at %s", tuple(piece.position))
            self._events.emit(SpinEvent(snapshot))
        self._events.emit(PieceLockEvent(snapshot))

        rows = self._board.clear_lines()
        if rows:
            self.apply_line_clear(len(rows))
            self._events.emit(LineClearEvent(tuple(rows)))
        else:
            self._stats.combo = 0

        if self._stats.lines >= self.config.line_target:
            self._state = GameState.COMPLETED
            logger.info("Marathon completed: %d lines, score %d", self._stats.lines, self._stats.score)
            self._events.emit(CompletedEvent())
            return

        if self._spawn(self._bag.next()):
            self._can_hold = True

    def apply_line_clear(self, count: int) -> int:
        """Update combo, back-to-back, score, lines and level for a clear of `count` rows.

        Returns the points awarded.
        """
        if count <= 0:
            return 0
        stats = self._stats
        stats.combo += 1
        if stats.combo > 1:
            self._events.emit(ComboEvent(stats.combo))

        four_lines = count >= 4
        gained = self.rules.score_for_clear(count, stats.level, stats.combo, four_lines and stats.back_to_back)
        stats.back_to_back = four_lines
        stats.score += gained
        stats.lines += count

        level = self.rules.level_for_lines(stats.lines)
        if level > stats.level:
            stats.level = level
            logger.info("Level up: %d", level)
            self._events.emit(LevelUpEvent(level))
        return gained

    def _spawn(self, kind: PieceType) -> bool:
        piece = ActivePiece(kind, spawn_position(kind, self.config.width))
        self._drop_timer = 0.0
        self._last_was_rotation = False
        if not self._board.is_valid_position(piece.kind, piece.position, piece.rotation):
            self._piece = None
            self._state = GameState.GAME_OVER
            logger.info("Game over: %s blocked at spawn (score %d)", kind.name, self._stats.score)
            self._events.emit(GameOverEvent())
            return False
        self._piece = piece
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def on(self, event_type: EventType, handler: Handler) -> None:
        self._events.on(event_type, handler)

    def off(self, event_type: EventType, handler: Handler) -> bool:
        return self._events.off(event_type, handler)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def state(self) -> GameState:
        return self._state

    @property
    def stats(self) -> GameStats:
        return replace(self._stats)

    @property
    def grid(self) -> np.ndarray:
        return self._board.grid

    @property
    def active_piece(self) -> Optional[ActivePiece]:
        return self._piece.snapshot() if self._piece is not None else None

    @property
    def held_piece(self) -> Optional[PieceType]:
        return self._held

    @property
    def can_hold(self) -> bool:
        return self._can_hold

    @property
    def seed(self) -> int:
        return self._bag.seed

    def preview(self, count: Optional[int] = None) -> List[PieceType]:
        return self._bag.preview(self.config.preview_count if count is None else count)

    def ghost_position(self) -> Optional[Position]:
        piece = self._piece
        if piece is None:
            return None
        return self._board.ghost_position(piece.kind, piece.position, piece.rotation)

    def board_stats(self) -> BoardStats:
        return self._board.board_stats()
