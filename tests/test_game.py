from __future__ import annotations

import random

import pytest

from block_marathon.game import (
    Action,
    ActivePiece,
    EventType,
    Game,
    GameConfig,
    GameState,
    GameStats,
    PieceType,
    Position,
    RotationState,
    SevenBag,
    Timing,
    spawn_position,
)


@pytest.fixture
def game() -> Game:
    g = Game(GameConfig(random_seed=1234))
    g.start()
    return g


def _place(game: Game, kind: PieceType, x: int, y: int, rotation: RotationState = RotationState.SPAWN) -> None:
    game._piece = ActivePiece(kind, Position(x, y), rotation)


def _fill(game: Game, cells, kind: PieceType = PieceType.Z) -> None:
    for x, y in cells:
        game._board._grid[y, x] = int(kind)


def _record(game: Game, *types: EventType) -> list:
    seen = []
    for event_type in types:
        game.on(event_type, seen.append)
    return seen


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------
def test_starts_idle_and_ignores_gameplay():
    g = Game(GameConfig(random_seed=1))
    assert g.state is GameState.IDLE
    assert g.active_piece is None
    assert g.ghost_position() is None
    g.update(10_000)
    assert g.handle_input(Action.MOVE_LEFT) is False
    assert g.handle_input(Action.PAUSE) is False
    assert g.state is GameState.IDLE


def test_start_spawns_first_bag_piece(game):
    expected = SevenBag(1234).next()
    piece = game.active_piece
    assert game.state is GameState.PLAYING
    assert piece.kind is expected
    assert piece.position == spawn_position(expected)
    assert piece.rotation is RotationState.SPAWN


def test_reset_clears_everything(game):
    game.handle_input(Action.HARD_DROP)
    game.handle_input(Action.HOLD)
    assert game.stats.score > 0
    game.reset()
    assert game.state is GameState.IDLE
    assert game.stats == GameStats()
    assert game.active_piece is None
    assert game.held_piece is None
    assert not game.grid.any()


def test_same_seed_replays_same_pieces():
    a = Game(GameConfig(random_seed=77))
    b = Game(GameConfig(random_seed=77))
    a.start()
    b.start()
    for _ in range(6):
        assert a.active_piece.kind is b.active_piece.kind
        a.handle_input(Action.HARD_DROP)
        b.handle_input(Action.HARD_DROP)


def test_pause_toggles_and_freezes(game):
    before = game.active_piece
    assert game.handle_input(Action.PAUSE) is True
    assert game.state is GameState.PAUSED
    game.update(10_000)
    assert game.handle_input(Action.MOVE_LEFT) is False
    assert game.active_piece == before
    assert game.handle_input(Action.PAUSE, pressed=False) is False
    assert game.handle_input(Action.PAUSE) is True
    assert game.state is GameState.PLAYING


# ----------------------------------------------------------------------
# Movement and rotation
# ----------------------------------------------------------------------
def test_move_left_right_and_walls(game):
    x = game.active_piece.position.x
    assert game.handle_input(Action.MOVE_LEFT) is True
    assert game.active_piece.position.x == x - 1
    game.handle_input(Action.MOVE_LEFT, pressed=False)
    assert game.handle_input(Action.MOVE_RIGHT) is True
    assert game.active_piece.position.x == x
    for _ in range(20):
        game.handle_input(Action.MOVE_LEFT)
    leftmost = game.active_piece.position.x
    assert game.handle_input(Action.MOVE_LEFT) is False
    assert game.active_piece.position.x == leftmost


def test_rotate_cw_and_ccw(game):
    _place(game, PieceType.T, 3, 5)
    assert game.handle_input(Action.ROTATE_CW) is True
    assert game.active_piece.rotation is RotationState.RIGHT
    assert game.handle_input(Action.ROTATE_CCW) is True
    assert game.handle_input(Action.ROTATE_CCW) is True
    assert game.active_piece.rotation is RotationState.LEFT


def test_rotation_uses_first_fitting_kick_and_stops(game):
    # T pointing right against the left wall; in-place rotation pokes out of the board.
    _place(game, PieceType.T, -1, 10, RotationState.RIGHT)
    _fill(game, [(2, 11)])  # blocks the first kick (1, 0)
    calls = []
    original = game._board.is_valid_position

    def spy(kind, position, rotation):
        calls.append(position)
        return original(kind, position, rotation)

    game._board.is_valid_position = spy
    assert game.handle_input(Action.ROTATE_CW) is True
    piece = game.active_piece
    assert piece.rotation is RotationState.DOUBLE
    assert piece.position == Position(0, 9)  # second kick (1, -1)
    assert calls == [Position(-1, 10), Position(0, 10), Position(0, 9)]


def test_blocked_rotation_is_rejected(game):
    _place(game, PieceType.I, 3, 5)
    own = set(game.active_piece.cells())
    _fill(game, [(x, y) for x in range(10) for y in range(22) if (x, y) not in own])
    before = game.active_piece
    assert game.handle_input(Action.ROTATE_CW) is False
    assert game.handle_input(Action.ROTATE_CCW) is False
    assert game.active_piece == before


def test_soft_drop_scores_per_cell(game):
    y = game.active_piece.position.y
    assert game.handle_input(Action.SOFT_DROP) is True
    assert game.active_piece.position.y == y + 1
    assert game.stats.score == 1
    assert game.handle_input(Action.SOFT_DROP, pressed=False) is False


def test_hard_drop_scores_distance_and_locks(game):
    piece = game.active_piece
    ghost = game.ghost_position()
    next_kind = game.preview(1)[0]
    locks = _record(game, EventType.PIECE_LOCK)
    assert game.handle_input(Action.HARD_DROP) is True
    assert game.stats.score == 2 * (ghost.y - piece.position.y)
    assert len(locks) == 1
    assert locks[0].piece.position == ghost
    for x, y in ActivePiece(piece.kind, ghost, piece.rotation).cells():
        assert game.grid[y, x] == int(piece.kind)
    assert game.active_piece.kind is next_kind


# ----------------------------------------------------------------------
# Timing
# ----------------------------------------------------------------------
def test_gravity_catches_up_on_long_frames(game):
    _place(game, PieceType.T, 3, 2)
    interval = game.timing.drop_interval_ms(0)
    game.update(interval * 0.5)
    assert game.active_piece.position.y == 2
    game.update(interval * 0.5 + 1)
    assert game.active_piece.position.y == 3
    game.update(interval * 3 + 1)
    assert game.active_piece.position.y == 6


def test_auto_shift_applies_catch_up_shifts(game):
    _place(game, PieceType.T, 0, 5)
    game.handle_input(Action.MOVE_RIGHT)
    assert game.active_piece.position.x == 1
    game.update(100)
    assert game.active_piece.position.x == 1
    game.update(230)  # 330 held: 160 ms past the delay, three 50 ms periods
    assert game.active_piece.position.x == 4
    game.handle_input(Action.MOVE_RIGHT, pressed=False)
    game.update(200)
    assert game.active_piece.position.x == 4


def test_release_of_other_direction_keeps_shift_armed(game):
    _place(game, PieceType.T, 0, 5)
    game.handle_input(Action.MOVE_RIGHT)
    assert game.handle_input(Action.MOVE_LEFT, pressed=False) is False
    game.update(230)
    assert game.active_piece.position.x == 2


def test_release_while_paused_disarms_auto_shift(game):
    _place(game, PieceType.T, 0, 5)
    game.handle_input(Action.MOVE_RIGHT)
    game.handle_input(Action.PAUSE)
    assert game.handle_input(Action.MOVE_RIGHT, pressed=False) is True
    game.handle_input(Action.PAUSE)
    game.update(400)
    assert game.active_piece.position.x == 1


def test_lock_timer_stays_zero_in_the_air(game):
    _place(game, PieceType.O, 3, 5)
    game.update(100)
    piece = game.active_piece
    assert not piece.soft_locked
    assert piece.lock_timer == 0


def test_lock_delay_is_reset_by_moves(game):
    _place(game, PieceType.O, 3, 20)
    game._piece.soft_locked = True
    game.update(400)
    assert game.active_piece.lock_timer == pytest.approx(400)
    assert game.handle_input(Action.MOVE_LEFT) is True
    game.handle_input(Action.MOVE_LEFT, pressed=False)
    assert game.active_piece.lock_timer == 0
    game.update(400)
    assert game.active_piece.kind is PieceType.O
    assert game.active_piece.soft_locked
    game.update(100)
    assert game.grid[21, 3] == int(PieceType.O)
    assert game.grid[20, 4] == int(PieceType.O)


def test_failed_gravity_marks_soft_lock_then_locks():
    g = Game(GameConfig(random_seed=5), timing=Timing(lock_delay_ms=2000))
    g.start()
    _place(g, PieceType.O, 3, 20)
    interval = g.timing.drop_interval_ms(0)
    g.update(interval + 1)
    assert g.active_piece.soft_locked
    g.update(2000)
    assert g.grid[21, 4] == int(PieceType.O)
    assert not g.active_piece.soft_locked


# ----------------------------------------------------------------------
# Hold
# ----------------------------------------------------------------------
def test_hold_once_per_piece(game):
    first = game.active_piece.kind
    second = game.preview(1)[0]
    assert game.handle_input(Action.HOLD) is True
    assert game.held_piece is first
    assert game.active_piece.kind is second
    assert game.can_hold is False
    assert game.handle_input(Action.HOLD) is False
    assert game.held_piece is first

    game.handle_input(Action.HARD_DROP)
    assert game.can_hold is True
    third = game.active_piece.kind
    assert game.handle_input(Action.HOLD) is True
    assert game.active_piece.kind is first
    assert game.active_piece.position == spawn_position(first)
    assert game.held_piece is third


# ----------------------------------------------------------------------
# Locking, scoring and events
# ----------------------------------------------------------------------
def test_line_clear_through_hard_drop(game):
    _fill(game, [(x, 21) for x in range(4, 10)], PieceType.L)
    _place(game, PieceType.I, 0, 0)
    cleared = _record(game, EventType.LINE_CLEAR)
    game.handle_input(Action.HARD_DROP)
    assert [e.rows for e in cleared] == [(21,)]
    stats = game.stats
    assert stats.lines == 1
    assert stats.combo == 1
    assert stats.score == 2 * 20 + 100 + 50
    assert not game.grid[21].any()


def test_combo_builds_and_resets(game):
    combos = _record(game, EventType.COMBO)
    game.apply_line_clear(1)
    game.apply_line_clear(2)
    assert game.stats.combo == 2
    assert [e.combo for e in combos] == [2]
    _place(game, PieceType.O, 0, 0)
    game.handle_input(Action.HARD_DROP)
    assert game.stats.combo == 0


@pytest.mark.parametrize("level", [0, 3, 12])
def test_back_to_back_four_line_clears(game, level):
    game._stats = GameStats(lines=level * 10, level=level)
    gained = game.apply_line_clear(4)
    assert gained == 800 * (level + 1) + 50 * 1 * (level + 1)
    assert game.stats.back_to_back is True
    gained = game.apply_line_clear(4)
    assert gained == 800 * 1.5 * (level + 1) + 50 * 2 * (level + 1)
    game.apply_line_clear(1)
    assert game.stats.back_to_back is False


def test_level_follows_lines_and_caps():
    g = Game(GameConfig(random_seed=3))
    g.start()
    levels = _record(g, EventType.LEVEL_UP)
    rng = random.Random(0)
    previous = 0
    while g.stats.lines < 320:
        g.apply_line_clear(rng.randint(1, 4))
        stats = g.stats
        assert stats.level == min(stats.lines // 10, 29)
        assert stats.level >= previous
        previous = stats.level
    assert g.stats.level == 29
    assert [e.level for e in levels] == sorted({e.level for e in levels})
    assert levels[-1].level == 29


def test_spin_detected_after_rotation_into_corners(game):
    _fill(game, [(0, 21), (2, 21), (2, 19)])
    _place(game, PieceType.T, 0, 19, RotationState.LEFT)
    events = _record(game, EventType.SPIN, EventType.PIECE_LOCK)
    assert game.handle_input(Action.ROTATE_CW) is True
    assert game.active_piece.position == Position(0, 19)
    game.handle_input(Action.HARD_DROP)
    assert [e.type for e in events] == [EventType.SPIN, EventType.PIECE_LOCK]


def test_no_spin_without_rotation(game):
    _fill(game, [(0, 21), (2, 21), (2, 19)])
    _place(game, PieceType.T, 0, 19)
    spins = _record(game, EventType.SPIN)
    game.handle_input(Action.HARD_DROP)
    assert spins == []


def test_blocked_spawn_ends_the_game(game):
    _fill(game, [(x, y) for x in range(3, 7) for y in (1, 2)])
    _place(game, PieceType.O, 6, 5)
    overs = _record(game, EventType.GAME_OVER)
    game.handle_input(Action.HARD_DROP)
    assert game.state is GameState.GAME_OVER
    assert len(overs) == 1
    assert game.active_piece is None
    assert game.handle_input(Action.PAUSE) is False
    game.update(1000)
    assert game.state is GameState.GAME_OVER
    game.start()
    assert game.state is GameState.PLAYING


def test_reaching_line_target_completes():
    g = Game(GameConfig(random_seed=9, line_target=1))
    g.start()
    _fill(g, [(x, 21) for x in range(4, 10)])
    _place(g, PieceType.I, 0, 0)
    done = _record(g, EventType.COMPLETED, EventType.GAME_OVER)
    g.handle_input(Action.HARD_DROP)
    assert g.state is GameState.COMPLETED
    assert [e.type for e in done] == [EventType.COMPLETED]
    assert g.active_piece is None
    assert g.handle_input(Action.HARD_DROP) is False


# ----------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------
def test_queries_are_snapshots(game):
    piece = game.active_piece
    piece.position = Position(0, 0)
    assert game.active_piece.position != Position(0, 0)
    stats = game.stats
    stats.score = 999
    assert game.stats.score == 0
    grid = game.grid
    grid[21, 0] = 1
    assert not game.grid.any()


def test_preview_predicts_spawns(game):
    upcoming = game.preview()
    assert len(upcoming) == 5
    spawned = []
    for _ in range(5):
        game.handle_input(Action.HARD_DROP)
        spawned.append(game.active_piece.kind)
    assert spawned == upcoming


def test_ghost_matches_hard_drop(game):
    ghost = game.ghost_position()
    piece = game.active_piece
    assert ghost.x == piece.position.x
    assert ghost.y >= piece.position.y
