from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, NamedTuple, Tuple

import numpy as np


class PieceType(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


class RotationState(IntEnum):
    SPAWN = 0
    RIGHT = 1
    DOUBLE = 2
    LEFT = 3

    def cw(self) -> "RotationState":
        return RotationState((self + 1) % 4)

    def ccw(self) -> "RotationState":
        return RotationState((self + 3) % 4)


class Position(NamedTuple):
    x: int
    y: int

    def moved(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)


Shape = np.ndarray
Offset = Tuple[int, int]


def _shapes(*rotations: List[List[int]]) -> Tuple[Shape, ...]:
    out = []
    for rows in rotations:
        arr = np.array(rows, dtype=np.int8)
        arr.setflags(write=False)
        out.append(arr)
    return tuple(out)


# One matrix per RotationState, in SPAWN, RIGHT, DOUBLE, LEFT order.
SHAPES: Dict[PieceType, Tuple[Shape, ...]] = {
    PieceType.I: _shapes(
        [[0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0]],
        [[0, 0, 0, 0], [0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0]],
        [[0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0]],
    ),
    PieceType.O: _shapes(
        [[0, 1, 1, 0], [0, 1, 1, 0], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 1, 1, 0], [0, 1, 1, 0], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 1, 1, 0], [0, 1, 1, 0], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 1, 1, 0], [0, 1, 1, 0], [0, 0, 0, 0], [0, 0, 0, 0]],
    ),
    PieceType.T: _shapes(
        [[0, 1, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 1, 0]],
        [[0, 1, 0], [1, 1, 0], [0, 1, 0]],
    ),
    PieceType.S: _shapes(
        [[0, 1, 1], [1, 1, 0], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 0, 1]],
        [[0, 0, 0], [0, 1, 1], [1, 1, 0]],
        [[1, 0, 0], [1, 1, 0], [0, 1, 0]],
    ),
    PieceType.Z: _shapes(
        [[1, 1, 0], [0, 1, 1], [0, 0, 0]],
        [[0, 0, 1], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 0], [0, 1, 1]],
        [[0, 1, 0], [1, 1, 0], [1, 0, 0]],
    ),
    PieceType.J: _shapes(
        [[1, 0, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 1], [0, 1, 0], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 0, 1]],
        [[0, 1, 0], [0, 1, 0], [1, 1, 0]],
    ),
    PieceType.L: _shapes(
        [[0, 0, 1], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 0], [0, 1, 1]],
        [[0, 0, 0], [1, 1, 1], [1, 0, 0]],
        [[1, 1, 0], [0, 1, 0], [0, 1, 0]],
    ),
}

# Offsets are in grid coordinates (y grows downwards) and are tried after the
# in-place rotation fails.
_R = RotationState
JLSTZ_KICKS: Dict[Tuple[RotationState, RotationState], Tuple[Offset, ...]] = {
    (_R.SPAWN, _R.RIGHT): ((-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (_R.RIGHT, _R.SPAWN): ((1, 0), (1, -1), (0, 2), (1, 2)),
    (_R.RIGHT, _R.DOUBLE): ((1, 0), (1, -1), (0, 2), (1, 2)),
    (_R.DOUBLE, _R.RIGHT): ((-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (_R.DOUBLE, _R.LEFT): ((1, 0), (1, 1), (0, -2), (1, -2)),
    (_R.LEFT, _R.DOUBLE): ((-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (_R.LEFT, _R.SPAWN): ((-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (_R.SPAWN, _R.LEFT): ((1, 0), (1, 1), (0, -2), (1, -2)),
}

I_KICKS: Dict[Tuple[RotationState, RotationState], Tuple[Offset, ...]] = {
    (_R.SPAWN, _R.RIGHT): ((-2, 0), (1, 0), (-2, -1), (1, 2)),
    (_R.RIGHT, _R.SPAWN): ((2, 0), (-1, 0), (2, 1), (-1, -2)),
    (_R.RIGHT, _R.DOUBLE): ((-1, 0), (2, 0), (-1, 2), (2, -1)),
    (_R.DOUBLE, _R.RIGHT): ((1, 0), (-2, 0), (1, -2), (-2, 1)),
    (_R.DOUBLE, _R.LEFT): ((2, 0), (-1, 0), (2, 1), (-1, -2)),
    (_R.LEFT, _R.DOUBLE): ((-2, 0), (1, 0), (-2, -1), (1, 2)),
    (_R.LEFT, _R.SPAWN): ((1, 0), (-2, 0), (1, -2), (-2, 1)),
    (_R.SPAWN, _R.LEFT): ((-1, 0), (2, 0), (-1, 2), (2, -1)),
}


def get_shape(kind: PieceType, rotation: RotationState) -> Shape:
    """Return the (read-only) cell matrix for a piece type at a rotation."""
    return SHAPES[kind][rotation]


def get_wall_kicks(kind: PieceType, from_rotation: RotationState, to_rotation: RotationState) -> List[Offset]:
    """Ordered kick offsets for a specific rotation transition.

    The O piece never kicks. Undefined transitions (e.g. 180 degree turns)
    yield an empty list.
    """
    if kind == PieceType.O:
        return []
    table = I_KICKS if kind == PieceType.I else JLSTZ_KICKS
    return list(table.get((RotationState(from_rotation), RotationState(to_rotation)), ()))


def shape_cells(kind: PieceType, rotation: RotationState, position: Position) -> List[Tuple[int, int]]:
    """Board (x, y) coordinates of the filled cells of a placed shape."""
    s = get_shape(kind, rotation)
    cells: List[Tuple[int, int]] = []
    for dy, dx in zip(*np.nonzero(s)):
        cells.append((position.x + int(dx), position.y + int(dy)))
    return cells


def spawn_position(kind: PieceType, board_width: int = 10) -> Position:
    width = get_shape(kind, RotationState.SPAWN).shape[1]
    # The bar spawns one row higher so its filled row sits in the hidden area.
    return Position((board_width - width) // 2, 0 if kind == PieceType.I else 1)


@dataclass
class ActivePiece:
    kind: PieceType
    position: Position
    rotation: RotationState = RotationState.SPAWN
    soft_locked: bool = False
    lock_timer: float = 0.0

    def cells(self) -> List[Tuple[int, int]]:
        return shape_cells(self.kind, self.rotation, self.position)

    def snapshot(self) -> "ActivePiece":
        return replace(self)
