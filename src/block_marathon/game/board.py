from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .pieces import PieceType, Position, RotationState, shape_cells

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardStats:
    height: int
    holes: int
    bumpiness: int


class Board:
    """Fixed-size playfield with hidden spawn rows on top.

    Cells hold 0 when empty and the `PieceType` value otherwise. Row 0 is the
    top of the hidden area; `y` grows downwards.
    """

    def __init__(self, width: int = 10, visible_height: int = 20, hidden_rows: int = 2) -> None:
        self.width = int(width)
        self.visible_height = int(visible_height)
        self.hidden_rows = int(hidden_rows)
        self.height = self.visible_height + self.hidden_rows
        self._grid = np.zeros((self.height, self.width), dtype=np.int8)

    def reset(self) -> None:
        self._grid.fill(0)

    @property
    def grid(self) -> np.ndarray:
        return self._grid.copy()

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Optional[PieceType]:
        if not self.is_inside(x, y):
            return None
        v = int(self._grid[y, x])
        return PieceType(v) if v else None

    def is_occupied(self, x: int, y: int) -> bool:
        """True for filled cells and for anything outside the grid."""
        if not self.is_inside(x, y):
            return True
        return bool(self._grid[y, x] != 0)

    def is_valid_position(self, kind: PieceType, position: Position, rotation: RotationState) -> bool:
        for x, y in shape_cells(kind, rotation, position):
            if x < 0 or x >= self.width:
                return False
            if y >= self.height:
                return False
            # Rows above the top are allowed so pieces can sit in the spawn area.
            if y >= 0 and self._grid[y, x] != 0:
                return False
        return True

    def lock_piece(self, kind: PieceType, position: Position, rotation: RotationState) -> None:
        """Write a piece into the grid. Cells outside the grid are skipped."""
        for x, y in shape_cells(kind, rotation, position):
            if self.is_inside(x, y):
                self._grid[y, x] = int(kind)

    def _is_row_full(self, row: int) -> bool:
        return bool(np.all(self._grid[row] != 0))

    def _remove_row(self, row: int) -> None:
        self._grid[1 : row + 1] = self._grid[0:row].copy()
        self._grid[0].fill(0)

    def clear_lines(self) -> List[int]:
        """Remove full rows and return their original indices, top to bottom."""
        cleared: List[int] = []
        row = self.height - 1
        while row >= 0:
            if self._is_row_full(row):
                # Each removal so far shifted this row's content down by one.
                cleared.append(row - len(cleared))
                self._remove_row(row)
            else:
                row -= 1
        if cleared:
            logger.debug("Cleared rows %s", sorted(cleared))
        return sorted(cleared)

    def ghost_position(self, kind: PieceType, position: Position, rotation: RotationState) -> Position:
        ghost = position
        while self.is_valid_position(kind, ghost.moved(0, 1), rotation):
            ghost = ghost.moved(0, 1)
        return ghost

    def column_heights(self) -> List[int]:
        heights: List[int] = []
        for x in range(self.width):
            filled = np.flatnonzero(self._grid[:, x])
            heights.append(self.height - int(filled[0]) if filled.size else 0)
        return heights

    def count_holes(self) -> int:
        holes = 0
        for x in range(self.width):
            column = self._grid[:, x]
            seen_block = False
            for cell in column:
                if cell != 0:
                    seen_block = True
                elif seen_block:
                    holes += 1
        return holes

    def board_stats(self) -> BoardStats:
        heights = self.column_heights()
        bumpiness = sum(abs(heights[i] - heights[i + 1]) for i in range(len(heights) - 1))
        return BoardStats(height=max(heights) if heights else 0, holes=self.count_holes(), bumpiness=bumpiness)
