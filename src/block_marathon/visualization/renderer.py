from __future__ import annotations

from typing import Tuple

import numpy as np
import pygame

from block_marathon.game import ActivePiece, Game, PieceType, RotationState, get_shape


def _color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        0: (20, 20, 26),
        1: (0, 240, 240),  # I
        2: (240, 240, 0),  # O
        3: (160, 0, 240),  # T
        4: (0, 240, 0),    # S
        5: (240, 0, 0),    # Z
        6: (0, 0, 240),    # J
        7: (240, 160, 0),  # L
    }
    return palette.get(abs(v), (200, 200, 200))


class Renderer:
    def __init__(self, cell_size: int = 30, margin: int = 20, panel_cells: int = 6) -> None:
        self.cell_size = cell_size
        self.margin = margin
        self.panel_cells = panel_cells
        self._font = None

    def window_size(self, game: Game) -> Tuple[int, int]:
        cfg = game.config
        width = self.margin * 3 + (cfg.width + self.panel_cells) * self.cell_size
        height = self.margin * 2 + cfg.visible_height * self.cell_size
        return width, height

    def _cell_rect(self, x: int, y: int, hidden: int) -> pygame.Rect:
        return pygame.Rect(
            self.margin + x * self.cell_size,
            self.margin + (y - hidden) * self.cell_size,
            self.cell_size - 1,
            self.cell_size - 1,
        )

    def _draw_grid(self, screen: pygame.Surface, grid: np.ndarray, hidden: int) -> None:
        h, w = grid.shape
        for y in range(hidden, h):
            for x in range(w):
                pygame.draw.rect(screen, _color_for_value(int(grid[y, x])), self._cell_rect(x, y, hidden))

    def _draw_mini(self, screen: pygame.Surface, kind: PieceType, x0: int, y0: int) -> None:
        shape = get_shape(kind, RotationState.SPAWN)
        size = self.cell_size // 2
        for py, px in zip(*np.nonzero(shape)):
            rect = pygame.Rect(x0 + int(px) * size, y0 + int(py) * size, size - 1, size - 1)
            pygame.draw.rect(screen, _color_for_value(int(kind)), rect)

    def _draw_panel(self, screen: pygame.Surface, game: Game) -> None:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        x0 = self.margin * 2 + game.config.width * self.cell_size
        y = self.margin
        stats = game.stats
        for line in (f"score {stats.score}", f"lines {stats.lines}", f"level {stats.level}", "hold"):
            screen.blit(self._font.render(line, True, (230, 230, 230)), (x0, y))
            y += 24
        if game.held_piece is not None:
            self._draw_mini(screen, game.held_piece, x0, y)
        y += self.cell_size * 2
        screen.blit(self._font.render("next", True, (230, 230, 230)), (x0, y))
        y += 24
        for kind in game.preview():
            self._draw_mini(screen, kind, x0, y)
            y += self.cell_size * 2

    def draw(self, screen: pygame.Surface, game: Game) -> None:
        hidden = game.config.hidden_rows
        screen.fill((10, 10, 14))
        self._draw_grid(screen, game.grid, hidden)

        piece = game.active_piece
        ghost = game.ghost_position()
        if piece is not None and ghost is not None:
            color = _color_for_value(int(piece.kind))
            for x, y in ActivePiece(piece.kind, ghost, piece.rotation).cells():
                if y >= hidden:
                    pygame.draw.rect(screen, color, self._cell_rect(x, y, hidden), 2)
            for x, y in piece.cells():
                if y >= hidden:
                    pygame.draw.rect(screen, color, self._cell_rect(x, y, hidden))

        self._draw_panel(screen, game)
        pygame.display.flip()
