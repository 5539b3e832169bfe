from __future__ import annotations

import argparse
import logging
from typing import Dict

import pygame

from block_marathon.game import Action, EventType, Game, GameConfig, GameEvent, GameState
from .renderer import Renderer

logger = logging.getLogger(__name__)


KEY_TO_ACTION: Dict[int, Action] = {
    pygame.K_LEFT: Action.MOVE_LEFT,
    pygame.K_RIGHT: Action.MOVE_RIGHT,
    pygame.K_UP: Action.ROTATE_CW,
    pygame.K_x: Action.ROTATE_CW,
    pygame.K_z: Action.ROTATE_CCW,
    pygame.K_DOWN: Action.SOFT_DROP,
    pygame.K_SPACE: Action.HARD_DROP,
    pygame.K_c: Action.HOLD,
    pygame.K_LSHIFT: Action.HOLD,
    pygame.K_p: Action.PAUSE,
    pygame.K_ESCAPE: Action.PAUSE,
}


def _log_event(event: GameEvent) -> None:
    logger.info("%s %s", event.type.value, event)


def run(seed: int | None = None, cell_size: int = 28) -> None:
    pygame.init()
    try:
        clock = pygame.time.Clock()
        game = Game(GameConfig(random_seed=seed))
        for event_type in (EventType.LINE_CLEAR, EventType.SPIN, EventType.COMBO, EventType.LEVEL_UP,
                           EventType.GAME_OVER, EventType.COMPLETED):
            game.on(event_type, _log_event)
        renderer = Renderer(cell_size=cell_size)

        screen = pygame.display.set_mode(renderer.window_size(game))
        pygame.display.set_caption("Block Marathon")
        game.start()

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_r and game.state in (GameState.GAME_OVER, GameState.COMPLETED):
                        game.start()
                        continue
                    action = KEY_TO_ACTION.get(event.key)
                    if action is not None:
                        game.handle_input(action, True)
                elif event.type == pygame.KEYUP:
                    action = KEY_TO_ACTION.get(event.key)
                    if action is not None:
                        game.handle_input(action, False)

            game.update(clock.tick(60))
            renderer.draw(screen, game)

            if game.state in (GameState.GAME_OVER, GameState.COMPLETED):
                font = pygame.font.SysFont(None, 32)
                label = "Game Over" if game.state is GameState.GAME_OVER else "Completed"
                text = font.render(f"{label} - Press R to restart", True, (255, 255, 255))
                rect = text.get_rect(center=(screen.get_width() // 2, 30))
                screen.blit(text, rect)
                pygame.display.flip()
    finally:
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--cell-size", type=int, default=28)
    p.add_argument("--log-level", default="INFO")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    run(seed=args.seed, cell_size=args.cell_size)


if __name__ == "__main__":  # pragma: no cover
    main()
