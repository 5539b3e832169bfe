from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from block_marathon.game import Action, Game, GameConfig, GameState


_PALETTE = {
    0: (30, 30, 36),
    1: (0, 240, 240),  # I
    2: (240, 240, 0),  # O
    3: (160, 0, 240),  # T
    4: (0, 240, 0),    # S
    5: (240, 0, 0),    # Z
    6: (0, 0, 240),    # J
    7: (240, 160, 0),  # L
}


class MarathonEnv(gym.Env):
    """One environment step is one controller frame.

    Actions (8 total):
      0: Move Left
      1: Move Right
      2: Rotate CW
      3: Rotate CCW
      4: Soft Drop
      5: Hard Drop
      6: Hold
      7: No-op

    Moves are pressed and released within the step, so auto-shift never arms.
    Reward is the change in engine score.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 60}

    ACT_NOOP = 7
    _ACTIONS = (
        Action.MOVE_LEFT,
        Action.MOVE_RIGHT,
        Action.ROTATE_CW,
        Action.ROTATE_CCW,
        Action.SOFT_DROP,
        Action.HARD_DROP,
        Action.HOLD,
    )

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        max_episode_steps: int = 50_000,
        invalid_action_penalty: float = 0.0,
    ) -> None:
        super().__init__()
        self.game = Game(config)
        self.render_mode = render_mode
        self.max_episode_steps = int(max_episode_steps)
        self.invalid_action_penalty = float(invalid_action_penalty)

        cfg = self.game.config
        n_types = len(_PALETTE) - 1
        self.observation_space = spaces.Dict(
            {
                # locked cells 1..7, active piece overlaid as -1..-7
                "board": spaces.Box(low=-n_types, high=n_types, shape=(cfg.total_height, cfg.width), dtype=np.int8),
                "preview": spaces.Box(low=1, high=n_types, shape=(cfg.preview_count,), dtype=np.int8),
                "hold": spaces.Discrete(n_types + 1),
            }
        )
        self.action_space = spaces.Discrete(len(self._ACTIONS) + 1)

        self._steps = 0
        self._last_obs: Optional[Dict[str, Any]] = None

    def _get_obs(self) -> Dict[str, Any]:
        board = self.game.grid
        piece = self.game.active_piece
        if piece is not None:
            for x, y in piece.cells():
                if 0 <= y < board.shape[0] and 0 <= x < board.shape[1]:
                    board[y, x] = -int(piece.kind)
        preview = np.array([int(t) for t in self.game.preview()], dtype=np.int8)
        held = self.game.held_piece
        return {
            "board": board,
            "preview": preview,
            "hold": int(held) if held is not None else 0,
        }

    def _get_info(self) -> Dict[str, Any]:
        stats = self.game.stats
        features = self.game.board_stats()
        return {
            "score": stats.score,
            "lines": stats.lines,
            "level": stats.level,
            "combo": stats.combo,
            "state": self.game.state.value,
            "height": features.height,
            "holes": features.holes,
            "bumpiness": features.bumpiness,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        self.game.start(seed)
        self._steps = 0
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int):
        action = int(action)
        score_before = self.game.stats.score
        accepted = True
        if action != self.ACT_NOOP:
            game_action = self._ACTIONS[action]
            accepted = self.game.handle_input(game_action, True)
            if game_action in (Action.MOVE_LEFT, Action.MOVE_RIGHT):
                self.game.handle_input(game_action, False)
        self.game.update(self.game.timing.frame_ms)
        self._steps += 1

        reward = float(self.game.stats.score - score_before)
        if not accepted:
            reward += self.invalid_action_penalty

        terminated = self.game.state in (GameState.GAME_OVER, GameState.COMPLETED)
        truncated = self._steps >= self.max_episode_steps and not terminated

        obs = self._get_obs()
        info = self._get_info()
        info["accepted"] = accepted
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        board = self._last_obs["board"] if self._last_obs is not None else self.game.grid
        hidden = self.game.config.hidden_rows
        visible = board[hidden:]
        cell = 12
        h, w = visible.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = _PALETTE[abs(int(visible[y, x]))]
        return img

    def close(self) -> None:
        pass
