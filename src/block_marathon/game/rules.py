from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScoringRules:
    line_clear_scores: tuple[int, int, int, int] = (100, 300, 500, 800)
    back_to_back_multiplier: float = 1.5
    combo_bonus: int = 50
    soft_drop_per_cell: int = 1
    hard_drop_per_cell: int = 2
    lines_per_level: int = 10
    max_level: int = 29

    def base_for_lines(self, lines: int) -> int:
        if lines <= 0:
            return 0
        return self.line_clear_scores[min(lines, 4) - 1]

    def score_for_clear(self, lines: int, level: int, combo: int, back_to_back: bool) -> int:
        """Points for one clear. `back_to_back` is whether the previous clear was four lines."""
        if lines <= 0:
            return 0
        base = float(self.base_for_lines(lines))
        if lines >= 4 and back_to_back:
            base *= self.back_to_back_multiplier
        multiplier = level + 1
        return int(base * multiplier + self.combo_bonus * combo * multiplier)

    def level_for_lines(self, lines: int) -> int:
        return min(lines // self.lines_per_level, self.max_level)


@dataclass
class Timing:
    das_delay_ms: float = 170.0
    das_period_ms: float = 50.0
    lock_delay_ms: float = 500.0
    frames_per_second: int = 60

    def __post_init__(self) -> None:
        if self.frames_per_second <= 0:
            raise ValueError(f"frames_per_second must be > 0, got {self.frames_per_second}")
        if self.das_period_ms <= 0:
            raise ValueError(f"das_period_ms must be > 0, got {self.das_period_ms}")
        if self.das_delay_ms < 0 or self.lock_delay_ms < 0:
            raise ValueError("das_delay_ms and lock_delay_ms must be >= 0")

    @property
    def frame_ms(self) -> float:
        return 1000.0 / self.frames_per_second

    @staticmethod
    def frames_per_drop(level: int) -> int:
        return max(1, 48 - level * 2)

    def drop_interval_ms(self, level: int) -> float:
        return self.frames_per_drop(level) * self.frame_ms
