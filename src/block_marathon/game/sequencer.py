from __future__ import annotations

import logging
import time
from typing import List, Optional

from .pieces import PieceType

logger = logging.getLogger(__name__)


BAG_ORDER = (
    PieceType.I,
    PieceType.O,
    PieceType.T,
    PieceType.S,
    PieceType.Z,
    PieceType.J,
    PieceType.L,
)


class LinearCongruential:
    """Reproducible generator: state <- (state * 1664525 + 1013904223) mod 2**31."""

    MULTIPLIER = 1664525
    INCREMENT = 1013904223
    MODULUS = 2 ** 31

    def __init__(self, seed: int) -> None:
        self.state = int(seed) % self.MODULUS

    def random(self) -> float:
        self.state = (self.state * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self.state / self.MODULUS

    def copy(self) -> "LinearCongruential":
        clone = LinearCongruential(0)
        clone.state = self.state
        return clone


def shuffled_bag(rng: LinearCongruential) -> List[PieceType]:
    bag = list(BAG_ORDER)
    # Fisher-Yates, last index first
    for i in range(len(bag) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        bag[i], bag[j] = bag[j], bag[i]
    return bag


class SevenBag:
    """7-bag randomizer with a current and a next permutation buffer.

    Every aligned group of seven draws contains each piece type exactly once.
    `preview` looks ahead on a copy of the generator, so it never changes what
    later `next` calls return.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = 0
        self._rng = LinearCongruential(0)
        self._current: List[PieceType] = []
        self._next: List[PieceType] = []
        self.reset(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = time.time_ns() // 1_000_000
        self.seed = int(seed)
        self._rng = LinearCongruential(self.seed)
        self._current = shuffled_bag(self._rng)
        self._next = shuffled_bag(self._rng)
        logger.debug("Sequencer reset with seed %d", self.seed)

    def next(self) -> PieceType:
        if not self._current:
            self._current = self._next
            self._next = shuffled_bag(self._rng)
        return self._current.pop(0)

    def preview(self, count: int) -> List[PieceType]:
        upcoming = self._current + self._next
        if len(upcoming) < count:
            # Same generator state the real refills will start from.
            rng = self._rng.copy()
            while len(upcoming) < count:
                upcoming.extend(shuffled_bag(rng))
        return upcoming[: max(0, count)]
