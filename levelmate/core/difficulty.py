"""Difficulty tiers and the final, possibly randomized, root pick."""

import logging
import math
import random
from typing import Dict, Optional, Sequence, Union

from levelmate.config import CONFIG, DifficultyProfile

logger = logging.getLogger(__name__)


class DifficultyPolicy:
    """Looks up named profiles and picks among ranked root moves.

    `ranked` is a sequence of (move, score) pairs with the best first. The
    pick window is the top K = max(1, round(n * randomness)) entries.
    """

    def __init__(self, profiles: Optional[Dict[str, DifficultyProfile]] = None,
                 default: Optional[str] = None):
        self.profiles = dict(profiles if profiles is not None else CONFIG.search.difficulties)
        self.default = default or CONFIG.search.default_difficulty
        if self.default not in self.profiles:
            raise ValueError(f"Default difficulty {self.default!r} is not a known profile")

    def names(self):
        return list(self.profiles)

    def profile(self, difficulty: Union[str, DifficultyProfile, None] = None) -> DifficultyProfile:
        if isinstance(difficulty, DifficultyProfile):
            return difficulty
        if difficulty in self.profiles:
            return self.profiles[difficulty]
        if difficulty is not None:
            logger.warning("Unknown difficulty %r, using %r", difficulty, self.default)
        return self.profiles[self.default]

    @staticmethod
    def window(count: int, randomness: float) -> int:
        # round half up, never below one candidate
        return max(1, int(math.floor(count * randomness + 0.5)))

    def choose(self, ranked: Sequence, randomness: float, rng: Optional[random.Random] = None):
        if not ranked:
            return None
        if not randomness or len(ranked) <= 1:
            return ranked[0][0]
        k = self.window(len(ranked), randomness)
        idx = (rng or random).randrange(k)
        return ranked[idx][0]
