"""Engine wrapper: owns a game position and asks the search for moves."""

import logging
import random
import time
from typing import Callable, Optional

from levelmate.core.position import BoardPosition, IllegalMoveError, MoveRecord
from levelmate.core.search import SearchEngine

logger = logging.getLogger(__name__)


class Engine:
    def __init__(self, fen: Optional[str] = None, search: Optional[SearchEngine] = None,
                 sleep: Callable[[float], None] = time.sleep, rng: Optional[random.Random] = None):
        self.position = BoardPosition(fen)
        self.search = search or SearchEngine()
        self._sleep = sleep
        self._rng = rng or random.Random()

    def get_best_move(self, difficulty: Optional[str] = None) -> Optional[MoveRecord]:
        """Search at `difficulty`; if that raises, retry once at the default tier."""
        try:
            return self.search.find_best_move(self.position, difficulty)
        except Exception:
            logger.exception("Search failed at difficulty %r", difficulty)

        fallback = self.search.policy.default
        if self.search.policy.profile(difficulty).name == fallback:
            return None
        logger.warning("Falling back to %r difficulty", fallback)
        try:
            return self.search.find_best_move(self.position, fallback)
        except Exception:
            logger.exception("Fallback search failed")
            return None

    def think_delay(self, difficulty: Optional[str] = None) -> float:
        """Seconds a host should pause before showing the engine's move."""
        low, high = self.search.policy.profile(difficulty).think_ms
        if high <= 0:
            return 0.0
        return self._rng.randint(low, high) / 1000

    def play_engine_move(self, difficulty: Optional[str] = None, pace: bool = False) -> Optional[MoveRecord]:
        """Pick and push the engine's move. Returns None when the game is decided."""
        if pace:
            self._sleep(self.think_delay(difficulty))
        move = self.get_best_move(difficulty)
        if move is None:
            return None
        return self.position.apply(move)

    def make_move(self, move_uci: str) -> MoveRecord:
        record = self.position.apply(move_uci)
        if record is None:
            raise IllegalMoveError(f"Illegal move: {move_uci}")
        return record

    def undo_move(self):
        self.position.undo()

    def is_game_over(self) -> bool:
        return self.position.is_game_over()

    def result(self) -> str:
        return self.position.board.result(claim_draw=True)
