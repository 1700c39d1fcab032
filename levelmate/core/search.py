"""Bounded alpha-beta minimax with iterative deepening at the root.

Every node first checks the node ceiling, then the deadline, then depth and
game-over status, and only then expands. Positions are explored in place:
each child is applied inside ``applied()`` so the undo runs on every exit path,
including pruning breaks.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional

import chess

from levelmate.core.difficulty import DifficultyPolicy
from levelmate.core.evaluator import Evaluator, safe_moves
from levelmate.core.ordering import order_moves
from levelmate.core.position import MoveRecord, applied
from levelmate.core.utils import format_info

logger = logging.getLogger(__name__)

INF = 1000000000


@dataclass
class SearchBudget:
    node_limit: int
    deadline: Optional[float] = None
    nodes: int = 0

    def exhausted(self) -> bool:
        return self.nodes >= self.node_limit

    def expired(self, now: float) -> bool:
        return self.deadline is not None and now >= self.deadline


class ScoredMove(NamedTuple):
    move: MoveRecord
    score: int


@dataclass
class SearchResult:
    best_move: Optional[MoveRecord]
    score: int
    depth: int = 0
    nodes: int = 0
    ranked: List[ScoredMove] = field(default_factory=list)
    mate_in_one: bool = False


def _better(score: int, incumbent: int, maximizing: bool) -> bool:
    return score > incumbent if maximizing else score < incumbent


def _rank(scored: List[ScoredMove], maximizing: bool) -> List[ScoredMove]:
    # stable: among equal scores the earlier ordered move stays first
    return sorted(scored, key=lambda e: e.score, reverse=maximizing)


class SearchEngine:
    def __init__(self, evaluator: Optional[Evaluator] = None,
                 policy: Optional[DifficultyPolicy] = None,
                 clock: Optional[Callable[[], float]] = None,
                 rng: Optional[random.Random] = None):
        self.evaluator = evaluator or Evaluator()
        self.policy = policy or DifficultyPolicy()
        self.clock = clock or time.monotonic
        self.rng = rng or random.Random()

    def find_best_move(self, position, difficulty=None) -> Optional[MoveRecord]:
        """Pick a move for the side to move, or None if the game is already decided."""
        profile = self.policy.profile(difficulty)
        return self.select(self.search_best_move(position, profile), profile)

    def select(self, result: "SearchResult", difficulty=None) -> Optional[MoveRecord]:
        """Final pick among the ranked root moves; a mate in one is never randomized."""
        if result.best_move is None or result.mate_in_one:
            return result.best_move
        profile = self.policy.profile(difficulty)
        return self.policy.choose(result.ranked, profile.randomness, self.rng)

    def search_best_move(self, position, difficulty=None) -> SearchResult:
        profile = self.policy.profile(difficulty)
        start = self.clock()
        nodes = 0

        if position.is_checkmate() or position.is_draw():
            return SearchResult(None, self.evaluator.evaluate(position))

        moves = order_moves(safe_moves(position, notation=True), self.evaluator.values)
        if not moves:
            return SearchResult(None, self.evaluator.evaluate(position))

        maximizing = position.turn() == chess.WHITE
        mate = self.evaluator.mate_score if maximizing else -self.evaluator.mate_score

        # Mate in one, single ply only
        for move in moves:
            with applied(position, move):
                mated = position.is_checkmate()
            if mated:
                logger.debug("Mate in one: %s", move)
                return SearchResult(move, mate, depth=1, ranked=[ScoredMove(move, mate)],
                                    mate_in_one=True)

        deadline = start + profile.time_ms / 1000 if profile.time_ms else None
        best = ScoredMove(moves[0], -INF if maximizing else INF)
        ranked: List[ScoredMove] = []
        completed = 0

        # Iterative Deepening
        for depth in range(1, profile.depth + 1):
            budget = SearchBudget(profile.node_limit, deadline)
            scored: List[ScoredMove] = []

            for move in moves:
                with applied(position, move):
                    score = self.search(position, depth - 1, -INF, INF, not maximizing, budget)
                scored.append(ScoredMove(move, score))
                if budget.expired(self.clock()):
                    break

            nodes += budget.nodes

            if len(scored) == len(moves):
                ranked = _rank(scored, maximizing)
                best = ranked[0]
                completed = depth
            else:
                # Timed out mid-depth: only a strictly better partial result replaces the incumbent.
                for entry in scored:
                    if _better(entry.score, best.score, maximizing):
                        best = entry
                previous = ranked or _rank(scored, maximizing)
                ranked = [best] + [e for e in previous if e.move != best.move]

            logger.debug(format_info(depth, best.score, nodes, self.clock() - start,
                                     best.move, self.evaluator.mate_score))

            if budget.expired(self.clock()):
                break

        if not ranked:
            ranked = [best]
        return SearchResult(best.move, best.score, completed, nodes, ranked)

    def search(self, position, depth: int, alpha: int, beta: int, maximizing: bool,
               budget: SearchBudget) -> int:
        if budget.exhausted():
            return self.evaluator.evaluate(position)
        budget.nodes += 1
        if budget.expired(self.clock()):
            return self.evaluator.evaluate(position)
        if depth <= 0 or position.is_game_over():
            return self.evaluator.evaluate(position)

        moves = order_moves(safe_moves(position), self.evaluator.values)
        if not moves:
            return self.evaluator.evaluate(position)

        if maximizing:
            best = -INF
            for move in moves:
                with applied(position, move):
                    val = self.search(position, depth - 1, alpha, beta, False, budget)
                if val > best:
                    best = val
                if val > alpha:
                    alpha = val
                if alpha >= beta:
                    break
            return best

        best = INF
        for move in moves:
            with applied(position, move):
                val = self.search(position, depth - 1, alpha, beta, True, budget)
            if val < best:
                best = val
            if val < beta:
                beta = val
            if alpha >= beta:
                break
        return best
