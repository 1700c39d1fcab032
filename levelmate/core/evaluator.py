"""Static evaluator: material, piece-square tables and side-to-move mobility.

Scores are centipawns from White's point of view.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional

import chess

from levelmate.config import CONFIG, EvalConfig
from levelmate.core.position import MoveRecord, is_repeated

logger = logging.getLogger(__name__)

# Midgame piece-square tables, [row][file] with row 0 = rank 8, as seen by White.
# Black reads them mirrored (row 7 - r).
PST_PAWN = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (50, 50, 50, 50, 50, 50, 50, 50),
    (10, 10, 20, 30, 30, 20, 10, 10),
    (5, 5, 10, 25, 25, 10, 5, 5),
    (0, 0, 0, 20, 20, 0, 0, 0),
    (5, -5, -10, 0, 0, -10, -5, 5),
    (5, 10, 10, -20, -20, 10, 10, 5),
    (0, 0, 0, 0, 0, 0, 0, 0),
)

PST_KNIGHT = (
    (-50, -40, -30, -30, -30, -30, -40, -50),
    (-40, -20, 0, 5, 5, 0, -20, -40),
    (-30, 5, 10, 15, 15, 10, 5, -30),
    (-30, 0, 15, 20, 20, 15, 0, -30),
    (-30, 5, 15, 20, 20, 15, 5, -30),
    (-30, 0, 10, 15, 15, 10, 0, -30),
    (-40, -20, 0, 0, 0, 0, -20, -40),
    (-50, -40, -30, -30, -30, -30, -40, -50),
)

PST_BISHOP = (
    (-20, -10, -10, -10, -10, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 10, 10, 5, 0, -10),
    (-10, 5, 5, 10, 10, 5, 5, -10),
    (-10, 0, 10, 10, 10, 10, 0, -10),
    (-10, 10, 10, 10, 10, 10, 10, -10),
    (-10, 5, 0, 0, 0, 0, 5, -10),
    (-20, -10, -10, -10, -10, -10, -10, -20),
)

PST_ROOK = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (5, 10, 10, 10, 10, 10, 10, 5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (0, 0, 0, 5, 5, 0, 0, 0),
)

PST_QUEEN = (
    (-20, -10, -10, -5, -5, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 5, 5, 5, 0, -10),
    (-5, 0, 5, 5, 5, 5, 0, -5),
    (0, 0, 5, 5, 5, 5, 0, -5),
    (-10, 5, 5, 5, 5, 5, 0, -10),
    (-10, 0, 5, 0, 0, 0, 0, -10),
    (-20, -10, -10, -5, -5, -10, -10, -20),
)

PST_KING = (
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-20, -30, -30, -40, -40, -30, -30, -20),
    (-10, -20, -20, -20, -20, -20, -20, -10),
    (20, 20, 0, 0, 0, 0, 20, 20),
    (20, 30, 10, 0, 0, 10, 30, 20),
)

PST = MappingProxyType({
    chess.PAWN: PST_PAWN,
    chess.KNIGHT: PST_KNIGHT,
    chess.BISHOP: PST_BISHOP,
    chess.ROOK: PST_ROOK,
    chess.QUEEN: PST_QUEEN,
    chess.KING: PST_KING,
})


def safe_moves(position, notation: bool = False) -> List[MoveRecord]:
    """Legal moves of `position`; an enumeration failure counts as no moves."""
    try:
        return position.legal_moves(notation=notation) or []
    except Exception:
        logger.debug("Move enumeration failed for %s", position, exc_info=True)
        return []


class Evaluator:
    def __init__(self, cfg: Optional[EvalConfig] = None):
        self.cfg = cfg or CONFIG.eval
        self.values: Mapping[chess.PieceType, int] = MappingProxyType({
            pt: int(self.cfg.piece_values.get(chess.piece_name(pt).upper(), 0))
            for pt in chess.PIECE_TYPES
        })
        self.mate_score = self.cfg.mate_score
        self.mobility_weight = self.cfg.mobility_weight

    def value(self, piece_type: Optional[chess.PieceType]) -> int:
        return self.values.get(piece_type, 0) if piece_type else 0

    def evaluate(self, position) -> int:
        """Return static eval in centipawns, positive favors White."""
        if position.is_checkmate():
            return -self.mate_score if position.turn() == chess.WHITE else self.mate_score
        if position.is_draw() or is_repeated(position):
            return 0

        score = self.material(position)

        # Mobility of the side to move only.
        mobility = len(safe_moves(position))
        sign = 1 if position.turn() == chess.WHITE else -1
        score += sign * mobility * self.mobility_weight

        return score

    def material(self, position) -> int:
        """Material plus piece-square balance."""
        score = 0
        for r, row in enumerate(position.grid()):
            for c, piece in enumerate(row):
                if piece is None:
                    continue
                base = self.values[piece.piece_type]
                table = PST[piece.piece_type]
                if piece.color == chess.WHITE:
                    score += base + table[r][c]
                else:
                    score -= base + table[7 - r][c]
        return score
