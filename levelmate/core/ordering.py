"""Capture-first move ordering (MVV-LVA flavoured)."""

from typing import List, Mapping, Sequence

import chess

from levelmate.core.position import MoveRecord


def capture_score(move: MoveRecord, values: Mapping[chess.PieceType, int]) -> int:
    """10 x victim value - attacker value. Quiet moves rank below every capture."""
    victim = values.get(move.captured, 0) if move.captured else 0
    attacker = values.get(move.piece, 0) if move.piece else 0
    return victim * 10 - attacker


def order_moves(moves: Sequence[MoveRecord], values: Mapping[chess.PieceType, int]) -> List[MoveRecord]:
    # sorted() is stable, so equal scores keep generation order
    return sorted(moves, key=lambda m: capture_score(m, values), reverse=True)
