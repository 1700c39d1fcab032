"""Position wrapper over python-chess implementing the rules contract the search relies on."""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Optional, Protocol, Union

import chess

# Method names a position may expose for threefold detection, newest first.
REPETITION_PROBES = ("is_threefold_repetition", "in_threefold_repetition")


class IllegalMoveError(ValueError):
    """Raised when a move is rejected by the position it is applied to."""


@dataclass(frozen=True)
class MoveRecord:
    from_square: str
    to_square: str
    piece: chess.PieceType
    color: chess.Color
    captured: Optional[chess.PieceType] = None
    promotion: Optional[chess.PieceType] = None
    notation: str = ""

    @property
    def uci(self) -> str:
        promo = chess.piece_symbol(self.promotion) if self.promotion else ""
        return f"{self.from_square}{self.to_square}{promo}"

    def to_move(self) -> chess.Move:
        return chess.Move(chess.parse_square(self.from_square),
                          chess.parse_square(self.to_square),
                          promotion=self.promotion)

    def __str__(self) -> str:
        return self.notation or self.uci


MoveLike = Union[MoveRecord, chess.Move, str]


class RulesPosition(Protocol):
    def legal_moves(self, square=None, notation: bool = False) -> List[MoveRecord]: ...
    def apply(self, move: MoveLike) -> Optional[MoveRecord]: ...
    def undo(self) -> None: ...
    def turn(self) -> chess.Color: ...
    def is_checkmate(self) -> bool: ...
    def is_draw(self) -> bool: ...
    def is_game_over(self) -> bool: ...
    def grid(self) -> List[List[Optional[chess.Piece]]]: ...


class BoardPosition:
    def __init__(self, fen: Optional[str] = None, board: Optional[chess.Board] = None):
        """Initialize from a board, a FEN, or the standard starting position."""
        if board is not None:
            self.board = board
        else:
            self.board = chess.Board(fen) if fen else chess.Board()
        self.history: List[MoveRecord] = []

    def reset(self):
        """Reset to the initial position."""
        self.board.reset()
        self.history.clear()

    def set_fen(self, fen: str):
        """Set board state from a FEN string. Raises ValueError on bad input."""
        self.board.set_fen(fen)
        self.history.clear()

    def fen(self) -> str:
        return self.board.fen()

    def copy(self) -> "BoardPosition":
        clone = BoardPosition(board=self.board.copy())
        clone.history = list(self.history)
        return clone

    # Move enumeration

    def legal_moves(self, square=None, notation: bool = False) -> List[MoveRecord]:
        """Legal moves, optionally only those leaving `square` (name or index).

        With notation=True each record carries SAN, otherwise UCI.
        """
        if square is None:
            generator = self.board.legal_moves
        else:
            if isinstance(square, str):
                square = chess.parse_square(square)
            generator = self.board.generate_legal_moves(from_mask=chess.BB_SQUARES[square])
        return [self._record(m, notation) for m in generator]

    def _record(self, move: chess.Move, notation: bool) -> MoveRecord:
        board = self.board
        if board.is_en_passant(move):
            captured = chess.PAWN
        else:
            captured = board.piece_type_at(move.to_square)
        return MoveRecord(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            piece=board.piece_type_at(move.from_square),
            color=board.turn,
            captured=captured,
            promotion=move.promotion,
            notation=board.san(move) if notation else move.uci(),
        )

    # Apply / undo

    def _to_move(self, move: MoveLike) -> chess.Move:
        if isinstance(move, MoveRecord):
            return move.to_move()
        if isinstance(move, chess.Move):
            return move
        parsed = chess.Move.from_uci(move)
        # Auto-queen when a pawn reaches the last rank without a suffix.
        if parsed.promotion is None and self.board.piece_type_at(parsed.from_square) == chess.PAWN:
            if chess.square_rank(parsed.to_square) in (0, 7):
                parsed = chess.Move(parsed.from_square, parsed.to_square, promotion=chess.QUEEN)
        return parsed

    def apply(self, move: MoveLike) -> Optional[MoveRecord]:
        """Push a move. Returns the applied record, or None if it is not legal."""
        try:
            chess_move = self._to_move(move)
        except ValueError:
            return None
        if not self.board.is_legal(chess_move):
            return None
        record = move if isinstance(move, MoveRecord) else self._record(chess_move, notation=True)
        self.board.push(chess_move)
        self.history.append(record)
        return record

    def undo(self):
        """Pop the last move."""
        if self.board.move_stack:
            self.board.pop()
            if self.history:
                self.history.pop()

    # Status queries

    def turn(self) -> chess.Color:
        return self.board.turn

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self.board.is_stalemate()

    def is_threefold_repetition(self) -> bool:
        return self.board.is_repetition(3)

    def is_draw(self) -> bool:
        board = self.board
        return (board.is_stalemate()
                or board.is_insufficient_material()
                or board.halfmove_clock >= 100
                or self.is_threefold_repetition())

    def is_game_over(self) -> bool:
        return self.is_checkmate() or self.is_draw()

    def grid(self) -> List[List[Optional[chess.Piece]]]:
        """8x8 board, row 0 is rank 8 and column 0 is the a-file."""
        return [[self.board.piece_at(chess.square(file, 7 - row)) for file in range(8)]
                for row in range(8)]

    def __str__(self) -> str:
        return str(self.board)


@lru_cache(maxsize=None)
def repetition_probe(position_type: type) -> Optional[str]:
    """Name of the threefold probe a position type exposes, resolved once per type."""
    for name in REPETITION_PROBES:
        if callable(getattr(position_type, name, None)):
            return name
    return None


def is_repeated(position) -> bool:
    """Threefold repetition check tolerant of positions exposing either probe name, or none."""
    name = repetition_probe(type(position))
    return bool(getattr(position, name)()) if name else False


@contextmanager
def applied(position: RulesPosition, move: MoveLike) -> Iterator[MoveRecord]:
    """Apply `move` for the duration of the block; the undo runs on every exit path."""
    record = position.apply(move)
    if not record:
        raise IllegalMoveError(f"Position rejected move {move}")
    try:
        yield record
    finally:
        position.undo()
