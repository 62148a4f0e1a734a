"""Legality checks backed by python-chess.

The pipeline never decides legality itself. Every move that ends up in a
tree went through ``RulesEngine.apply`` or ``RulesEngine.apply_squares``.
"""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import chess

sys.path.insert(0, str(Path(__file__).resolve().parent))
from fen_utils import STARTING_FEN
from puzzle_models import StructuredMove


class IllegalMoveError(Exception):
    """The rules engine rejected a move in the given position."""

    def __init__(self, notation: str, fen: str, reason: str):
        super().__init__(f"{notation} at {fen}: {reason}")
        self.notation = notation
        self.fen = fen
        self.reason = reason


class RulesEngine:
    """Applies moves to positions given as FEN.

    Each call loads the position it is given, so results never depend on
    earlier calls. ``reset`` returns the board to the starting position.
    """

    def __init__(self, fen: str | None = None):
        self.board = chess.Board(fen or STARTING_FEN)

    def reset(self) -> None:
        self.board.reset()

    def _load(self, fen: str, notation: str) -> None:
        try:
            self.board.set_fen(fen)
        except ValueError as e:
            raise IllegalMoveError(notation, fen, f"invalid position ({e})") from e

    def _describe(self, move: chess.Move) -> StructuredMove:
        board = self.board
        piece = board.piece_at(move.from_square)
        if board.is_en_passant(move):
            captured = "p"
        else:
            target = board.piece_at(move.to_square)
            captured = target.symbol().lower() if target and not board.is_castling(move) else None
        return StructuredMove(
            color="w" if board.turn == chess.WHITE else "b",
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            san=board.san(move),
            uci=move.uci(),
            piece=piece.symbol().lower() if piece else "",
            captured=captured,
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
        )

    def _play(self, move: chess.Move) -> tuple[StructuredMove, str]:
        structured = self._describe(move)
        self.board.push(move)
        return structured, self.board.fen()

    def apply(self, fen: str, notation: str) -> tuple[StructuredMove, str]:
        """Play a SAN move from ``fen``. Returns the move and the new FEN."""
        self._load(fen, notation)
        try:
            move = self.board.parse_san(notation)
        except chess.AmbiguousMoveError as e:
            raise IllegalMoveError(notation, fen, f"ambiguous move ({e})") from e
        except ValueError as e:
            raise IllegalMoveError(notation, fen, str(e) or "illegal move") from e
        return self._play(move)

    def apply_squares(
        self, fen: str, from_square: str, to_square: str, promotion: str | None = None
    ) -> tuple[StructuredMove, str]:
        """Play a move given as from/to squares, as a board UI reports it."""
        notation = f"{from_square}{to_square}{promotion or ''}"
        self._load(fen, notation)
        try:
            move = chess.Move(
                chess.parse_square(from_square),
                chess.parse_square(to_square),
                promotion=chess.PIECE_SYMBOLS.index(promotion.lower()) if promotion else None,
            )
        except ValueError as e:
            raise IllegalMoveError(notation, fen, f"invalid squares ({e})") from e
        if not self.board.is_legal(move):
            raise IllegalMoveError(notation, fen, "illegal move")
        return self._play(move)


@contextmanager
def scoped_rules_engine(fen: str | None = None) -> Iterator[RulesEngine]:
    """Context manager for a rules engine that is reset on every exit path."""
    engine = RulesEngine(fen)
    try:
        yield engine
    finally:
        engine.reset()


def replay(starting_fen: str, notations: list[str], engine: RulesEngine | None = None) -> str:
    """Play a line of SAN moves and return the final FEN."""
    fen = starting_fen
    if engine is None:
        with scoped_rules_engine() as scoped:
            for san in notations:
                _, fen = scoped.apply(fen, san)
        return fen
    for san in notations:
        _, fen = engine.apply(fen, san)
    return fen
