"""FEN helpers used by the importer, the exporter and UI callers.

These are structural checks only. Whether a position could arise in a real
game is the rules engine's business.
"""

import re

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

PIECE_VALUES = {"p": 1, "n": 3, "b": 3, "r": 5, "q": 9}

CASTLING_RE = re.compile(r"^[KQkq-]*$")
EN_PASSANT_RE = re.compile(r"^(?:[a-h][36]|-)$")
COUNTER_RE = re.compile(r"^\d+$")


def _rank_is_valid(rank: str) -> bool:
    squares = 0
    for char in rank:
        if char in "12345678":
            squares += int(char)
        elif char in "pnbrqkPNBRQK":
            squares += 1
        else:
            return False
    return squares == 8


def is_valid_position(text: str) -> bool:
    """Check the six FEN fields for shape. Two white kings still pass."""
    if not isinstance(text, str) or not text.strip():
        return False
    parts = text.strip().split(" ")
    if len(parts) != 6:
        return False
    board, turn, castling, en_passant, halfmove, fullmove = parts

    ranks = board.split("/")
    if len(ranks) != 8 or not all(_rank_is_valid(r) for r in ranks):
        return False
    if turn not in ("w", "b"):
        return False
    if not CASTLING_RE.match(castling):
        return False
    if not EN_PASSANT_RE.match(en_passant):
        return False
    return bool(COUNTER_RE.match(halfmove) and COUNTER_RE.match(fullmove))


def material_balance(text: str) -> dict:
    """Sum piece values per side. Kings count zero; bad input gives zeros."""
    if not is_valid_position(text):
        return {"white": 0, "black": 0, "balance": 0}
    white = black = 0
    for char in text.split(" ")[0]:
        value = PIECE_VALUES.get(char.lower())
        if value is None:
            continue
        if char.isupper():
            white += value
        else:
            black += value
    return {"white": white, "black": black, "balance": white - black}


def is_theoretical_draw(text: str) -> bool:
    """Bare kings, a single minor piece, or two knights against a lone king."""
    if not is_valid_position(text):
        return False
    pieces = "".join(c for c in text.split(" ")[0] if c.isalpha())
    if len(pieces) == 2:
        return True
    if len(pieces) == 3:
        return any(p in pieces for p in "nbNB")
    if len(pieces) == 4:
        return "".join(sorted(pieces.lower())) == "kknn"
    return False


def format_move_number(move_number: int, color: str) -> str:
    """'12.' before a White move, '12...' before a Black one."""
    return f"{move_number}." if color == "w" else f"{move_number}..."


def fullmove_number(text: str) -> int:
    """Full-move counter of a FEN, 1 if it cannot be read."""
    try:
        return max(int(text.split(" ")[5]), 1)
    except (IndexError, ValueError, AttributeError):
        return 1
