"""
PGN text splitting and movetext tokenization.

Turns raw movetext into a flat token stream: moves (with their trailing
brace comment), variation open/close markers and the result. Move numbers,
NAGs ($1) and suffix glyphs (!, ?, !?) are dropped. Anything that does not
look like a move is skipped; legality is checked later by the tree builder.
"""

import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from puzzle_models import (
    CommentToken,
    MoveToken,
    ResultToken,
    TokenizedMovetext,
    VariationEnd,
    VariationStart,
)

RESULT_TOKENS = ("1-0", "0-1", "1/2-1/2", "*")

HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\s*\]$')
GAME_START_RE = re.compile(r"(?=^\s*\[Event\b)", re.MULTILINE)
MOVE_NUMBER_RE = re.compile(r"^\d+\.+")
NAG_RE = re.compile(r"^\$\d+$")
SUFFIX_RE = re.compile(r"[!?]+$")
SAN_RE = re.compile(
    r"^(?:[KQRBN][a-h]?[1-8]?x?[a-h][1-8]"
    r"|[a-h](?:x[a-h])?[1-8](?:=?[QRBN])?"
    r"|O-O(?:-O)?)[+#]?$"
)


def is_move_notation(token: str) -> bool:
    """True if the token has the shape of a SAN move."""
    return bool(SAN_RE.match(token))


def split_games(pgn_text: str) -> list[str]:
    """Split a PGN file into games at each [Event ...] tag."""
    if not pgn_text or not pgn_text.strip():
        return []
    return [g for g in GAME_START_RE.split(pgn_text) if g.strip()]


def _unescape(value: str) -> str:
    return value.replace('\\"', '"').replace("\\\\", "\\")


def parse_headers(game_text: str) -> tuple[dict[str, str], str]:
    """Split one game into its tag pairs and its movetext."""
    headers: dict[str, str] = {}
    lines = game_text.splitlines()
    body_start = len(lines)
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        match = HEADER_RE.match(stripped)
        if match:
            headers[match.group(1)] = _unescape(match.group(2))
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            # Malformed tag pair, still part of the header block.
            continue
        body_start = i
        break
    return headers, "\n".join(lines[body_start:]).strip()


def _lex(movetext: str, errors: list[str]):
    """Yield (kind, value) pairs: comment, open, close or word."""
    i, n = 0, len(movetext)
    while i < n:
        char = movetext[i]
        if char.isspace():
            i += 1
        elif char == "{":
            end = movetext.find("}", i + 1)
            if end == -1:
                errors.append("Unterminated comment: missing '}'")
                end = n
            yield "comment", movetext[i + 1:end].strip()
            i = end + 1
        elif char == ";":
            end = movetext.find("\n", i + 1)
            end = n if end == -1 else end
            yield "comment", movetext[i + 1:end].strip()
            i = end + 1
        elif char == "(":
            yield "open", char
            i += 1
        elif char == ")":
            yield "close", char
            i += 1
        else:
            start = i
            while i < n and not movetext[i].isspace() and movetext[i] not in "{}();":
                i += 1
            if i == start:
                # Stray closing brace.
                i += 1
                continue
            yield "word", movetext[start:i]


def _normalize_move(word: str) -> str:
    word = MOVE_NUMBER_RE.sub("", word)
    word = SUFFIX_RE.sub("", word)
    if word.startswith("0-0"):
        word = word.replace("0", "O")
    return word


def tokenize_movetext(movetext: str) -> TokenizedMovetext:
    """Tokenize movetext. Headers, if present, are stripped first.

    Never raises: unbalanced ')' and unterminated comments are reported in
    ``errors`` and tokenizing goes on. Tokenizing stops at the top-level
    result; anything but comments after it is reported. An unclosed '(' is
    left for the tree builder to report.
    """
    out = TokenizedMovetext()
    if not movetext:
        return out
    if movetext.lstrip().startswith("["):
        _, movetext = parse_headers(movetext)

    tokens = out.tokens
    depth = 0
    for kind, value in _lex(movetext, out.errors):
        if out.result is not None:
            # A top-level result ends the game.
            if kind != "comment":
                out.errors.append(f"Movetext after result '{out.result}' ignored")
                break
            continue
        if kind == "comment":
            if not value:
                continue
            last = tokens[-1] if tokens else None
            if isinstance(last, MoveToken):
                text = f"{last.annotation} {value}" if last.annotation else value
                tokens[-1] = MoveToken(last.notation, text)
            elif isinstance(last, CommentToken):
                tokens[-1] = CommentToken(f"{last.text} {value}")
            elif not isinstance(last, ResultToken):
                tokens.append(CommentToken(value))
        elif kind == "open":
            depth += 1
            tokens.append(VariationStart())
        elif kind == "close":
            if depth == 0:
                out.errors.append("Unbalanced ')': no variation to close")
                continue
            depth -= 1
            tokens.append(VariationEnd())
        elif value in RESULT_TOKENS:
            if depth == 0:
                out.result = value
            tokens.append(ResultToken(value))
        elif NAG_RE.match(value):
            continue
        else:
            notation = _normalize_move(value)
            if notation and is_move_notation(notation):
                tokens.append(MoveToken(notation))
    if tokens and isinstance(tokens[0], CommentToken):
        out.game_comment = tokens[0].text
    return out
