#!/usr/bin/env python3
"""
PGN Export — Puzzle records back to PGN text

Layouts:
  flat    every stored node in stored order, no parentheses (default)
  nested  main line first with side lines in parentheses, written by
          python-chess so it parses back into the same tree

Usage:
  python pgn_export.py --output puzzles.pgn
  python pgn_export.py --output puzzles.pgn --layout nested --difficulty beginner
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Literal

import chess
import chess.pgn

sys.path.insert(0, str(Path(__file__).resolve().parent))
from fen_utils import STARTING_FEN, format_move_number
from puzzle_models import MoveNode, Puzzle

Layout = Literal["flat", "nested"]

DEFAULT_HEADERS = {
    "Event": "Chess Puzzle",
    "Site": "LearnSpark",
    "White": "Student",
    "Black": "Computer",
    "Result": "*",
}


def puzzle_headers(puzzle: Puzzle, ordinal: int, today: date | None = None) -> dict[str, str]:
    """Tag pairs for one puzzle, in output order."""
    meta = puzzle.metadata
    today = today or date.today()
    headers = {
        "Event": meta.get("Event") or DEFAULT_HEADERS["Event"],
        "Site": meta.get("Site") or meta.get("Source") or DEFAULT_HEADERS["Site"],
        "Date": meta.get("Date") or today.strftime("%Y.%m.%d"),
        "Round": meta.get("Round") or str(ordinal),
        "White": meta.get("White") or DEFAULT_HEADERS["White"],
        "Black": meta.get("Black") or DEFAULT_HEADERS["Black"],
        "Result": meta.get("Result") or DEFAULT_HEADERS["Result"],
    }
    if puzzle.starting_position != STARTING_FEN:
        headers["FEN"] = puzzle.starting_position
        headers["SetUp"] = "1"
    for tag in ("ECO", "Opening"):
        if meta.get(tag):
            headers[tag] = meta[tag]
    headers["Difficulty"] = puzzle.difficulty
    headers["Themes"] = ", ".join(puzzle.themes)
    return headers


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _comment(text: str) -> str:
    return "{" + text.replace("}", "").strip() + "}"


def write_flat_movetext(
    nodes: list[MoveNode], result: str, game_comment: str | None = None
) -> str:
    """Nodes in stored order with move numbers, comments and the result."""
    parts = [_comment(game_comment)] if game_comment else []
    for i, node in enumerate(nodes):
        if node.color == "w" or i == 0:
            parts.append(format_move_number(node.move_number, node.color))
        parts.append(node.notation)
        if node.annotation:
            parts.append(_comment(node.annotation))
    parts.append(result)
    return " ".join(parts)


def _flat_pgn(puzzle: Puzzle, ordinal: int, today: date | None) -> str:
    headers = puzzle_headers(puzzle, ordinal, today)
    lines = [f'[{tag} "{_escape(value)}"]' for tag, value in headers.items()]
    return "\n".join(lines) + "\n\n" + write_flat_movetext(
        puzzle.variations, headers["Result"], puzzle.game_comment
    )


def _attach(pgn_node: chess.pgn.GameNode, node: MoveNode) -> chess.pgn.GameNode:
    child = pgn_node.add_variation(chess.Move.from_uci(node.move.uci))
    if node.annotation:
        child.comment = node.annotation
    return child


def _add_line(pgn_node: chess.pgn.GameNode, child_ids: list[str], by_id: dict[str, MoveNode]) -> None:
    """Main continuation first, alternatives after; iterative along the main line."""
    while child_ids:
        main, *alternatives = (by_id[c] for c in child_ids)
        main_pgn = _attach(pgn_node, main)
        for alt in alternatives:
            _add_line(_attach(pgn_node, alt), alt.children, by_id)
        pgn_node, child_ids = main_pgn, main.children


def _nested_pgn(puzzle: Puzzle, ordinal: int, today: date | None) -> str:
    headers = puzzle_headers(puzzle, ordinal, today)
    game = chess.pgn.Game()
    if puzzle.starting_position != STARTING_FEN:
        game.setup(chess.Board(puzzle.starting_position))
    for tag, value in headers.items():
        game.headers[tag] = value
    if puzzle.game_comment:
        game.comment = puzzle.game_comment
    by_id = {n.id: n for n in puzzle.variations}
    root_ids = [n.id for n in puzzle.variations if n.parent_id is None]
    _add_line(game, root_ids, by_id)
    return str(game)


def to_pgn(puzzles: list[Puzzle], layout: Layout = "flat", today: date | None = None) -> str:
    """Serialize puzzles in the given order, one game per puzzle."""
    if layout not in ("flat", "nested"):
        raise ValueError(f"Unknown layout: {layout}")
    render = _nested_pgn if layout == "nested" else _flat_pgn
    games = [render(p, i, today) for i, p in enumerate(puzzles, start=1)]
    return "\n\n".join(games) + ("\n" if games else "")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--output", "-o", required=True)
    parser.add_argument("--layout", choices=["flat", "nested"], default="flat")
    parser.add_argument("--difficulty", choices=["beginner", "intermediate", "advanced"], default=None)
    parser.add_argument("--limit", type=int, default=None)
    args = parser.parse_args()

    from puzzle_db import get_connection, list_puzzles

    with get_connection() as conn:
        puzzles = list_puzzles(conn, difficulty=args.difficulty, limit=args.limit)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        f.write(to_pgn(puzzles, layout=args.layout))
    print(f"Exported {len(puzzles)} puzzles to {out}")


if __name__ == "__main__":
    main()
