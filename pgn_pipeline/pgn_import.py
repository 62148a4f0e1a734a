#!/usr/bin/env python3
"""
PGN Import — raw PGN text to Puzzle records

Splits a PGN file into games, tokenizes each game's movetext, builds its
variation tree through the rules engine and assembles one puzzle per game
that has at least one legal move. Problems are collected as strings; nothing
here raises on bad input.

Usage:
  python pgn_import.py puzzles.pgn
  python pgn_import.py puzzles.pgn --main-line-only --json
  python pgn_import.py data/*.pgn --store
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from fen_utils import STARTING_FEN, is_valid_position
from movetext_tokenizer import parse_headers, split_games, tokenize_movetext
from puzzle_assembler import assemble
from puzzle_models import ImportResult, Puzzle
from rules_engine import scoped_rules_engine
from variation_tree import build_tree


def parse_game(
    game_text: str, game_index: int, parse_variations: bool = True
) -> tuple[Puzzle | None, list[str]]:
    """Parse one game. Returns (puzzle or None, error strings)."""
    headers, movetext = parse_headers(game_text)
    starting_fen = headers.get("FEN", "").strip() or STARTING_FEN
    if not is_valid_position(starting_fen):
        return None, [f"Game {game_index}: Invalid FEN header '{starting_fen}'"]

    tokenized = tokenize_movetext(movetext)
    if tokenized.result and not headers.get("Result"):
        headers["Result"] = tokenized.result
    if tokenized.game_comment and not headers.get("Comment"):
        headers["Comment"] = tokenized.game_comment

    with scoped_rules_engine(starting_fen) as engine:
        tree = build_tree(tokenized.tokens, starting_fen, engine, parse_variations)

    errors = [f"Game {game_index}: {e}" for e in tokenized.errors]
    errors.extend(f"Game {game_index}: {e}" for e in tree.errors)
    if not tree.nodes:
        return None, errors
    return assemble(headers, tree, game_index), errors


def parse_pgn(pgn_text: str, parse_variations: bool = True) -> ImportResult:
    """Parse every game in ``pgn_text`` into puzzles."""
    result = ImportResult()
    try:
        games = split_games(pgn_text)
        result.total_games = len(games)
        for i, game_text in enumerate(games, start=1):
            try:
                puzzle, errors = parse_game(game_text, i, parse_variations)
            except Exception as e:
                result.errors.append(f"Game {i}: {e}")
                continue
            result.errors.extend(errors)
            if puzzle is not None:
                result.puzzles.append(puzzle)
    except Exception as e:
        result.errors.append(f"Parser error: {e}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Import PGN files as puzzles")
    parser.add_argument("pgn", nargs="+", help="PGN file paths")
    parser.add_argument(
        "--main-line-only", action="store_true", help="Skip parenthesised variations"
    )
    parser.add_argument("--json", action="store_true", help="Print puzzles as JSON")
    parser.add_argument("--store", action="store_true", help="Save puzzles to DATABASE_URL")
    args = parser.parse_args()

    puzzles: list[Puzzle] = []
    total_games = 0
    warnings = 0
    for path in (Path(p) for p in args.pgn):
        if not path.exists():
            print(f"Warning: {path} not found", file=sys.stderr)
            continue
        text = path.read_text(encoding="utf-8", errors="replace")
        result = parse_pgn(text, parse_variations=not args.main_line_only)
        for err in result.errors:
            print(f"{path.name}: {err}", file=sys.stderr)
        puzzles.extend(result.puzzles)
        total_games += result.total_games
        warnings += len(result.errors)

    if args.store and puzzles:
        from puzzle_db import get_connection, save_puzzles

        with get_connection() as conn:
            save_puzzles(conn, puzzles)

    if args.json:
        print(json.dumps([p.to_dict() for p in puzzles], indent=2))
    else:
        for p in puzzles:
            print(f"  {p.difficulty:12s} | {len(p.solution):3d} moves | {p.title[:60]}")
    print(
        f"{len(puzzles)} puzzles loaded from {total_games} games, {warnings} warnings.",
        file=sys.stderr if args.json else sys.stdout,
    )


if __name__ == "__main__":
    main()
