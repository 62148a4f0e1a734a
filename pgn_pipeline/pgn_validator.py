#!/usr/bin/env python3
"""
PGN Validation — pass/fail verdict before an import is committed

Runs the full import and reports every structural and legality problem as a
readable string. In strict mode each game must also carry Event, Site and
Date tags. Never raises.

Usage:
  python pgn_validator.py puzzles.pgn
  python pgn_validator.py puzzles.pgn --strict
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from movetext_tokenizer import parse_headers, split_games
from pgn_import import parse_pgn
from puzzle_models import ValidationResult

REQUIRED_HEADERS = ("Event", "Site", "Date")


def missing_headers(pgn_text: str) -> list[str]:
    """'Game N: Missing <Tag> header' for each required tag a game lacks."""
    errors = []
    for i, game_text in enumerate(split_games(pgn_text), start=1):
        headers, _ = parse_headers(game_text)
        for tag in REQUIRED_HEADERS:
            if not headers.get(tag):
                errors.append(f"Game {i}: Missing {tag} header")
    return errors


def validate(pgn_text: str, require_headers: bool = False) -> ValidationResult:
    """Validate PGN text. ``require_headers`` selects the strict mode."""
    if not pgn_text or not pgn_text.strip():
        return ValidationResult(is_valid=False, errors=["PGN text is empty"])

    errors: list[str] = []
    try:
        result = parse_pgn(pgn_text)
        errors.extend(result.errors)
        if not result.puzzles:
            errors.append("No valid puzzles found in PGN")
        if require_headers:
            errors.extend(missing_headers(pgn_text))
    except Exception as e:
        errors = [f"Validation error: {e}"]
    return ValidationResult(is_valid=not errors, errors=errors)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("pgn", nargs="+", help="PGN file paths")
    parser.add_argument("--strict", action="store_true", help="Require Event/Site/Date tags")
    args = parser.parse_args()

    failed = 0
    for pgn_path in (Path(p) for p in args.pgn):
        if not pgn_path.exists():
            print(f"Warning: {pgn_path} not found", file=sys.stderr)
            failed += 1
            continue
        text = pgn_path.read_text(encoding="utf-8", errors="replace")
        verdict = validate(text, require_headers=args.strict)
        status = "OK" if verdict.is_valid else "INVALID"
        print(f"{status:8s} {pgn_path}")
        for err in verdict.errors[:50]:
            print(f"  {err}")
        if len(verdict.errors) > 50:
            print(f"  ... and {len(verdict.errors) - 50} more")
        if not verdict.is_valid:
            failed += 1
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
