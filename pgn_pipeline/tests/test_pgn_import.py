"""Tests for pgn_import.py"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fen_utils import STARTING_FEN
from pgn_import import parse_game, parse_pgn


def test_main_line_only_game():
    result = parse_pgn("1. e4 e5 2. Nf3 Nc6 *")
    assert result.total_games == 1
    assert result.errors == []
    assert len(result.puzzles) == 1
    puzzle = result.puzzles[0]
    assert puzzle.solution == ["e4", "e5", "Nf3", "Nc6"]
    assert len(puzzle.variations) == 4
    assert all(n.is_main_line and n.is_required for n in puzzle.variations)
    assert puzzle.starting_position == STARTING_FEN
    assert puzzle.metadata["Result"] == "*"


def test_sample_file(sample_pgn):
    result = parse_pgn(sample_pgn)
    assert result.total_games == 2
    assert result.errors == []
    first, second = result.puzzles

    assert first.title == "Club Training - Game 1"
    assert first.solution == ["e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "c3"]
    assert len(first.variations) == 9
    assert first.difficulty == "intermediate"
    assert first.themes == ["opening", "eco"]
    assert first.result == "1-0"
    assert list(first.annotations.values()) == ["Aiming at f7"]
    side = [n for n in first.variations if not n.is_main_line]
    assert [n.notation for n in side] == ["Nf6", "Ng5"]
    assert all(n.depth == 1 for n in side)
    assert all(not n.is_required for n in side)

    assert second.title == "Mate Drill - Game 2"
    assert second.starting_position == "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
    assert second.solution == ["Ra8#"]
    assert second.difficulty == "beginner"
    assert second.themes == []


def test_main_line_only_option(sample_pgn):
    result = parse_pgn(sample_pgn, parse_variations=False)
    first = result.puzzles[0]
    assert len(first.variations) == 7
    assert first.solution == ["e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "c3"]


def test_empty_text_has_no_games():
    result = parse_pgn("")
    assert result.total_games == 0
    assert result.puzzles == []
    assert result.errors == []


def test_illegal_move_is_reported_and_game_kept():
    result = parse_pgn("1. e4 e5 2. Ke3 Nc6 *")
    assert len(result.puzzles) == 1
    assert result.puzzles[0].solution == ["e4", "e5"]
    assert len(result.errors) == 2
    assert result.errors[0].startswith("Game 1: Illegal move 'Ke3' at ")


def test_game_without_legal_moves_yields_no_puzzle():
    result = parse_pgn('[Event "Broken"]\n\n1. Qh5 *')
    assert result.total_games == 1
    assert result.puzzles == []
    assert any("Qh5" in e for e in result.errors)


def test_invalid_fen_header():
    text = '[Event "Bad"]\n[FEN "not a fen"]\n\n1. e4 *'
    puzzle, errors = parse_game(text, 3)
    assert puzzle is None
    assert errors == ["Game 3: Invalid FEN header 'not a fen'"]


def test_result_header_filled_from_movetext():
    puzzle, errors = parse_game('[Event "Casual"]\n\n1. e4 e5 0-1', 1)
    assert errors == []
    assert puzzle.metadata["Result"] == "0-1"


def test_errors_in_one_game_do_not_stop_the_next():
    text = '[Event "A"]\n\n1. e4 (\n\n[Event "B"]\n\n1. d4 d5 *\n'
    result = parse_pgn(text)
    assert result.total_games == 2
    assert [p.title for p in result.puzzles] == ["A - Game 1", "B - Game 2"]
    assert all(e.startswith("Game 1: ") for e in result.errors)
    assert result.errors


def test_comments_around_variations_are_kept():
    puzzle = parse_pgn("1. e4 e5 ({Sicilian instead} 1... c5) {Back to e5} 2. Nf3 *").puzzles[0]
    notes = {puzzle.node(i).notation: text for i, text in puzzle.annotations.items()}
    assert notes == {"c5": "Sicilian instead", "e5": "Back to e5"}


def test_game_comment_is_carried_into_metadata():
    puzzle = parse_pgn("{White to move and mate} 1. e4 *").puzzles[0]
    assert puzzle.game_comment == "White to move and mate"
    assert puzzle.metadata["Comment"] == "White to move and mate"
    assert puzzle.annotations == {}


def test_moves_after_top_level_result_are_reported():
    result = parse_pgn("1. e4 e5 *\n\n1. d4 d5 *")
    assert len(result.puzzles) == 1
    assert result.puzzles[0].solution == ["e4", "e5"]
    assert result.errors == ["Game 1: Movetext after result '*' ignored"]
