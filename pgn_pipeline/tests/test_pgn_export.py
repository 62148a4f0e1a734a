"""Tests for pgn_export.py"""

import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pgn_export import puzzle_headers, to_pgn, write_flat_movetext
from pgn_import import parse_pgn

TODAY = date(2025, 1, 15)


def test_headers_fall_back_to_defaults():
    puzzle = parse_pgn("1. e4 e5 *").puzzles[0]
    puzzle.metadata = {}
    headers = puzzle_headers(puzzle, 4, TODAY)
    assert headers == {
        "Event": "Chess Puzzle",
        "Site": "LearnSpark",
        "Date": "2025.01.15",
        "Round": "4",
        "White": "Student",
        "Black": "Computer",
        "Result": "*",
        "Difficulty": "beginner",
        "Themes": "",
    }


def test_headers_from_metadata(sample_pgn):
    puzzle = parse_pgn(sample_pgn).puzzles[0]
    headers = puzzle_headers(puzzle, 1, TODAY)
    assert headers["Event"] == "Club Training"
    assert headers["Date"] == "2024.03.01"
    assert headers["White"] == "Alice"
    assert headers["Result"] == "1-0"
    assert headers["ECO"] == "C50"
    assert headers["Opening"] == "Italian Game"
    assert headers["Themes"] == "opening, eco"
    assert "FEN" not in headers


def test_site_falls_back_to_source():
    puzzle = parse_pgn("1. e4 *").puzzles[0]
    puzzle.metadata = {"Source": "Coach upload"}
    assert puzzle_headers(puzzle, 1, TODAY)["Site"] == "Coach upload"


def test_custom_start_writes_fen_and_setup(sample_pgn):
    puzzle = parse_pgn(sample_pgn).puzzles[1]
    text = to_pgn([puzzle], today=TODAY)
    assert '[FEN "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"]' in text
    assert '[SetUp "1"]' in text
    assert text.endswith("1. Ra8# *\n")


def test_flat_layout_writes_nodes_in_stored_order(sample_pgn):
    puzzle = parse_pgn(sample_pgn).puzzles[0]
    movetext = write_flat_movetext(puzzle.variations, puzzle.result)
    assert movetext == (
        "1. e4 e5 2. Nf3 Nc6 3. Bc4 {Aiming at f7} Bc5 Nf6 4. Ng5 4. c3 1-0"
    )


def test_flat_layout_black_first_move():
    text = '[Event "Reply"]\n[FEN "4k3/8/8/8/8/8/4P3/4K3 b - - 0 7"]\n\n7... Kd7 8. e4 *'
    puzzle = parse_pgn(text).puzzles[0]
    assert write_flat_movetext(puzzle.variations, "*") == "7... Kd7 8. e4 *"


def test_header_values_are_escaped():
    puzzle = parse_pgn("1. e4 *").puzzles[0]
    puzzle.metadata = {"Event": 'The "Big" One'}
    assert '[Event "The \\"Big\\" One"]' in to_pgn([puzzle], today=TODAY)


def test_games_are_separated_by_blank_line(sample_pgn):
    puzzles = parse_pgn(sample_pgn).puzzles
    text = to_pgn(puzzles, today=TODAY)
    assert text.count('[Event "') == 2
    assert "1-0\n\n[Event \"Mate Drill\"]" in text
    assert '[Round "1"]' in text
    assert '[Round "2"]' in text


def test_empty_list_exports_empty_string():
    assert to_pgn([]) == ""


def test_unknown_layout_raises():
    with pytest.raises(ValueError):
        to_pgn([], layout="tree")


def test_nested_layout_round_trips(sample_pgn):
    original = parse_pgn(sample_pgn).puzzles
    text = to_pgn(original, layout="nested", today=TODAY)
    assert "( 3... Nf6 4. Ng5 )" in text

    reparsed = parse_pgn(text)
    assert reparsed.errors == []
    assert len(reparsed.puzzles) == 2
    for before, after in zip(original, reparsed.puzzles):
        assert after.solution == before.solution
        assert after.starting_position == before.starting_position
        assert [n.notation for n in after.variations] == [n.notation for n in before.variations]
        assert [n.depth for n in after.variations if not n.is_main_line] == [
            n.depth for n in before.variations if not n.is_main_line
        ]
        assert list(after.annotations.values()) == list(before.annotations.values())


def test_game_comment_is_written_before_first_move():
    puzzle = parse_pgn("{White to move and mate} 1. e4 *").puzzles[0]
    assert to_pgn([puzzle], today=TODAY).endswith("{White to move and mate} 1. e4 *\n")

    nested = to_pgn([puzzle], layout="nested", today=TODAY)
    assert parse_pgn(nested).puzzles[0].game_comment == "White to move and mate"
