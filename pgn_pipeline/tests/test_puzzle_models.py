"""Tests for puzzle_models.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pgn_import import parse_pgn
from puzzle_models import Puzzle


def make_puzzle() -> Puzzle:
    return parse_pgn("1. e4 {Open} e5 (1... c5 2. Nf3) 2. Nf3 *").puzzles[0]


def test_set_required_keeps_required_ids_in_sync():
    puzzle = make_puzzle()
    side = [n for n in puzzle.variations if not n.is_main_line][0]
    puzzle.set_required(side.id, True)
    assert side.is_required is True
    assert side.id in puzzle.required_variation_ids

    main = puzzle.variations[0]
    puzzle.set_required(main.id, False)
    assert main.id not in puzzle.required_variation_ids
    assert puzzle.required_variation_ids == [n.id for n in puzzle.variations if n.is_required]


def test_set_required_unknown_node_raises():
    with pytest.raises(KeyError):
        make_puzzle().set_required("missing", True)


def test_set_annotation_updates_lookup():
    puzzle = make_puzzle()
    node = puzzle.variations[1]
    puzzle.set_annotation(node.id, "Classical reply")
    assert puzzle.annotations[node.id] == "Classical reply"
    puzzle.set_annotation(node.id, "")
    assert node.annotation is None
    assert node.id not in puzzle.annotations


def test_set_annotation_does_not_change_tree_shape():
    puzzle = make_puzzle()
    before = [(n.id, n.parent_id, list(n.children)) for n in puzzle.variations]
    puzzle.set_annotation(puzzle.variations[0].id, "Changed")
    puzzle.set_required(puzzle.variations[-1].id, True)
    assert [(n.id, n.parent_id, list(n.children)) for n in puzzle.variations] == before


def test_dict_round_trip_uses_camel_case():
    puzzle = make_puzzle()
    data = puzzle.to_dict()
    assert {"startingPosition", "requiredVariationIds", "variations"} <= set(data)
    node = data["variations"][0]
    assert {"positionAfter", "parentId", "isMainLine", "isRequired", "moveNumber"} <= set(node)
    assert node["annotation"] == "Open"

    restored = Puzzle.from_dict(data)
    assert restored.to_dict() == data


def test_from_dict_trusts_node_flags_over_id_list():
    data = make_puzzle().to_dict()
    data["requiredVariationIds"] = []
    restored = Puzzle.from_dict(data)
    assert restored.required_variation_ids == [n.id for n in restored.variations if n.is_required]
    assert restored.required_variation_ids
