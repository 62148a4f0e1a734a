"""Turns a parsed game (headers + variation tree) into a Puzzle record."""

import sys
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from puzzle_models import Difficulty, MoveNode, Puzzle, TreeBuildResult
from variation_tree import main_line, max_depth, variation_count

# (max_depth, max_variation_count, label), checked in order.
DIFFICULTY_THRESHOLDS: list[tuple[int, int, Difficulty]] = [
    (3, 5, "beginner"),
    (6, 15, "intermediate"),
]

# Keyword searched in the lowercased notation string -> theme tag.
NOTATION_THEMES: list[tuple[str, str]] = [
    ("fork", "fork"),
    ("pin", "pin"),
    ("skewer", "skewer"),
    ("discovered", "discovered-attack"),
    ("sacrifice", "sacrifice"),
    ("mate", "mate"),
    ("promotion", "promotion"),
    ("endgame", "endgame"),
    ("o-o", "castling"),
    ("x", "tactics"),
]

HEADER_THEMES: list[tuple[str, str]] = [
    ("Opening", "opening"),
    ("ECO", "eco"),
]


def determine_difficulty(variation_count: int, max_depth: int) -> Difficulty:
    for depth_limit, count_limit, label in DIFFICULTY_THRESHOLDS:
        if max_depth <= depth_limit and variation_count <= count_limit:
            return label
    return "advanced"


def extract_themes(headers: dict[str, str], notations: list[str]) -> list[str]:
    """Theme tags in detection order, without duplicates."""
    themes: list[str] = []
    for tag, theme in HEADER_THEMES:
        if headers.get(tag) and theme not in themes:
            themes.append(theme)
    flat = " ".join(notations).lower()
    for keyword, theme in NOTATION_THEMES:
        if keyword in flat and theme not in themes:
            themes.append(theme)
    return themes


def make_title(headers: dict[str, str], game_index: int) -> str:
    event = headers.get("Event", "").strip()
    if event:
        return f"{event} - Game {game_index}"
    return f"Puzzle {game_index}"


def generate_description(headers: dict[str, str], themes: list[str], solution_length: int) -> str:
    parts = []
    white, black = headers.get("White"), headers.get("Black")
    if white and black:
        players = f"{white} vs {black}"
        if headers.get("Date"):
            players += f" ({headers['Date']})"
        parts.append(players + ".")
    if themes:
        parts.append(f"Themes: {', '.join(themes)}.")
    if solution_length > 0:
        parts.append(f"Solution requires {(solution_length + 1) // 2} moves.")
    if headers.get("Opening"):
        parts.append(f"Opening: {headers['Opening']}.")
    return " ".join(parts)


def extract_annotations(nodes: list[MoveNode]) -> dict[str, str]:
    return {n.id: n.annotation for n in nodes if n.annotation}


def assemble(headers: dict[str, str], tree: TreeBuildResult, game_index: int) -> Puzzle:
    """Build the Puzzle for game number ``game_index`` (1-based)."""
    nodes = tree.nodes
    solution = [n.notation for n in main_line(nodes)]
    themes = extract_themes(headers, solution)
    return Puzzle(
        id=str(uuid.uuid4()),
        title=make_title(headers, game_index),
        description=generate_description(headers, themes, len(solution)),
        starting_position=tree.starting_fen,
        variations=nodes,
        solution=solution,
        difficulty=determine_difficulty(variation_count(nodes), max_depth(nodes)),
        themes=themes,
        required_variation_ids=[n.id for n in nodes if n.is_main_line],
        annotations=extract_annotations(nodes),
        metadata=dict(headers),
    )
