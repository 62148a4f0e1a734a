"""
Variation tree construction.

Consumes the token stream from movetext_tokenizer and asks the rules engine
to play each move. Legal moves become MoveNodes linked to their parent;
illegal ones are recorded as TreeErrors and skipped, so a partly broken game
still yields every move that could be played.

Main-line flags and variation depths are derived after the tree is complete,
from child order alone.
"""

import itertools
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from fen_utils import STARTING_FEN, fullmove_number
from puzzle_models import (
    CommentToken,
    MoveNode,
    MoveToken,
    ResultToken,
    Token,
    TreeBuildResult,
    TreeError,
    VariationEnd,
    VariationStart,
)
from rules_engine import IllegalMoveError, RulesEngine, scoped_rules_engine

_ID_PREFIX = uuid.uuid4().hex[:8]
_id_counter = itertools.count(1)


def new_node_id() -> str:
    """Process-unique node id. Ids are never reused."""
    return f"{_ID_PREFIX}-{next(_id_counter):06x}"


def _join_comments(first: str | None, second: str | None) -> str | None:
    if first and second:
        return f"{first} {second}"
    return first or second


@dataclass
class _Cursor:
    """Where the next move goes: its parent (None for a root) and position."""

    parent: MoveNode | None
    fen: str
    last: MoveNode | None = None
    # Comment seen before the first move of a variation.
    pending_comment: str | None = None


def build_tree(
    tokens: list[Token],
    starting_fen: str = STARTING_FEN,
    engine: RulesEngine | None = None,
    parse_variations: bool = True,
) -> TreeBuildResult:
    """Build a variation tree from movetext tokens.

    With ``parse_variations=False`` everything inside parentheses is skipped
    and only the main line is built. Without an ``engine`` a scoped one is
    used for the duration of the call.
    """
    if engine is None:
        with scoped_rules_engine(starting_fen) as scoped:
            return build_tree(tokens, starting_fen, scoped, parse_variations)

    result = TreeBuildResult(starting_fen=starting_fen)
    by_id: dict[str, MoveNode] = {}
    cursor = _Cursor(parent=None, fen=starting_fen)
    stack: list[_Cursor] = []
    skip_depth = 0

    for token in tokens:
        if isinstance(token, VariationStart):
            if skip_depth:
                skip_depth += 1
                continue
            if not parse_variations:
                skip_depth = 1
                continue
            if cursor.last is None:
                result.errors.append(
                    TreeError("Variation has no preceding move to branch from")
                )
                skip_depth = 1
                continue
            # The variation replaces the move just played.
            branch_parent = by_id[cursor.last.parent_id] if cursor.last.parent_id else None
            stack.append(cursor)
            cursor = _Cursor(
                parent=branch_parent,
                fen=branch_parent.position_after if branch_parent else starting_fen,
            )
        elif isinstance(token, VariationEnd):
            if skip_depth:
                skip_depth -= 1
                continue
            if not stack:
                result.errors.append(TreeError("Unbalanced ')': no variation to close"))
                continue
            cursor = stack.pop()
        elif isinstance(token, MoveToken):
            if skip_depth:
                continue
            try:
                move, fen_after = engine.apply(cursor.fen, token.notation)
            except IllegalMoveError as e:
                result.errors.append(TreeError(e.reason, token=token.notation, fen=cursor.fen))
                continue
            node = MoveNode(
                id=new_node_id(),
                move=move,
                position_after=fen_after,
                parent_id=cursor.parent.id if cursor.parent else None,
                annotation=_join_comments(cursor.pending_comment, token.annotation),
                move_number=fullmove_number(cursor.fen),
                color=move.color,
            )
            if cursor.parent is not None:
                cursor.parent.children.append(node.id)
            by_id[node.id] = node
            result.nodes.append(node)
            cursor.parent = node
            cursor.fen = fen_after
            cursor.last = node
            cursor.pending_comment = None
        elif isinstance(token, CommentToken):
            if skip_depth:
                continue
            if cursor.last is not None:
                # After a closed variation: belongs to the move before it.
                cursor.last.annotation = _join_comments(cursor.last.annotation, token.text)
            elif stack:
                cursor.pending_comment = _join_comments(cursor.pending_comment, token.text)
            # A comment before the first move of the game is the game comment.
        elif isinstance(token, ResultToken):
            continue

    unclosed = len(stack) + skip_depth
    if unclosed:
        result.errors.append(
            TreeError(f"Unclosed variation: {unclosed} '(' without matching ')'")
        )

    mark_main_line(result.nodes)
    recompute_depths(result.nodes)
    for node in result.nodes:
        node.is_required = node.is_main_line
    return result


def roots(nodes: list[MoveNode]) -> list[MoveNode]:
    return [n for n in nodes if n.parent_id is None]


def main_line(nodes: list[MoveNode]) -> list[MoveNode]:
    """Follow first children from the first root."""
    by_id = {n.id: n for n in nodes}
    tops = roots(nodes)
    line = []
    node = tops[0] if tops else None
    while node is not None:
        line.append(node)
        node = by_id.get(node.children[0]) if node.children else None
    return line


def mark_main_line(nodes: list[MoveNode]) -> None:
    for node in nodes:
        node.is_main_line = False
    for node in main_line(nodes):
        node.is_main_line = True


def recompute_depths(nodes: list[MoveNode]) -> None:
    """Depth counts the non-first-child edges on the path from the root.

    Parents always precede their children in ``nodes``.
    """
    by_id = {n.id: n for n in nodes}
    first_root = True
    for node in nodes:
        if node.parent_id is None:
            node.depth = 0 if first_root else 1
            first_root = False
            continue
        parent = by_id[node.parent_id]
        node.depth = parent.depth + (0 if parent.children[0] == node.id else 1)


def path_to(nodes: list[MoveNode], node_id: str) -> list[MoveNode]:
    """Nodes from the root down to ``node_id``, inclusive."""
    by_id = {n.id: n for n in nodes}
    path = []
    node = by_id.get(node_id)
    while node is not None:
        path.append(node)
        node = by_id.get(node.parent_id) if node.parent_id else None
    return list(reversed(path))


def variation_count(nodes: list[MoveNode]) -> int:
    return len(nodes)


def max_depth(nodes: list[MoveNode]) -> int:
    return max((n.depth for n in nodes), default=0)
