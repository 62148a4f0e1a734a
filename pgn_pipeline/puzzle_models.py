"""Data models for the PGN puzzle pipeline."""

from dataclasses import dataclass, field
from typing import Literal

Difficulty = Literal["beginner", "intermediate", "advanced"]
Color = Literal["w", "b"]


@dataclass
class StructuredMove:
    """A move as reported by the rules engine. Never built from raw text."""

    color: Color
    from_square: str
    to_square: str
    san: str
    uci: str
    piece: str
    captured: str | None = None
    promotion: str | None = None

    def to_dict(self) -> dict:
        out = {
            "color": self.color,
            "from": self.from_square,
            "to": self.to_square,
            "san": self.san,
            "uci": self.uci,
            "piece": self.piece,
        }
        if self.captured:
            out["captured"] = self.captured
        if self.promotion:
            out["promotion"] = self.promotion
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "StructuredMove":
        return cls(
            color=data["color"],
            from_square=data["from"],
            to_square=data["to"],
            san=data["san"],
            uci=data["uci"],
            piece=data["piece"],
            captured=data.get("captured"),
            promotion=data.get("promotion"),
        )


@dataclass
class MoveNode:
    """One move in a variation tree.

    ``children`` holds child ids in order: the first child continues the line,
    later children are alternatives. ``depth`` counts variation branches on the
    path from the root, not plies.
    """

    id: str
    move: StructuredMove
    position_after: str
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)
    depth: int = 0
    is_main_line: bool = False
    is_required: bool = False
    annotation: str | None = None
    move_number: int = 1
    color: Color = "w"

    @property
    def notation(self) -> str:
        return self.move.san

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "move": self.move.to_dict(),
            "notation": self.notation,
            "positionAfter": self.position_after,
            "parentId": self.parent_id,
            "children": list(self.children),
            "depth": self.depth,
            "isMainLine": self.is_main_line,
            "isRequired": self.is_required,
            "moveNumber": self.move_number,
            "color": self.color,
        }
        if self.annotation is not None:
            out["annotation"] = self.annotation
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "MoveNode":
        return cls(
            id=data["id"],
            move=StructuredMove.from_dict(data["move"]),
            position_after=data["positionAfter"],
            parent_id=data.get("parentId"),
            children=list(data.get("children", [])),
            depth=data.get("depth", 0),
            is_main_line=data.get("isMainLine", False),
            is_required=data.get("isRequired", False),
            annotation=data.get("annotation"),
            move_number=data.get("moveNumber", 1),
            color=data.get("color", "w"),
        )


# Movetext tokens. The tokenizer emits only these five shapes.


@dataclass(frozen=True)
class MoveToken:
    notation: str
    annotation: str | None = None
    is_variation_start = False
    variation_depth_delta = 0


@dataclass(frozen=True)
class CommentToken:
    """A comment that trails no move (start of a game or of a variation)."""

    text: str
    is_variation_start = False
    variation_depth_delta = 0


@dataclass(frozen=True)
class VariationStart:
    is_variation_start = True
    variation_depth_delta = 1


@dataclass(frozen=True)
class VariationEnd:
    is_variation_start = False
    variation_depth_delta = -1


@dataclass(frozen=True)
class ResultToken:
    result: str
    is_variation_start = False
    variation_depth_delta = 0


Token = MoveToken | CommentToken | VariationStart | VariationEnd | ResultToken


@dataclass
class TokenizedMovetext:
    tokens: list[Token] = field(default_factory=list)
    result: str | None = None
    game_comment: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def moves(self) -> list[str]:
        return [t.notation for t in self.tokens if isinstance(t, MoveToken)]


@dataclass
class TreeError:
    """A problem found while building a tree: an illegal move or bad nesting."""

    reason: str
    token: str | None = None
    fen: str | None = None

    def __str__(self) -> str:
        if self.token is not None and self.fen is not None:
            return f"Illegal move '{self.token}' at {self.fen}: {self.reason}"
        return self.reason


@dataclass
class TreeBuildResult:
    nodes: list[MoveNode] = field(default_factory=list)
    errors: list[TreeError] = field(default_factory=list)
    starting_fen: str = ""

    def by_id(self) -> dict[str, MoveNode]:
        return {n.id: n for n in self.nodes}


@dataclass
class Puzzle:
    """A puzzle assembled from one parsed game.

    The tree shape is fixed once assembled; only ``is_required`` and
    ``annotation`` on nodes are edited afterwards, through ``set_required``
    and ``set_annotation`` so the derived lookups stay in sync.
    """

    id: str
    title: str
    description: str
    starting_position: str
    variations: list[MoveNode] = field(default_factory=list)
    solution: list[str] = field(default_factory=list)
    difficulty: Difficulty = "beginner"
    themes: list[str] = field(default_factory=list)
    required_variation_ids: list[str] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, str] = field(default_factory=dict)

    def node(self, node_id: str) -> MoveNode:
        for n in self.variations:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    @property
    def result(self) -> str:
        return self.metadata.get("Result") or "*"

    @property
    def game_comment(self) -> str | None:
        """Comment written before the first move, kept under metadata["Comment"]."""
        return self.metadata.get("Comment") or None

    def sync_required_ids(self) -> None:
        self.required_variation_ids = [n.id for n in self.variations if n.is_required]

    def set_required(self, node_id: str, required: bool) -> MoveNode:
        node = self.node(node_id)
        node.is_required = required
        self.sync_required_ids()
        return node

    def set_annotation(self, node_id: str, annotation: str | None) -> MoveNode:
        node = self.node(node_id)
        node.annotation = annotation or None
        if node.annotation:
            self.annotations[node_id] = node.annotation
        else:
            self.annotations.pop(node_id, None)
        return node

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startingPosition": self.starting_position,
            "variations": [n.to_dict() for n in self.variations],
            "solution": list(self.solution),
            "difficulty": self.difficulty,
            "themes": list(self.themes),
            "requiredVariationIds": list(self.required_variation_ids),
            "annotations": dict(self.annotations),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Puzzle":
        puzzle = cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            starting_position=data["startingPosition"],
            variations=[MoveNode.from_dict(n) for n in data.get("variations", [])],
            solution=list(data.get("solution", [])),
            difficulty=data.get("difficulty", "beginner"),
            themes=list(data.get("themes", [])),
            annotations=dict(data.get("annotations", {})),
            metadata=dict(data.get("metadata", {})),
        )
        # Node flags are authoritative over the stored id list.
        puzzle.sync_required_ids()
        return puzzle


@dataclass
class ImportResult:
    puzzles: list[Puzzle] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total_games: int = 0


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
