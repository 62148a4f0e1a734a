"""
FastAPI service for PGN puzzle import and export

Endpoints:
  POST  /pgn/validate                        - Pass/fail verdict with errors
  POST  /pgn/import                          - Parse PGN into puzzles (optionally store)
  POST  /pgn/export                          - Puzzles back to PGN text
  GET   /position                            - FEN shape check and material count
  POST  /position/move                       - Play a from/to move on a FEN
  GET   /puzzles                             - Stored puzzles
  GET   /puzzles/{puzzle_id}                 - One stored puzzle
  PATCH /puzzles/{puzzle_id}/nodes/{node_id} - Toggle required flag / edit annotation
"""

import sys
from pathlib import Path
from typing import Literal

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from fen_utils import is_theoretical_draw, is_valid_position, material_balance
from pgn_export import to_pgn
from pgn_import import parse_pgn
from pgn_validator import validate
from puzzle_db import get_connection, get_puzzle, list_puzzles, save_puzzles, update_node_flags
from puzzle_models import Puzzle
from rules_engine import IllegalMoveError, RulesEngine

app = FastAPI(title="PGN Puzzle API", version="1.0.0")


class ValidateRequest(BaseModel):
    pgn: str
    require_headers: bool = False


class ImportRequest(BaseModel):
    pgn: str
    parse_variations: bool = True
    store: bool = False


class ExportRequest(BaseModel):
    puzzles: list[dict]
    layout: Literal["flat", "nested"] = "flat"


class MoveRequest(BaseModel):
    fen: str
    from_square: str
    to_square: str
    promotion: str | None = None


class NodeUpdate(BaseModel):
    is_required: bool | None = None
    annotation: str | None = None


@app.post("/pgn/validate")
def validate_pgn(body: ValidateRequest):
    verdict = validate(body.pgn, require_headers=body.require_headers)
    return {"isValid": verdict.is_valid, "errors": verdict.errors}


@app.post("/pgn/import")
def import_pgn(body: ImportRequest):
    result = parse_pgn(body.pgn, parse_variations=body.parse_variations)
    if body.store and result.puzzles:
        with get_connection() as conn:
            save_puzzles(conn, result.puzzles)
    return {
        "puzzles": [p.to_dict() for p in result.puzzles],
        "errors": result.errors,
        "totalGames": result.total_games,
    }


@app.post("/pgn/export", response_class=PlainTextResponse)
def export_pgn(body: ExportRequest):
    try:
        puzzles = [Puzzle.from_dict(p) for p in body.puzzles]
    except (KeyError, TypeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid puzzle payload: {e}")
    return to_pgn(puzzles, layout=body.layout)


@app.get("/position")
def position_info(fen: str = Query(..., min_length=1)):
    """Shape check and material count for a FEN (underscores accepted for spaces)."""
    fen = fen.replace("_", " ")
    return {
        "fen": fen,
        "isValid": is_valid_position(fen),
        "material": material_balance(fen),
        "theoreticalDraw": is_theoretical_draw(fen),
    }


@app.post("/position/move")
def play_move(body: MoveRequest):
    """Board UI onMove contract: from/to squares in, move and new FEN out."""
    try:
        move, fen_after = RulesEngine().apply_squares(
            body.fen, body.from_square, body.to_square, body.promotion
        )
    except IllegalMoveError as e:
        raise HTTPException(status_code=400, detail=f"Illegal move: {e.reason}")
    return {"move": move.to_dict(), "fen": fen_after}


@app.get("/puzzles")
def get_puzzles(
    difficulty: Literal["beginner", "intermediate", "advanced"] | None = None,
    limit: int = Query(50, le=500),
):
    with get_connection() as conn:
        puzzles = list_puzzles(conn, difficulty=difficulty, limit=limit)
    return [
        {"id": p.id, "title": p.title, "difficulty": p.difficulty, "themes": p.themes}
        for p in puzzles
    ]


@app.get("/puzzles/{puzzle_id}")
def get_puzzle_endpoint(puzzle_id: str):
    with get_connection() as conn:
        puzzle = get_puzzle(conn, puzzle_id)
    if puzzle is None:
        raise HTTPException(status_code=404, detail="Puzzle not found")
    return puzzle.to_dict()


@app.patch("/puzzles/{puzzle_id}/nodes/{node_id}")
def update_node(puzzle_id: str, node_id: str, body: NodeUpdate):
    """onToggleRequired / annotation edits from the move tree UI."""
    with get_connection() as conn:
        try:
            puzzle = update_node_flags(
                conn, puzzle_id, node_id,
                is_required=body.is_required,
                annotation=body.annotation,
            )
        except KeyError:
            raise HTTPException(status_code=404, detail="Node not found")
    if puzzle is None:
        raise HTTPException(status_code=404, detail="Puzzle not found")
    node = puzzle.node(node_id)
    return {
        "node": node.to_dict(),
        "requiredVariationIds": puzzle.required_variation_ids,
    }


@app.get("/health")
def health():
    return {"status": "ok"}
