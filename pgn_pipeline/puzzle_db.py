"""Database layer for imported puzzles."""

import os
import sys
from contextlib import contextmanager
from pathlib import Path

import psycopg
from psycopg.types.json import Jsonb

sys.path.insert(0, str(Path(__file__).resolve().parent))
from puzzle_models import Puzzle

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS chess_puzzles (
    puzzle_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    payload JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def get_connection_string() -> str:
    """Get database connection string from environment."""
    return os.environ.get(
        "DATABASE_URL",
        "postgresql://localhost:5432/chess_puzzles?user=postgres&password=postgres",
    )


@contextmanager
def get_connection():
    """Context manager for database connections."""
    conn = psycopg.connect(get_connection_string())
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_schema(conn: psycopg.Connection) -> None:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)


def save_puzzle(conn: psycopg.Connection, puzzle: Puzzle) -> None:
    """Insert or replace a puzzle, keyed by its id."""
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO chess_puzzles (puzzle_id, title, difficulty, payload)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (puzzle_id) DO UPDATE SET
                title = EXCLUDED.title,
                difficulty = EXCLUDED.difficulty,
                payload = EXCLUDED.payload,
                updated_at = NOW()
            """,
            (puzzle.id, puzzle.title, puzzle.difficulty, Jsonb(puzzle.to_dict())),
        )


def save_puzzles(conn: psycopg.Connection, puzzles: list[Puzzle]) -> int:
    """Create the table if needed and upsert every puzzle. Returns the count."""
    ensure_schema(conn)
    for puzzle in puzzles:
        save_puzzle(conn, puzzle)
    return len(puzzles)


def get_puzzle(conn: psycopg.Connection, puzzle_id: str) -> Puzzle | None:
    with conn.cursor() as cur:
        cur.execute("SELECT payload FROM chess_puzzles WHERE puzzle_id = %s", (puzzle_id,))
        row = cur.fetchone()
    if not row:
        return None
    return Puzzle.from_dict(row[0])


def list_puzzles(
    conn: psycopg.Connection, difficulty: str | None = None, limit: int | None = None
) -> list[Puzzle]:
    """Puzzles oldest first, optionally filtered by difficulty."""
    sql = "SELECT payload FROM chess_puzzles"
    params: list = []
    if difficulty:
        sql += " WHERE difficulty = %s"
        params.append(difficulty)
    sql += " ORDER BY created_at, puzzle_id"
    if limit:
        sql += " LIMIT %s"
        params.append(limit)
    with conn.cursor() as cur:
        cur.execute(sql, params)
        rows = cur.fetchall()
    return [Puzzle.from_dict(r[0]) for r in rows]


def update_node_flags(
    conn: psycopg.Connection,
    puzzle_id: str,
    node_id: str,
    is_required: bool | None = None,
    annotation: str | None = None,
) -> Puzzle | None:
    """Edit one node's required flag and/or annotation and save the puzzle.

    Returns None if the puzzle does not exist; raises KeyError for an
    unknown node.
    """
    puzzle = get_puzzle(conn, puzzle_id)
    if puzzle is None:
        return None
    if is_required is not None:
        puzzle.set_required(node_id, is_required)
    if annotation is not None:
        puzzle.set_annotation(node_id, annotation)
    save_puzzle(conn, puzzle)
    return puzzle
