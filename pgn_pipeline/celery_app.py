"""Celery application for background PGN imports."""

import os
from celery import Celery

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

app = Celery("pgn_import", broker=REDIS_URL, backend=REDIS_URL)
app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)


@app.task(bind=True, max_retries=3)
def import_pgn_task(self, pgn_text: str, parse_variations: bool = True):
    """Celery task: parse a PGN upload and store its puzzles."""
    import sys

    import psycopg

    from pgn_import import parse_pgn
    from puzzle_db import get_connection, save_puzzles

    result = parse_pgn(pgn_text, parse_variations=parse_variations)
    try:
        with get_connection() as conn:
            save_puzzles(conn, result.puzzles)
    except psycopg.Error as exc:
        print(f"Storing {len(result.puzzles)} puzzles failed: {exc}", file=sys.stderr)
        raise self.retry(exc=exc, countdown=5)

    return {
        "stored": len(result.puzzles),
        "puzzle_ids": [p.id for p in result.puzzles],
        "errors": result.errors,
        "total_games": result.total_games,
    }
