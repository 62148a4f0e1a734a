"""Pytest configuration."""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a live database (skipped in CI by default)"
    )


os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/chess_puzzles?user=postgres&password=postgres")


SAMPLE_PGN = """[Event "Club Training"]
[Site "LearnSpark"]
[Date "2024.03.01"]
[Round "1"]
[White "Alice"]
[Black "Bob"]
[Result "1-0"]
[ECO "C50"]
[Opening "Italian Game"]

1. e4 e5 2. Nf3 Nc6 3. Bc4 {Aiming at f7} Bc5 (3... Nf6 4. Ng5) 4. c3 1-0

[Event "Mate Drill"]
[Site "LearnSpark"]
[Date "2024.03.02"]
[Result "*"]
[FEN "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"]
[SetUp "1"]

1. Ra8# *
"""


@pytest.fixture
def sample_pgn() -> str:
    return SAMPLE_PGN


@pytest.fixture
def mock_conn():
    from unittest.mock import MagicMock

    conn = MagicMock()
    conn.__enter__ = MagicMock(return_value=conn)
    conn.__exit__ = MagicMock(return_value=False)
    cursor = MagicMock()
    conn.cursor.return_value.__enter__ = MagicMock(return_value=cursor)
    conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    conn.test_cursor = cursor
    return conn
