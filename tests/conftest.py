"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from backgammon.core.board import Board
from backgammon.core.types import CHECKERS_PER_COLOR, OFF


def build_board(white=None, black=None):
    """Board from {point: count} maps; unplaced checkers count as borne off."""
    board = Board()
    for counts, placed in ((board.white_checkers, white or {}), (board.black_checkers, black or {})):
        for point, count in placed.items():
            counts[point] = count
        counts[OFF] = CHECKERS_PER_COLOR - sum(placed.values())
    return board


@pytest.fixture(scope="session")
def rng():
    """Seeded NumPy generator for testing."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_board():
    """Create a sample board state for testing."""
    from backgammon.core.board import initial_board
    return initial_board()


@pytest.fixture
def make_board():
    """Factory for partial positions (see ``build_board``)."""
    return build_board


@pytest.fixture
def make_engine():
    """Factory for an engine with a started match and scripted dice."""
    from backgammon.collaborators import FixedDice
    from backgammon.core.engine import MatchEngine

    def _make(rolls=(), match_format=7, auto_end_turn=True, listeners=()):
        engine = MatchEngine(
            dice_source=FixedDice(rolls),
            listeners=listeners,
            auto_end_turn=auto_end_turn,
        )
        engine.start_match(match_format)
        return engine

    return _make
