"""
Backgammon Engine - rule-accurate backgammon move legality, turns and match scoring.
"""

__version__ = "0.1.0"

# Core exports
from backgammon.core.types import (
    BAR,
    OFF,
    Color,
    Dice,
    MoveOption,
    MoveRecord,
    MatchState,
    Phase,
)
from backgammon.core.board import Board
from backgammon.core.engine import MatchEngine

__all__ = [
    "BAR",
    "OFF",
    "Board",
    "Color",
    "Dice",
    "MatchEngine",
    "MatchState",
    "MoveOption",
    "MoveRecord",
    "Phase",
]
