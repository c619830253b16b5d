"""Core game logic and data structures."""

from backgammon.core.types import (
    BAR,
    OFF,
    ActionResult,
    BoardInvariantError,
    Color,
    Dice,
    EventKind,
    GameEvent,
    MatchState,
    MoveOption,
    MoveRecord,
    Phase,
    Point,
)
from backgammon.core.board import Board, initial_board, empty_board
from backgammon.core.movegen import legal_moves, any_legal_move
from backgammon.core.engine import MatchEngine, MatchListener, Snapshot

__all__ = [
    "BAR",
    "OFF",
    "ActionResult",
    "Board",
    "BoardInvariantError",
    "Color",
    "Dice",
    "EventKind",
    "GameEvent",
    "MatchEngine",
    "MatchListener",
    "MatchState",
    "MoveOption",
    "MoveRecord",
    "Phase",
    "Point",
    "Snapshot",
    "any_legal_move",
    "empty_board",
    "initial_board",
    "legal_moves",
]
