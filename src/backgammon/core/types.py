"""Core type definitions for the backgammon rules engine.

This module defines the data structures shared by the board model, the move
generator and the match engine. Everything here is plain data: the rules live
in ``rules.py`` and ``movegen.py``, the state machine in ``engine.py``.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


# ==============================================================================
# COLORS AND POINTS
# ==============================================================================

# Type aliases
Point = int  # 0=bar, 1-24=points, 25=off
CheckerCount = int  # 0-15

BAR: Point = 0
OFF: Point = 25  # bear-off sentinel, shared by both colors

NUM_POINTS = 24
CHECKERS_PER_COLOR = 15


class Color(Enum):
    """Checker colors."""
    WHITE = "white"
    BLACK = "black"

    def opponent(self) -> "Color":
        """Return the opposing color."""
        if self is Color.WHITE:
            return Color.BLACK
        return Color.WHITE

    @property
    def title(self) -> str:
        return self.value.capitalize()

    def __str__(self) -> str:
        return self.value


# Dice type
Dice = Tuple[int, int]  # (die1, die2) where 1 <= die1, die2 <= 6


class BoardInvariantError(RuntimeError):
    """Raised when a mutation would break the board invariants.

    This signals a programming error (e.g. applying a move the generator never
    offered), never a user mistake. User mistakes are reported as rejected
    ``ActionResult``s instead.
    """


def point_label(point: Point) -> str:
    """Human-readable name for a point or sentinel."""
    if point == BAR:
        return "the bar"
    if point == OFF:
        return "off"
    return f"point {point}"


# ==============================================================================
# MOVES
# ==============================================================================

@dataclass(frozen=True)
class MoveOption:
    """A legal destination for one checker, reachable in one logical action.

    Attributes:
        source: Point (or BAR) the checker starts from
        target: Final point, or OFF for a bear-off
        dice_used: Die faces consumed, in the order they are played
        landings: Every landing point of the chain; the last one is ``target``
    """
    source: Point
    target: Point
    dice_used: Tuple[int, ...]
    landings: Tuple[Point, ...]

    def __post_init__(self):
        assert 1 <= len(self.dice_used) <= 4, f"Invalid dice count: {self.dice_used}"
        assert len(self.landings) == len(self.dice_used), "One landing per die"
        assert self.landings[-1] == self.target, "Chain must end on target"

    @property
    def pips(self) -> int:
        return sum(self.dice_used)

    @property
    def is_bear_off(self) -> bool:
        return self.target == OFF


@dataclass(frozen=True)
class MoveRecord:
    """An applied move, kept on the turn-scoped undo log.

    Attributes:
        from_point: Starting point, or BAR
        to_point: Final point, or OFF
        color: Color that moved
        dice_used: Die faces consumed by the move
        landings: Landing points of each single-die step
        hit_points: Landing points where an opposing blot was sent to the bar
    """
    from_point: Point
    to_point: Point
    color: Color
    dice_used: Tuple[int, ...]
    landings: Tuple[Point, ...]
    hit_points: Tuple[Point, ...] = ()

    def __post_init__(self):
        assert 0 <= self.from_point <= 24, f"Invalid from_point: {self.from_point}"
        assert 1 <= self.to_point <= 25, f"Invalid to_point: {self.to_point}"
        assert all(p in self.landings for p in self.hit_points), "Hits must be landings"

    @property
    def hit_opponent(self) -> bool:
        return bool(self.hit_points)

    @property
    def hit_color(self) -> Optional[Color]:
        return self.color.opponent() if self.hit_points else None

    def describe(self) -> str:
        text = f"{self.color.title} moved from {point_label(self.from_point)} to {point_label(self.to_point)}"
        if self.hit_points:
            text += f", hitting {len(self.hit_points)} blot(s)"
        return text


# ==============================================================================
# MATCH AND TURN STATE
# ==============================================================================

@dataclass
class MatchState:
    """Game-win counts for a best-of-N match.

    Attributes:
        match_format: Odd number of games; the first side to a majority wins
        white_score: Games won by White
        black_score: Games won by Black
    """
    match_format: int = 7
    white_score: int = 0
    black_score: int = 0

    def __post_init__(self):
        assert self.match_format >= 1 and self.match_format % 2 == 1, (
            f"Match format must be a positive odd number, got {self.match_format}"
        )

    @property
    def games_to_win(self) -> int:
        return math.ceil(self.match_format / 2)

    def score(self, color: Color) -> int:
        return self.white_score if color is Color.WHITE else self.black_score

    def credit(self, color: Color) -> None:
        """Record a game win for ``color`` (mutates)."""
        if color is Color.WHITE:
            self.white_score += 1
        else:
            self.black_score += 1

    def winner(self) -> Optional[Color]:
        """Match winner, or None while the match is undecided."""
        if self.white_score >= self.games_to_win:
            return Color.WHITE
        if self.black_score >= self.games_to_win:
            return Color.BLACK
        return None

    def scores(self) -> Dict[str, int]:
        return {"white": self.white_score, "black": self.black_score}


class Phase(Enum):
    """Engine phase within a game and match."""
    IDLE = "idle"
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_SELECTION = "awaiting_selection"
    SOURCE_SELECTED = "source_selected"
    TURN_ENDING = "turn_ending"
    MATCH_OVER = "match_over"


class EventKind(Enum):
    MOVED = "moved"
    UNDONE = "undone"
    TURN_SKIPPED = "turn_skipped"
    TURN_ENDED = "turn_ended"
    GAME_WON = "game_won"
    MATCH_WON = "match_won"


@dataclass(frozen=True)
class GameEvent:
    """Something that happened while handling an action.

    Attributes:
        kind: Event type
        color: Color the event concerns (mover, skipper or winner)
        message: Human-readable description
        dice: Dice involved (the untouched roll for a skipped turn)
        record: Move record for MOVED / UNDONE events
        scores: Match scores for GAME_WON / MATCH_WON events
    """
    kind: EventKind
    color: Color
    message: str
    dice: Tuple[int, ...] = ()
    record: Optional[MoveRecord] = None
    scores: Optional[Dict[str, int]] = None


@dataclass
class ActionResult:
    """Outcome of an engine action.

    Rejected actions leave the engine untouched and explain why in ``message``.
    """
    accepted: bool
    message: str
    events: List[GameEvent] = field(default_factory=list)
    dice: Optional[Dice] = None

    def __bool__(self) -> bool:
        return self.accepted

    def kinds(self) -> List[EventKind]:
        return [event.kind for event in self.events]
