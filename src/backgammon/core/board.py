"""Board representation and checker bookkeeping.

This module implements the board model, including:
- Board construction (starting layout, empty board)
- Checker movement (apply / revert of a single-die step or bear-off)
- Board queries (blocking, ownership, bar and home counts, pip count)
- Invariant checks

Each color has a 26-slot count array:
    index 0      bar
    index 1-24   board points
    index 25     borne off (home)

Point numbering:
    13 14 15 16 17 18    19 20 21 22 23 24
    +------------------+------------------+
    |                  |                  |  Black home (19-24)
    |                  |                  |
    |                  |                  |
    |                  |                  |  White home (1-6)
    +------------------+------------------+
    12 11 10  9  8  7     6  5  4  3  2  1

Movement order along the board is defined by the paths in ``rules.py``; the
board itself only knows about counts.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from backgammon.core.types import (
    BAR,
    OFF,
    CHECKERS_PER_COLOR,
    BoardInvariantError,
    CheckerCount,
    Color,
    Point,
    point_label,
)


# ==============================================================================
# BOARD
# ==============================================================================

@dataclass
class Board:
    """Checker counts for both colors.

    Attributes:
        white_checkers: Array of checker counts for white (length 26)
        black_checkers: Array of checker counts for black (length 26)
    """
    white_checkers: NDArray[np.int32] = field(default_factory=lambda: np.zeros(26, dtype=np.int32))
    black_checkers: NDArray[np.int32] = field(default_factory=lambda: np.zeros(26, dtype=np.int32))

    def __post_init__(self):
        """Validate board shape."""
        self.white_checkers = np.asarray(self.white_checkers, dtype=np.int32)
        self.black_checkers = np.asarray(self.black_checkers, dtype=np.int32)
        assert len(self.white_checkers) == 26, "white_checkers must have length 26"
        assert len(self.black_checkers) == 26, "black_checkers must have length 26"

    def copy(self) -> "Board":
        """Create a deep copy of the board."""
        return Board(
            white_checkers=self.white_checkers.copy(),
            black_checkers=self.black_checkers.copy(),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            np.array_equal(self.white_checkers, other.white_checkers)
            and np.array_equal(self.black_checkers, other.black_checkers)
        )

    def checkers(self, color: Color) -> NDArray[np.int32]:
        """The count array for a color (a view, not a copy)."""
        return self.white_checkers if color is Color.WHITE else self.black_checkers

    def get_checkers(self, color: Color, point: Point) -> CheckerCount:
        """Get number of checkers at a point for a color."""
        return int(self.checkers(color)[point])

    def set_checkers(self, color: Color, point: Point, count: CheckerCount) -> None:
        """Set number of checkers at a point for a color (mutates board)."""
        assert 0 <= count <= CHECKERS_PER_COLOR, f"Invalid checker count: {count}"
        self.checkers(color)[point] = count

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    def owner(self, point: Point) -> Optional[Color]:
        """Color occupying a board point, or None when it is empty."""
        if self.white_checkers[point] > 0:
            return Color.WHITE
        if self.black_checkers[point] > 0:
            return Color.BLACK
        return None

    def is_blocked(self, point: Point, color: Color) -> bool:
        """True iff ``point`` holds two or more checkers of the opponent."""
        return self.get_checkers(color.opponent(), point) >= 2

    def is_blot(self, point: Point, color: Color) -> bool:
        """True iff ``point`` holds exactly one checker of ``color``."""
        return self.get_checkers(color, point) == 1

    def count_on_path(self, color: Color) -> int:
        """Checkers of ``color`` still on board points (bar and home excluded)."""
        return int(self.checkers(color)[1:25].sum())

    def checkers_on_points(self, color: Color, points: Iterable[Point]) -> int:
        """Checkers of ``color`` on the given board points."""
        counts = self.checkers(color)
        return int(sum(counts[p] for p in points))

    def occupied_points(self, color: Color) -> List[Point]:
        """Board points holding at least one checker of ``color``, ascending."""
        counts = self.checkers(color)
        return [int(p) for p in np.nonzero(counts[1:25])[0] + 1]

    # --------------------------------------------------------------------------
    # Mutation
    # --------------------------------------------------------------------------

    def apply(self, from_point: Point, to_point: Point, color: Color) -> bool:
        """Move one checker of ``color``.

        ``from_point`` is a board point or BAR, ``to_point`` a board point or OFF.
        A lone opposing checker on the destination is sent to its bar.

        Callers are expected to validate with the move generator first; a
        request that cannot be carried out raises before anything is mutated.

        Returns:
            True if an opposing blot was hit
        """
        if not (BAR <= from_point <= 24):
            raise BoardInvariantError(f"Cannot move from {point_label(from_point)}")
        if not (1 <= to_point <= OFF):
            raise BoardInvariantError(f"Cannot move to {point_label(to_point)}")
        if self.get_checkers(color, from_point) == 0:
            raise BoardInvariantError(
                f"No {color} checker on {point_label(from_point)} to move"
            )

        opponent = color.opponent()
        hit = False
        if to_point != OFF:
            defenders = self.get_checkers(opponent, to_point)
            if defenders >= 2:
                raise BoardInvariantError(
                    f"{point_label(to_point)} is blocked for {color}"
                )
            hit = defenders == 1

        mine = self.checkers(color)
        mine[from_point] -= 1
        mine[to_point] += 1
        if hit:
            theirs = self.checkers(opponent)
            theirs[to_point] -= 1
            theirs[BAR] += 1
        return hit

    def revert(self, from_point: Point, to_point: Point, color: Color, hit: bool) -> None:
        """Exact inverse of ``apply(from_point, to_point, color)``."""
        if self.get_checkers(color, to_point) == 0:
            raise BoardInvariantError(
                f"No {color} checker on {point_label(to_point)} to take back"
            )
        opponent = color.opponent()
        if hit and self.get_checkers(opponent, BAR) == 0:
            raise BoardInvariantError(f"No {opponent} checker on the bar to restore")

        mine = self.checkers(color)
        mine[to_point] -= 1
        mine[from_point] += 1
        if hit:
            theirs = self.checkers(opponent)
            theirs[BAR] -= 1
            theirs[to_point] += 1


# ==============================================================================
# BOARD CONSTRUCTION
# ==============================================================================

def initial_board() -> Board:
    """Create the starting position.

    The standard setup, laid out along each color's path:
    - White: 2 on 12, 5 on 1, 3 on 20, 5 on 18
    - Black: 2 on 13, 5 on 24, 3 on 5, 5 on 7

    Returns:
        Board in starting position
    """
    board = Board()

    board.white_checkers[12] = 2   # Back checkers (start of White's path)
    board.white_checkers[1] = 5    # Mid-point
    board.white_checkers[20] = 3
    board.white_checkers[18] = 5

    board.black_checkers[13] = 2   # Back checkers (start of Black's path)
    board.black_checkers[24] = 5   # Mid-point
    board.black_checkers[5] = 3
    board.black_checkers[7] = 5

    return board


def empty_board() -> Board:
    """Create an empty board with no checkers.

    Returns:
        Empty board
    """
    return Board()


# ==============================================================================
# BOARD QUERIES
# ==============================================================================

def checkers_on_bar(board: Board, color: Color) -> int:
    """Get number of checkers on the bar for a color."""
    return board.get_checkers(color, BAR)


def checkers_borne_off(board: Board, color: Color) -> int:
    """Get number of checkers borne off for a color."""
    return board.get_checkers(color, OFF)


def pip_count(board: Board, color: Color) -> int:
    """Pips a color still needs to bear everything off.

    White bears off below point 1 and Black above point 24, so a checker's
    distance is its point number for White and ``25 - point`` for Black. The bar
    counts as 25 pips.
    """
    counts = board.checkers(color)
    total = 25 * int(counts[BAR])
    for point in range(1, 25):
        if counts[point]:
            distance = point if color is Color.WHITE else 25 - point
            total += distance * int(counts[point])
    return total


def is_valid_board(board: Board) -> Tuple[bool, str]:
    """Validate a board state.

    Args:
        board: Board to validate

    Returns:
        (is_valid, error_message) tuple
    """
    for color in Color:
        counts = board.checkers(color)
        if (counts < 0).any():
            return False, f"{color.title} has a negative checker count"
        total = int(counts.sum())
        if total != CHECKERS_PER_COLOR:
            return False, f"{color.title} has {total} checkers, should have {CHECKERS_PER_COLOR}"

    for point in range(1, 25):
        if board.white_checkers[point] > 0 and board.black_checkers[point] > 0:
            return False, f"Point {point} holds both colors"

    return True, ""


def check_invariants(board: Board) -> None:
    """Raise BoardInvariantError if the board is not a legal position."""
    valid, error = is_valid_board(board)
    if not valid:
        raise BoardInvariantError(error)


# ==============================================================================
# BOARD DISPLAY (for debugging)
# ==============================================================================

def board_to_string(board: Board) -> str:
    """Convert board to string representation.

    Args:
        board: Board to display

    Returns:
        ASCII table of both colors' counts
    """
    lines = []
    lines.append("=" * 50)
    lines.append(f"White pip count: {pip_count(board, Color.WHITE)}")
    lines.append(f"Black pip count: {pip_count(board, Color.BLACK)}")
    lines.append("")

    lines.append("Point | White | Black")
    lines.append("------+-------+------")

    for point in range(26):
        w = board.white_checkers[point]
        b = board.black_checkers[point]
        if point == BAR:
            point_name = "BAR  "
        elif point == OFF:
            point_name = "OFF  "
        else:
            point_name = f"{point:2d}   "

        lines.append(f"{point_name}|  {w:2d}   |  {b:2d}")

    lines.append("=" * 50)
    return "\n".join(lines)


def print_board(board: Board) -> None:
    """Print board to console."""
    print(board_to_string(board))
