"""Paths and single-step legality rules.

Each color walks a fixed 24-point path:

    White: 12 11 10 ... 1 24 23 ... 13
    Black: 13 14 15 ... 24 1 2 ... 12

Checkers enter from the bar into fixed points (White: the die value, Black:
18 + the die value) and bear off from their home points (White: 6..1, Black:
19..24). Bearing-off distance is the point number for White and 25 minus the
point number for Black.

Once a color is eligible to bear off, a die that reaches or passes the edge
from a home point is a bear-off attempt. Until then checkers simply follow
their path; a step past the end of the path is never legal.
"""

from typing import Dict, Optional, Tuple

from backgammon.core.board import Board
from backgammon.core.types import BAR, OFF, CHECKERS_PER_COLOR, Color, Point


# ==============================================================================
# FIXED GEOMETRY
# ==============================================================================

WHITE_PATH: Tuple[Point, ...] = tuple(range(12, 0, -1)) + tuple(range(24, 12, -1))
BLACK_PATH: Tuple[Point, ...] = tuple(range(13, 25)) + tuple(range(1, 13))

PATHS: Dict[Color, Tuple[Point, ...]] = {
    Color.WHITE: WHITE_PATH,
    Color.BLACK: BLACK_PATH,
}

HOME_POINTS: Dict[Color, Tuple[Point, ...]] = {
    Color.WHITE: (6, 5, 4, 3, 2, 1),
    Color.BLACK: (19, 20, 21, 22, 23, 24),
}

_PATH_INDEX: Dict[Color, Dict[Point, int]] = {
    color: {point: i for i, point in enumerate(path)} for color, path in PATHS.items()
}


def path_index(color: Color, point: Point) -> int:
    """Position of a board point along a color's path (0-23)."""
    return _PATH_INDEX[color][point]


def is_home_point(color: Color, point: Point) -> bool:
    return point in HOME_POINTS[color]


def entry_point(color: Color, die: int) -> Point:
    """Point a checker enters on from the bar with a given die.

    Args:
        color: Which color
        die: Die value (1-6)

    Returns:
        Point number
    """
    if color is Color.WHITE:
        return die
    return 18 + die


def bear_off_distance(color: Color, point: Point) -> int:
    """Pips from a point to the bear-off edge."""
    if color is Color.WHITE:
        return point
    return 25 - point


# ==============================================================================
# LEGALITY
# ==============================================================================

def can_bear_off(board: Board, color: Color) -> bool:
    """Check if a color may bear off.

    A color can bear off when its bar is empty and every checker it still has
    on the board sits on one of its home points.

    Args:
        board: Current board
        color: Which color

    Returns:
        True if the color is eligible to bear off
    """
    if board.get_checkers(color, BAR) > 0:
        return False
    at_home = board.checkers_on_points(color, HOME_POINTS[color])
    return at_home + board.get_checkers(color, OFF) == CHECKERS_PER_COLOR


def has_checker_farther(board: Board, color: Color, point: Point) -> bool:
    """True if a checker of ``color`` sits strictly farther from the edge."""
    distance = bear_off_distance(color, point)
    return any(
        board.get_checkers(color, p) > 0
        for p in HOME_POINTS[color]
        if bear_off_distance(color, p) > distance
    )


def can_bear_off_checker(board: Board, color: Color, point: Point, die: int) -> bool:
    """Check whether the checker on ``point`` may bear off with ``die``.

    Exact dice always work. A larger die (overshoot) only works for the
    checker farthest from the edge; checkers sharing its point never count as
    farther away.
    """
    if not can_bear_off(board, color) or not is_home_point(color, point):
        return False
    distance = bear_off_distance(color, point)
    if die == distance:
        return True
    return die > distance and not has_checker_farther(board, color, point)


def step_target(board: Board, color: Color, source: Point, die: int) -> Optional[Point]:
    """Landing point of a single-die step, or None if the step is illegal.

    ``source`` may be BAR (re-entry) or a board point holding a checker of
    ``color``.

    Returns:
        A board point, OFF for a bear-off, or None
    """
    if source == BAR:
        target = entry_point(color, die)
        return None if board.is_blocked(target, color) else target

    if board.get_checkers(color, source) == 0:
        return None

    if (
        is_home_point(color, source)
        and die >= bear_off_distance(color, source)
        and can_bear_off(board, color)
    ):
        return OFF if can_bear_off_checker(board, color, source, die) else None

    index = path_index(color, source) + die
    if index >= len(PATHS[color]):
        return None
    target = PATHS[color][index]
    return None if board.is_blocked(target, color) else target
