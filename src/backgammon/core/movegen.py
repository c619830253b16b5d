"""Move generation.

``legal_moves`` answers "where can the checker on this point go?" for the
selection UI: it explores every order of the available dice from one source,
chaining single-die steps over copies of the board so branches never see each
other's hits, and collapses the results to one option per target.

``any_legal_move`` answers "can this color move at all?" without building
option lists; the engine uses it to skip and end turns.
"""

from typing import Dict, List, Sequence, Tuple

from backgammon.core.board import Board
from backgammon.core.dice import distinct_faces
from backgammon.core.rules import step_target
from backgammon.core.types import BAR, OFF, Color, MoveOption, Point


# ==============================================================================
# OPTION SEARCH
# ==============================================================================

def _explore(
    board: Board,
    color: Color,
    source: Point,
    position: Point,
    remaining: List[int],
    dice_so_far: Tuple[int, ...],
    landings: Tuple[Point, ...],
    found: List[MoveOption],
) -> None:
    """Depth-first search over die orders from ``position``.

    ``board`` already reflects the steps taken so far and is never mutated;
    each branch works on its own copy.
    """
    for die in distinct_faces(remaining):
        target = step_target(board, color, position, die)
        if target is None:
            continue

        chain_dice = dice_so_far + (die,)
        chain_landings = landings + (target,)
        found.append(MoveOption(
            source=source,
            target=target,
            dice_used=chain_dice,
            landings=chain_landings,
        ))

        rest = list(remaining)
        rest.remove(die)
        if target == OFF or not rest:
            continue

        branch = board.copy()
        branch.apply(position, target, color)
        _explore(branch, color, source, target, rest, chain_dice, chain_landings, found)


def _prefer(candidate: MoveOption, current: MoveOption) -> bool:
    """Tie-break between two options reaching the same target.

    Fewer dice wins; among equally long chains the larger pip total wins;
    otherwise the option found first is kept.
    """
    if len(candidate.dice_used) != len(current.dice_used):
        return len(candidate.dice_used) < len(current.dice_used)
    return candidate.pips > current.pips


def dedupe_options(options: Sequence[MoveOption]) -> List[MoveOption]:
    """Keep one option per target, ordered by target."""
    best: Dict[Point, MoveOption] = {}
    for option in options:
        current = best.get(option.target)
        if current is None or _prefer(option, current):
            best[option.target] = option
    return [best[target] for target in sorted(best)]


def legal_moves(
    source: Point,
    dice: Sequence[int],
    color: Color,
    board: Board,
) -> List[MoveOption]:
    """All legal destinations for one checker.

    Args:
        source: BAR or a board point
        dice: Unused die faces for this turn
        color: Color to move
        board: Current board (not modified)

    Returns:
        One MoveOption per reachable target. While ``color`` has checkers on
        the bar only single-die re-entries from BAR are returned.
    """
    if not dice:
        return []

    on_bar = board.get_checkers(color, BAR) > 0
    if source == BAR:
        if not on_bar:
            return []
        options = []
        for die in distinct_faces(dice):
            target = step_target(board, color, BAR, die)
            if target is not None:
                options.append(MoveOption(
                    source=BAR, target=target, dice_used=(die,), landings=(target,),
                ))
        return options

    if on_bar or not (1 <= source <= 24) or board.get_checkers(color, source) == 0:
        return []

    found: List[MoveOption] = []
    _explore(board, color, source, source, list(dice), (), (), found)
    return dedupe_options(found)


# ==============================================================================
# EXISTENCE CHECKS
# ==============================================================================

def any_legal_move(board: Board, color: Color, dice: Sequence[int]) -> bool:
    """Check whether ``color`` has any legal move with ``dice``.

    Every chained move starts with a legal single step, so looking for one
    legal step is enough. Bar re-entry is checked first: while the bar is
    occupied nothing else counts.
    """
    faces = distinct_faces(dice)
    if not faces:
        return False

    if board.get_checkers(color, BAR) > 0:
        return any(step_target(board, color, BAR, die) is not None for die in faces)

    for point in board.occupied_points(color):
        for die in faces:
            if step_target(board, color, point, die) is not None:
                return True
    return False


def movable_sources(board: Board, color: Color, dice: Sequence[int]) -> List[Point]:
    """Sources the player may pick this turn.

    Returns:
        [BAR] while ``color`` is on the bar and can enter, otherwise every
        occupied point with at least one legal step
    """
    faces = distinct_faces(dice)
    if board.get_checkers(color, BAR) > 0:
        if any(step_target(board, color, BAR, die) is not None for die in faces):
            return [BAR]
        return []
    return [
        point for point in board.occupied_points(color)
        if any(step_target(board, color, point, die) is not None for die in faces)
    ]
