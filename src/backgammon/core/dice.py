"""Dice utilities for backgammon.

This module handles roll expansion (doubles give four moves), dice multiset
bookkeeping for the engine, and rolling with a NumPy generator.
"""

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from backgammon.core.types import Dice


def all_dice_rolls() -> List[Dice]:
    """Generate all 21 unique dice outcomes.

    In backgammon, (2,3) and (3,2) are equivalent, so there are 21 unique rolls:
    - 6 doubles: (1,1), (2,2), (3,3), (4,4), (5,5), (6,6)
    - 15 non-doubles: (1,2), (1,3), ..., (5,6)

    Returns:
        List of all 21 unique dice combinations, sorted
    """
    rolls = []
    for die1 in range(1, 7):
        for die2 in range(die1, 7):  # die2 >= die1 to avoid duplicates
            rolls.append((die1, die2))
    return rolls


def is_valid_face(value: int) -> bool:
    return isinstance(value, (int, np.integer)) and 1 <= value <= 6


def validate_dice(dice: Dice) -> Dice:
    """Check two die faces and normalize them to plain ints.

    Raises:
        ValueError: If a face is not an integer in 1..6
    """
    if len(dice) != 2 or not all(is_valid_face(d) for d in dice):
        raise ValueError(f"Dice must be two faces between 1 and 6, got {dice!r}")
    return (int(dice[0]), int(dice[1]))


def is_doubles(dice: Dice) -> bool:
    """Check if dice roll is doubles.

    Args:
        dice: Dice roll tuple

    Returns:
        True if both dice show the same value
    """
    return dice[0] == dice[1]


def dice_values(dice: Dice) -> List[int]:
    """Get the dice values to use for moves.

    For doubles, you get 4 moves. For non-doubles, you get 2 moves.

    Args:
        dice: Dice roll tuple

    Returns:
        List of dice values (length 2 or 4)

    Examples:
        >>> dice_values((3, 5))
        [3, 5]
        >>> dice_values((4, 4))
        [4, 4, 4, 4]
    """
    if is_doubles(dice):
        return [dice[0]] * 4
    else:
        return [dice[0], dice[1]]


def remove_dice(available: Sequence[int], used: Iterable[int]) -> List[int]:
    """Remove one instance of each used face from the available multiset.

    Raises:
        ValueError: If a used face is not available
    """
    remaining = list(available)
    for die in used:
        try:
            remaining.remove(die)
        except ValueError:
            raise ValueError(f"Die {die} is not available in {list(available)}") from None
    return remaining


def distinct_faces(available: Iterable[int]) -> List[int]:
    """Distinct faces in ascending order."""
    return sorted(set(available))


def roll_dice(rng_key: np.random.Generator) -> Dice:
    """Roll two dice.

    Args:
        rng_key: NumPy random generator

    Returns:
        Tuple of (die1, die2) where each is 1-6
    """
    die1 = int(rng_key.integers(1, 7))
    die2 = int(rng_key.integers(1, 7))
    return (die1, die2)


def dice_to_string(dice: Sequence[int]) -> str:
    """Convert dice to readable string.

    Args:
        dice: Dice roll tuple

    Returns:
        String representation

    Examples:
        >>> dice_to_string((3, 5))
        '3-5'
        >>> dice_to_string((4, 4))
        'Double 4s'
    """
    if len(dice) == 2 and is_doubles(dice):
        return f"Double {dice[0]}s"
    return "-".join(str(d) for d in dice)


# Precompute all dice rolls for efficiency
ALL_DICE_ROLLS: Tuple[Dice, ...] = tuple(all_dice_rolls())
