"""Tests for dice utilities."""

import numpy as np
import pytest

from backgammon.core.dice import (
    ALL_DICE_ROLLS,
    all_dice_rolls,
    dice_to_string,
    dice_values,
    distinct_faces,
    is_doubles,
    remove_dice,
    roll_dice,
    validate_dice,
)


class TestDiceUtilities:
    """Tests for dice utility functions."""

    def test_all_dice_rolls(self):
        """Test that we get all 21 unique dice rolls."""
        rolls = all_dice_rolls()
        assert len(rolls) == 21

        # Check all doubles are present
        for i in range(1, 7):
            assert (i, i) in rolls

        # Check no duplicates (e.g., both (2,3) and (3,2))
        seen = set()
        for roll in rolls:
            canonical = tuple(sorted(roll))
            assert canonical not in seen
            seen.add(canonical)

    def test_is_doubles(self):
        """Test doubles detection."""
        assert is_doubles((1, 1))
        assert is_doubles((6, 6))
        assert not is_doubles((1, 2))

    def test_dice_values(self):
        """Test getting dice values for moves."""
        # Non-doubles give 2 values
        assert dice_values((3, 5)) == [3, 5]

        # Doubles give 4 values
        assert dice_values((4, 4)) == [4, 4, 4, 4]

    def test_roll_dice(self):
        """Test dice rolling."""
        rng = np.random.default_rng(42)

        for _ in range(100):
            dice = roll_dice(rng)
            assert len(dice) == 2
            assert 1 <= dice[0] <= 6
            assert 1 <= dice[1] <= 6
            assert all(type(d) is int for d in dice)

    def test_dice_to_string(self):
        """Test dice string conversion."""
        assert dice_to_string((3, 5)) == "3-5"
        assert dice_to_string((4, 4)) == "Double 4s"
        assert dice_to_string((4, 4, 4)) == "4-4-4"

    def test_all_dice_rolls_constant(self):
        assert len(ALL_DICE_ROLLS) == 21
        assert list(ALL_DICE_ROLLS) == all_dice_rolls()


class TestDiceBookkeeping:
    """Tests for the available-dice multiset."""

    def test_validate_dice(self):
        assert validate_dice((np.int64(2), 6)) == (2, 6)

    @pytest.mark.parametrize("dice", [(0, 3), (7, 1), (2,), (1.5, 2), ("3", 4)])
    def test_validate_dice_rejects(self, dice):
        with pytest.raises(ValueError):
            validate_dice(dice)

    def test_remove_dice_removes_one_instance(self):
        assert remove_dice([4, 4, 4, 4], (4, 4)) == [4, 4]
        assert remove_dice([3, 5], (5,)) == [3]

    def test_remove_missing_die_raises(self):
        with pytest.raises(ValueError):
            remove_dice([3, 5], (6,))

    def test_distinct_faces(self):
        assert distinct_faces([5, 3, 5]) == [3, 5]
        assert distinct_faces([]) == []
