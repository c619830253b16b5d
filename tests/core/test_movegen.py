"""Tests for move generation."""

import numpy as np
import pytest

from backgammon.core.board import Board, check_invariants
from backgammon.core.dice import ALL_DICE_ROLLS, dice_values
from backgammon.core.movegen import (
    any_legal_move,
    dedupe_options,
    legal_moves,
    movable_sources,
)
from backgammon.core.types import BAR, OFF, CHECKERS_PER_COLOR, Color, MoveOption


def random_board(rng) -> Board:
    """Random legal position: 15 checkers each, no shared points."""
    board = Board()
    white_points = rng.choice(np.arange(0, 26), size=rng.integers(1, 8), replace=False)
    for _ in range(CHECKERS_PER_COLOR):
        board.white_checkers[rng.choice(white_points)] += 1
    free = [p for p in range(26) if p in (0, 25) or board.white_checkers[p] == 0]
    black_points = rng.choice(free, size=min(len(free), int(rng.integers(1, 8))), replace=False)
    for _ in range(CHECKERS_PER_COLOR):
        board.black_checkers[rng.choice(black_points)] += 1
    check_invariants(board)
    return board


def targets(options):
    return [option.target for option in options]


class TestLegalMoves:
    """Tests for legal_moves."""

    def test_single_and_combined_targets(self, sample_board):
        options = legal_moves(12, [2, 3], Color.WHITE, sample_board)
        by_target = {o.target: o for o in options}
        assert by_target[10].dice_used == (2,)
        assert by_target[9].dice_used == (3,)
        # 2+3 lands on 7, which Black holds
        assert set(by_target) == {10, 9}

    def test_options_sorted_by_target(self, sample_board):
        options = legal_moves(12, [1, 4], Color.WHITE, sample_board)
        assert targets(options) == sorted(targets(options))

    def test_empty_dice(self, sample_board):
        assert legal_moves(12, [], Color.WHITE, sample_board) == []

    def test_foreign_or_empty_source(self, sample_board):
        assert legal_moves(13, [1, 2], Color.WHITE, sample_board) == []
        assert legal_moves(10, [1, 2], Color.WHITE, sample_board) == []
        assert legal_moves(OFF, [1, 2], Color.WHITE, sample_board) == []

    def test_board_not_modified(self, sample_board):
        before = sample_board.copy()
        legal_moves(1, [6, 6, 6, 6], Color.WHITE, sample_board)
        assert sample_board == before

    def test_chain_through_open_points(self, make_board):
        """Point 1 with double 6s reaches 19 and, chained, 13."""
        board = make_board(
            white={12: 2, 1: 5, 20: 3, 18: 5},
            black={24: 5, 5: 3, 7: 5, 8: 2},
        )
        options = legal_moves(1, [6, 6, 6, 6], Color.WHITE, board)
        by_target = {o.target: o for o in options}
        assert set(by_target) == {19, 13}
        assert by_target[19].dice_used == (6,)
        assert by_target[13].dice_used == (6, 6)
        assert by_target[13].landings == (19, 13)

    def test_chain_stops_at_block(self, sample_board):
        # Black's two checkers on 13 block the second six
        options = legal_moves(1, [6, 6, 6, 6], Color.WHITE, sample_board)
        assert targets(options) == [19]

    def test_chain_cannot_use_blocked_intermediate(self, make_board):
        board = make_board(white={12: 1}, black={10: 2, 9: 2})
        # 12 -> 10 and 12 -> 9 are blocked, so 7 is unreachable too
        assert legal_moves(12, [2, 3], Color.WHITE, board) == []

    def test_chain_hits_on_the_way(self, make_board):
        board = make_board(white={12: 1}, black={10: 1, 20: 14})
        options = legal_moves(12, [2, 3], Color.WHITE, board)
        by_target = {o.target: o for o in options}
        assert by_target[7].landings in ((10, 7), (9, 7))

    def test_doubles_remaining_dice_still_offered(self, sample_board):
        board = sample_board.copy()
        board.apply(12, 8, Color.WHITE)
        board.apply(8, 4, Color.WHITE)
        options = legal_moves(12, [4, 4], Color.WHITE, board)
        assert {o.target: o.dice_used for o in options} == {8: (4,), 4: (4, 4)}

    def test_bar_entry_single_die_only(self, make_board):
        board = make_board(white={BAR: 1, 12: 2}, black={20: 15})
        options = legal_moves(BAR, [2, 3], Color.WHITE, board)
        assert targets(options) == [2, 3]
        assert all(len(o.dice_used) == 1 for o in options)

    def test_bar_first(self, make_board):
        board = make_board(white={BAR: 1, 12: 2}, black={20: 15})
        assert legal_moves(12, [2, 3], Color.WHITE, board) == []

    def test_bar_source_without_bar_checkers(self, sample_board):
        assert legal_moves(BAR, [2, 3], Color.WHITE, sample_board) == []


class TestBearOffGeneration:
    """Bear-off options."""

    def test_bear_off_from_six(self, make_board):
        board = make_board(white={6: 2, 1: 3})
        options = legal_moves(6, [6, 1], Color.WHITE, board)
        assert OFF in targets(options)

    def test_no_bear_off_with_checker_outside_home(self, make_board):
        board = make_board(white={6: 2, 7: 1})
        options = legal_moves(6, [6, 1], Color.WHITE, board)
        assert OFF not in targets(options)

    def test_overshoot_prefers_larger_die(self, make_board):
        board = make_board(white={3: 1, 2: 1})
        options = legal_moves(3, [5, 6], Color.WHITE, board)
        assert targets(options) == [OFF]
        assert options[0].dice_used == (6,)

    def test_overshoot_blocked_by_farther_checker(self, make_board):
        board = make_board(white={4: 1, 3: 1})
        assert OFF not in targets(legal_moves(3, [5, 5], Color.WHITE, board))

    def test_overshoot_allowed_without_farther_checker(self, make_board):
        board = make_board(white={3: 1})
        assert targets(legal_moves(3, [5, 5, 5, 5], Color.WHITE, board)) == [OFF]

    def test_bear_off_chain(self, make_board):
        # 5 -> 4 with the 1, then off from 4 with the 4
        board = make_board(white={5: 1})
        options = legal_moves(5, [1, 4], Color.WHITE, board)
        by_target = {o.target: o for o in options}
        assert by_target[4].dice_used == (1,)
        assert by_target[1].dice_used == (4,)
        assert by_target[OFF].dice_used == (1, 4) or by_target[OFF].dice_used == (4, 1)


class TestDedupe:
    """Tests for option de-duplication."""

    def test_fewer_dice_wins(self):
        long = MoveOption(source=12, target=8, dice_used=(2, 2), landings=(10, 8))
        short = MoveOption(source=12, target=8, dice_used=(4,), landings=(8,))
        assert dedupe_options([long, short]) == [short]

    def test_first_found_kept_on_tie(self):
        a = MoveOption(source=12, target=7, dice_used=(2, 3), landings=(10, 7))
        b = MoveOption(source=12, target=7, dice_used=(3, 2), landings=(9, 7))
        assert dedupe_options([a, b]) == [a]

    def test_higher_pips_wins_for_same_length(self):
        low = MoveOption(source=3, target=OFF, dice_used=(5,), landings=(OFF,))
        high = MoveOption(source=3, target=OFF, dice_used=(6,), landings=(OFF,))
        assert dedupe_options([low, high]) == [high]


class TestAnyLegalMove:
    """Tests for any_legal_move."""

    def test_start_position(self, sample_board):
        assert any_legal_move(sample_board, Color.WHITE, [3, 1])

    def test_no_dice(self, sample_board):
        assert not any_legal_move(sample_board, Color.WHITE, [])

    def test_bar_blocked(self, make_board):
        board = make_board(white={BAR: 2, 6: 13}, black={3: 2, 5: 2, 24: 11})
        assert not any_legal_move(board, Color.WHITE, dice_values((3, 5)))
        assert any_legal_move(board, Color.WHITE, dice_values((3, 4)))

    def test_matches_legal_moves_on_start(self, sample_board):
        for roll in ALL_DICE_ROLLS:
            dice = dice_values(roll)
            for color in Color:
                sources = [BAR] + sample_board.occupied_points(color)
                expected = any(legal_moves(s, dice, color, sample_board) for s in sources)
                assert any_legal_move(sample_board, color, dice) == expected

    @pytest.mark.parametrize("seed", range(10))
    def test_matches_legal_moves_on_random_positions(self, seed):
        rng = np.random.default_rng(seed)
        board = random_board(rng)
        for roll in ALL_DICE_ROLLS:
            dice = dice_values(roll)
            for color in Color:
                sources = [BAR] + board.occupied_points(color)
                expected = any(legal_moves(s, dice, color, board) for s in sources)
                assert any_legal_move(board, color, dice) == expected

    @pytest.mark.parametrize("seed", range(5))
    def test_every_option_applies_cleanly(self, seed):
        rng = np.random.default_rng(100 + seed)
        board = random_board(rng)
        for roll in ALL_DICE_ROLLS:
            dice = dice_values(roll)
            for color in Color:
                for source in [BAR] + board.occupied_points(color):
                    for option in legal_moves(source, dice, color, board):
                        staged = board.copy()
                        position = option.source
                        for landing in option.landings:
                            staged.apply(position, landing, color)
                            position = landing
                        check_invariants(staged)


class TestMovableSources:
    def test_start_position(self, sample_board):
        sources = movable_sources(sample_board, Color.WHITE, [2, 3])
        assert 12 in sources
        assert all(sample_board.get_checkers(Color.WHITE, p) > 0 for p in sources)

    def test_bar_only(self, make_board):
        board = make_board(white={BAR: 1, 12: 2}, black={20: 15})
        assert movable_sources(board, Color.WHITE, [2, 3]) == [BAR]

    def test_bar_blocked(self, make_board):
        board = make_board(white={BAR: 2, 6: 13}, black={3: 2, 5: 2, 24: 11})
        assert movable_sources(board, Color.WHITE, [3, 5]) == []
