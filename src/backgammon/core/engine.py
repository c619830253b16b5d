"""Turn, game and match state machine.

The ``MatchEngine`` owns the board, the dice left to play, the selection and
the turn-scoped undo log. External code drives it with discrete actions
(``roll``, ``select``, ``undo``, ``end_turn``, ``resign``) and reads it through
``snapshot()``. Each action runs to completion before returning.

Per game:
    AWAITING_ROLL -> AWAITING_SELECTION <-> SOURCE_SELECTED -> TURN_ENDING -> AWAITING_ROLL

Per match:
    game in progress -> game won -> next game | MATCH_OVER

User mistakes never raise: they come back as a rejected ``ActionResult`` with
a message and leave the engine untouched. Broken invariants raise
``BoardInvariantError`` and halt the engine.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

import numpy as np

from backgammon.core.board import (
    Board,
    check_invariants,
    checkers_borne_off,
    checkers_on_bar,
    initial_board,
    pip_count,
)
from backgammon.core.dice import dice_to_string, dice_values, remove_dice, roll_dice, validate_dice
from backgammon.core.movegen import any_legal_move, legal_moves, movable_sources
from backgammon.core.rules import can_bear_off
from backgammon.core.types import (
    BAR,
    OFF,
    CHECKERS_PER_COLOR,
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
    point_label,
)


DiceSource = Callable[[], Dice]

_PLAYING = (Phase.AWAITING_ROLL, Phase.AWAITING_SELECTION, Phase.SOURCE_SELECTED, Phase.TURN_ENDING)
_SELECTING = (Phase.AWAITING_SELECTION, Phase.SOURCE_SELECTED)


class MatchListener(Protocol):
    """Receives game and match results (e.g. a persistence layer)."""

    def on_game_won(self, color: Color, match: MatchState) -> None:
        ...

    def on_match_won(self, color: Color, final_scores: Dict[str, int]) -> None:
        ...


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the engine state for renderers.

    Attributes:
        board: Copy of the board
        current_player: Color to act
        available_dice: Unused die faces
        match: Copy of the match score (None before the first match)
        phase: Engine phase
        selected: Selected source point (BAR while re-entering), if any
        legal_targets: Options for the selected source
        message: Last status message
    """
    board: Board
    current_player: Color
    available_dice: Tuple[int, ...]
    match: Optional[MatchState]
    phase: Phase
    selected: Optional[Point]
    legal_targets: Tuple[MoveOption, ...]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable view."""
        return {
            "board": {
                "white_checkers": self.board.white_checkers.tolist(),
                "black_checkers": self.board.black_checkers.tolist(),
                "pip_count": {
                    color.value: pip_count(self.board, color) for color in Color
                },
            },
            "current_player": self.current_player.value,
            "available_dice": list(self.available_dice),
            "match": None if self.match is None else {
                "format": self.match.match_format,
                "games_to_win": self.match.games_to_win,
                **self.match.scores(),
            },
            "phase": self.phase.value,
            "selected": self.selected,
            "legal_targets": [
                {"target": option.target, "dice_used": list(option.dice_used)}
                for option in self.legal_targets
            ],
            "message": self.message,
        }


def _default_dice_source() -> DiceSource:
    rng = np.random.default_rng()
    return lambda: roll_dice(rng)


class MatchEngine:
    """Rules engine for one best-of-N match between White and Black.

    Args:
        dice_source: Zero-argument callable returning two die faces; used when
            ``roll()`` is called without explicit values
        listeners: Objects notified of game and match wins
        auto_end_turn: End the turn as soon as no dice or no moves remain.
            When False the engine waits in TURN_ENDING for ``end_turn()`` and
            the last move can still be undone.
    """

    def __init__(
        self,
        dice_source: Optional[DiceSource] = None,
        listeners: Iterable[MatchListener] = (),
        auto_end_turn: bool = True,
    ):
        self.dice_source = dice_source or _default_dice_source()
        self.auto_end_turn = auto_end_turn
        self._listeners: List[MatchListener] = list(listeners)

        self.board = initial_board()
        self.match: Optional[MatchState] = None
        self.phase = Phase.IDLE
        self.current_player = Color.WHITE
        self.available_dice: List[int] = []
        self.selected: Optional[Point] = None
        self.message = "Start a match to begin!"

        self._options: List[MoveOption] = []
        self._history: List[MoveRecord] = []
        self._fault: Optional[str] = None

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    @property
    def history(self) -> Tuple[MoveRecord, ...]:
        """Moves made so far this turn, oldest first."""
        return tuple(self._history)

    @property
    def is_match_over(self) -> bool:
        return self.phase is Phase.MATCH_OVER

    def add_listener(self, listener: MatchListener) -> None:
        self._listeners.append(listener)

    def legal_targets(self) -> List[MoveOption]:
        """Options for the selected source (or the bar while re-entering)."""
        return list(self._options)

    def movable_sources(self) -> List[Point]:
        if self.phase not in _SELECTING:
            return []
        return movable_sources(self.board, self.current_player, self.available_dice)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            board=self.board.copy(),
            current_player=self.current_player,
            available_dice=tuple(self.available_dice),
            match=copy.copy(self.match),
            phase=self.phase,
            selected=self.selected,
            legal_targets=tuple(self._options),
            message=self.message,
        )

    # ==========================================================================
    # MATCH / GAME LIFECYCLE
    # ==========================================================================

    def start_match(self, match_format: int = 7) -> ActionResult:
        """Start a new best-of-``match_format`` match.

        Raises:
            ValueError: If the format is not a positive odd integer
        """
        self._guard()
        if (
            isinstance(match_format, bool)
            or not isinstance(match_format, (int, np.integer))
            or match_format < 1
            or match_format % 2 == 0
        ):
            raise ValueError(f"Match format must be a positive odd integer, got {match_format!r}")

        self.match = MatchState(match_format=int(match_format))
        self._reset_game(Color.WHITE)
        return self._accept(
            f"Match started! First to {self.match.games_to_win} games wins. White rolls first!"
        )

    def start_game(self, first_player: Color = Color.WHITE) -> ActionResult:
        """Restart the current game from the starting layout.

        The abandoned game is not scored.
        """
        self._guard()
        if self.phase not in _PLAYING:
            return self._reject("No match in progress. Start a match first.")
        self._reset_game(first_player)
        return self._accept(f"New game started. {first_player.title} to roll.")

    def setup_position(self, board: Board, current_player: Color = Color.WHITE) -> ActionResult:
        """Replace the current game's board with an arbitrary legal position.

        Used for analysis and for replaying positions. The turn starts over
        with ``current_player`` to roll.

        Raises:
            BoardInvariantError: If ``board`` is not a legal position
        """
        self._guard()
        if self.phase not in _PLAYING:
            return self._reject("No match in progress. Start a match first.")
        check_invariants(board)
        self._reset_game(current_player)
        self.board = board.copy()
        return self._accept(f"Position loaded. {current_player.title} to roll.")

    def _reset_game(self, first_player: Color) -> None:
        self.board = initial_board()
        self.current_player = first_player
        self.available_dice = []
        self._history = []
        self._clear_selection()
        self.phase = Phase.AWAITING_ROLL

    # ==========================================================================
    # ROLLING
    # ==========================================================================

    def roll(self, die1: Optional[int] = None, die2: Optional[int] = None) -> ActionResult:
        """Roll for the current player.

        Faces are drawn from the dice source unless both are given. A roll
        with no legal move skips the turn; the skip event carries the
        untouched dice.

        Raises:
            ValueError: If only one face is given or a face is outside 1..6
        """
        self._guard()
        if self.phase is not Phase.AWAITING_ROLL:
            return self._reject(self._not_now("roll"))
        if (die1 is None) != (die2 is None):
            raise ValueError("Give both dice or neither")

        dice = validate_dice(self.dice_source() if die1 is None else (die1, die2))
        color = self.current_player
        self.available_dice = dice_values(dice)
        self._history = []
        self._clear_selection()
        self.phase = Phase.AWAITING_SELECTION

        rolled = f"{color.title} rolled {dice_to_string(dice)}."
        if not any_legal_move(self.board, color, self.available_dice):
            if checkers_on_bar(self.board, color) > 0:
                reason = f"{color.title} has checkers on the bar and cannot enter. Turn skipped."
            else:
                reason = f"No possible moves for {color.title} with these dice. Turn ends."
            events = [GameEvent(
                kind=EventKind.TURN_SKIPPED,
                color=color,
                message=reason,
                dice=tuple(self.available_dice),
            )]
            self._finish_turn(events, f"{rolled} {reason}")
            return ActionResult(True, self.message, events, dice)

        self._select_bar_if_needed()
        message = f"{rolled} Now make your move."
        if self.selected == BAR:
            message = f"{rolled} {color.title} must re-enter checkers from the bar."
        return ActionResult(True, self._say(message), [], dice)

    # ==========================================================================
    # SELECTION
    # ==========================================================================

    def select(self, point: Point) -> ActionResult:
        """Handle a click on a point, the bar (0) or the bear-off area (25).

        Picks a source, toggles it off, or moves the selected checker when
        ``point`` is one of its legal targets.
        """
        self._guard()
        if self.phase not in _SELECTING or not self.available_dice:
            return self._reject(self._not_now("select"))
        if not (BAR <= point <= OFF):
            return self._reject(f"{point} is not a point on the board.")

        color = self.current_player
        option = self._option_for(point)

        if checkers_on_bar(self.board, color) > 0:
            if option is not None:
                return self._apply(option)
            if point == OFF:
                return self._reject("You must re-enter checkers from the bar first.")
            if point == BAR:
                return self._accept(self._targets_message(BAR))
            return self._reject(
                "You must re-enter checkers from the bar. Pick one of the highlighted points."
            )

        if self.selected is not None and point == self.selected:
            self._clear_selection()
            self.phase = Phase.AWAITING_SELECTION
            return self._accept("Checker deselected.")

        if option is not None:
            return self._apply(option)

        if point == OFF:
            if self.selected is None:
                return self._reject("You cannot select checkers from the bear-off area.")
            if not can_bear_off(self.board, color):
                return self._reject(
                    f"{color.title} cannot bear off until every checker is in the home board."
                )
            return self._reject(f"The checker on {point_label(self.selected)} cannot bear off with these dice.")

        if point == BAR or self.board.get_checkers(color, point) == 0:
            return self._reject(
                f"You don't have checkers on {point_label(point)}. Please select your own checker."
            )

        self.selected = point
        self._options = legal_moves(point, self.available_dice, color, self.board)
        self.phase = Phase.SOURCE_SELECTED
        return self._accept(self._targets_message(point))

    def _option_for(self, point: Point) -> Optional[MoveOption]:
        for option in self._options:
            if option.target == point:
                return option
        return None

    def _targets_message(self, source: Point) -> str:
        if not self._options:
            return f"Selected {point_label(source)}, but it has no legal moves with these dice."
        targets = ", ".join(point_label(o.target) for o in self._options)
        return f"Selected {point_label(source)}. Possible moves: {targets}."

    def _select_bar_if_needed(self) -> None:
        color = self.current_player
        if checkers_on_bar(self.board, color) > 0:
            self.selected = BAR
            self._options = legal_moves(BAR, self.available_dice, color, self.board)
        else:
            self._clear_selection()

    def _clear_selection(self) -> None:
        self.selected = None
        self._options = []

    # ==========================================================================
    # MOVES
    # ==========================================================================

    def _apply(self, option: MoveOption) -> ActionResult:
        """Commit a generator option: board, dice, undo log, turn/game end."""
        color = self.current_player
        offered = legal_moves(option.source, self.available_dice, color, self.board)
        if option not in offered:
            self._halt(f"Move {option} was never offered by the move generator")

        staged = self.board.copy()
        hits = []
        position = option.source
        for landing in option.landings:
            if staged.apply(position, landing, color):
                hits.append(landing)
            position = landing
        self._commit_board(staged)

        self.available_dice = remove_dice(self.available_dice, option.dice_used)
        record = MoveRecord(
            from_point=option.source,
            to_point=option.target,
            color=color,
            dice_used=option.dice_used,
            landings=option.landings,
            hit_points=tuple(hits),
        )
        self._history.append(record)
        self._clear_selection()
        self.phase = Phase.AWAITING_SELECTION

        message = record.describe() + "."
        if option.is_bear_off:
            message = f"{color.title} checker borne off!"
        elif hits:
            message += f" Blot hit! {color.opponent().title} checker sent to the bar."
        events = [GameEvent(kind=EventKind.MOVED, color=color, message=message,
                            dice=option.dice_used, record=record)]

        if checkers_borne_off(self.board, color) == CHECKERS_PER_COLOR:
            return self._win_game(color, events, f"{color.title} wins this game!")

        if not self.available_dice:
            self._finish_turn(events, message)
        elif not any_legal_move(self.board, color, self.available_dice):
            self._finish_turn(events, f"{message} No further moves with the remaining dice.")
        else:
            self._select_bar_if_needed()
            self._say(message)
        return ActionResult(True, self.message, events)

    # ==========================================================================
    # UNDO
    # ==========================================================================

    def undo(self) -> ActionResult:
        """Take back the most recent move of the current turn."""
        self._guard()
        if self.phase not in (*_SELECTING, Phase.TURN_ENDING) or not self._history:
            return self._reject("No moves to undo!")

        record = self._history.pop()
        staged = self.board.copy()
        steps = list(zip((record.from_point,) + record.landings[:-1], record.landings))
        for start, landing in reversed(steps):
            staged.revert(start, landing, record.color, landing in record.hit_points)
        self._commit_board(staged)

        self.available_dice = sorted(self.available_dice + list(record.dice_used), reverse=True)
        self.phase = Phase.AWAITING_SELECTION
        self._select_bar_if_needed()

        events = [GameEvent(kind=EventKind.UNDONE, color=record.color,
                            message="Last move undone.", dice=record.dice_used, record=record)]
        return ActionResult(True, self._say("Last move undone."), events)

    # ==========================================================================
    # TURN END
    # ==========================================================================

    def end_turn(self) -> ActionResult:
        """Commit a pending turn end (only used with ``auto_end_turn=False``)."""
        self._guard()
        if self.phase is not Phase.TURN_ENDING:
            return self._reject("The turn cannot end yet.")
        events: List[GameEvent] = []
        self.message = ""
        self._end_turn(events)
        return ActionResult(True, self.message, events)

    def _finish_turn(self, events: List[GameEvent], message: str) -> None:
        self._say(message)
        if self.auto_end_turn:
            self._end_turn(events)
        else:
            self._clear_selection()
            self.phase = Phase.TURN_ENDING

    def _end_turn(self, events: List[GameEvent]) -> None:
        finished = self.current_player
        self.current_player = finished.opponent()
        self.available_dice = []
        self._history = []
        self._clear_selection()
        self.phase = Phase.AWAITING_ROLL

        text = f"Turn ended. It's now {self.current_player.title}'s turn. Roll the dice!"
        events.append(GameEvent(kind=EventKind.TURN_ENDED, color=finished, message=text))
        self.message = f"{self.message} {text}" if self.message else text

    # ==========================================================================
    # GAME AND MATCH END
    # ==========================================================================

    def resign(self, color: Optional[Color] = None) -> ActionResult:
        """Concede the current game; the opponent is credited with the win."""
        self._guard()
        if self.phase not in _PLAYING:
            return self._reject(self._not_now("resign"))
        loser = color or self.current_player
        winner = loser.opponent()
        return self._win_game(winner, [], f"{loser.title} resigns. {winner.title} wins this game!")

    def _win_game(self, winner: Color, events: List[GameEvent], message: str) -> ActionResult:
        self.match.credit(winner)
        scores = self.match.scores()
        events.append(GameEvent(kind=EventKind.GAME_WON, color=winner, message=message, scores=scores))
        notify: List[Callable[[], None]] = []
        match_state = copy.copy(self.match)
        for listener in self._listeners:
            notify.append(lambda l=listener: l.on_game_won(winner, match_state))

        self._reset_game(winner)
        match_winner = self.match.winner()
        if match_winner is not None:
            self.phase = Phase.MATCH_OVER
            text = (
                f"Match over! {match_winner.title} wins the best of {self.match.match_format} "
                f"match ({self.match.score(match_winner)}-{self.match.score(match_winner.opponent())})."
            )
            events.append(GameEvent(kind=EventKind.MATCH_WON, color=match_winner,
                                     message=text, scores=scores))
            for listener in self._listeners:
                notify.append(lambda l=listener: l.on_match_won(match_winner, dict(scores)))
            self._say(f"{message} {text}")
        else:
            self._say(f"{message} New game started. {winner.title} to roll.")

        for callback in notify:
            callback()
        return ActionResult(True, self.message, events)

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def _commit_board(self, staged: Board) -> None:
        try:
            check_invariants(staged)
        except BoardInvariantError as error:
            self._halt(str(error))
        self.board = staged

    def _halt(self, reason: str) -> None:
        self._fault = reason
        raise BoardInvariantError(reason)

    def _guard(self) -> None:
        if self._fault is not None:
            raise BoardInvariantError(f"Engine halted after an invariant violation: {self._fault}")

    def _not_now(self, action: str) -> str:
        if self.phase is Phase.IDLE:
            return "Click 'Start Match' to begin!"
        if self.phase is Phase.MATCH_OVER:
            return "The match is over. Start a new match to play again."
        if self.phase is Phase.TURN_ENDING:
            return "The turn is over. End the turn or undo the last move."
        if action == "roll":
            return "You have already rolled. Make your move."
        return "Please roll the dice first!"

    def _say(self, message: str) -> str:
        self.message = message
        return message

    def _accept(self, message: str) -> ActionResult:
        return ActionResult(True, self._say(message))

    def _reject(self, message: str) -> ActionResult:
        return ActionResult(False, message)
