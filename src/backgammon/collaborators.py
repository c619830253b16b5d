"""Reference collaborators for the match engine.

The engine performs no I/O. These pieces sit around it:
- dice sources (NumPy generator, scripted rolls)
- ``MatchRecorder``: in-memory listener that turns match wins into records
- ``MatchLog``: JSONL result log with console echo
- ``aggregate_stats``: per-player win/loss statistics over match records
"""

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from backgammon.core.dice import roll_dice, validate_dice
from backgammon.core.types import Color, Dice, MatchState


# ==============================================================================
# DICE SOURCES
# ==============================================================================

class RandomDice:
    """Dice source backed by a NumPy generator.

    Args:
        seed: Seed or generator; None for fresh OS entropy
    """

    def __init__(self, seed: Optional[Any] = None):
        if isinstance(seed, np.random.Generator):
            self.rng = seed
        else:
            self.rng = np.random.default_rng(seed)

    def __call__(self) -> Dice:
        return roll_dice(self.rng)


class FixedDice:
    """Replays a scripted list of rolls, then raises ``IndexError``."""

    def __init__(self, rolls: Iterable[Dice]):
        self.rolls: List[Dice] = [validate_dice(tuple(r)) for r in rolls]
        self._next = 0

    @property
    def remaining(self) -> int:
        return len(self.rolls) - self._next

    def __call__(self) -> Dice:
        if self._next >= len(self.rolls):
            raise IndexError("No scripted rolls left")
        roll = self.rolls[self._next]
        self._next += 1
        return roll


# ==============================================================================
# MATCH RESULTS
# ==============================================================================

@dataclass
class MatchResult:
    """Final result of a match.

    Attributes:
        winner: Name of the winning player
        loser: Name of the losing player
        winner_color: Color the winner played
        match_format: Best-of-N format
        winner_games: Games won by the winner
        loser_games: Games won by the loser
        timestamp: Unix time the match ended
    """
    winner: str
    loser: str
    winner_color: str
    match_format: int
    winner_games: int
    loser_games: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class PlayerStats:
    """Aggregate statistics for one player."""
    player: str
    matches_won: int = 0
    matches_lost: int = 0
    games_won: int = 0
    games_lost: int = 0

    @property
    def total_matches(self) -> int:
        return self.matches_won + self.matches_lost

    @property
    def win_loss_ratio(self) -> float:
        """Share of matches won (0.0 with no matches)."""
        if self.total_matches == 0:
            return 0.0
        return round(self.matches_won / self.total_matches, 3)


def aggregate_stats(results: Iterable[MatchResult], player: str) -> PlayerStats:
    """Fold match results into one player's statistics."""
    stats = PlayerStats(player=player)
    for result in results:
        if result.winner == player:
            stats.matches_won += 1
            stats.games_won += result.winner_games
            stats.games_lost += result.loser_games
        elif result.loser == player:
            stats.matches_lost += 1
            stats.games_won += result.loser_games
            stats.games_lost += result.winner_games
    return stats


def leaderboard(results: Sequence[MatchResult]) -> List[PlayerStats]:
    """Statistics for every player seen, best win ratio first."""
    players = sorted({r.winner for r in results} | {r.loser for r in results})
    table = [aggregate_stats(results, player) for player in players]
    return sorted(table, key=lambda s: (s.win_loss_ratio, s.matches_won), reverse=True)


class MatchRecorder:
    """Engine listener that keeps match results in memory.

    Args:
        white_player: Name of the player on White
        black_player: Name of the player on Black
    """

    def __init__(self, white_player: str = "White", black_player: str = "Black"):
        self.players = {Color.WHITE: white_player, Color.BLACK: black_player}
        self.results: List[MatchResult] = []
        self.games: List[Dict[str, Any]] = []
        self._match_format = 0

    def on_game_won(self, color: Color, match: MatchState) -> None:
        self._match_format = match.match_format
        self.games.append({"winner": self.players[color], **match.scores()})

    def on_match_won(self, color: Color, final_scores: Dict[str, int]) -> None:
        loser = color.opponent()
        self.results.append(MatchResult(
            winner=self.players[color],
            loser=self.players[loser],
            winner_color=color.value,
            match_format=self._match_format,
            winner_games=final_scores[color.value],
            loser_games=final_scores[loser.value],
        ))

    def stats(self, player: str) -> PlayerStats:
        return aggregate_stats(self.results, player)


# ==============================================================================
# JSONL RESULT LOG
# ==============================================================================

@dataclass
class MatchLog:
    """Engine listener writing game and match results to a JSONL file.

    Every event becomes one JSON line in ``<log_dir>/<run_name>_results.jsonl``;
    every ``console_interval``-th event is echoed to the console.

    Args:
        log_dir: Directory for logs
        run_name: Name used for the log file
        white_player: Name of the player on White
        black_player: Name of the player on Black
        console_interval: Echo to console every N events (0 disables)
    """

    log_dir: Path
    run_name: str = "backgammon_matches"
    white_player: str = "White"
    black_player: str = "Black"
    console_interval: int = 1

    # Internal state
    _jsonl_file: Optional[Any] = field(default=None, init=False, repr=False)
    _event_count: int = field(default=0, init=False, repr=False)
    _start_time: float = field(default_factory=time.time, init=False, repr=False)
    _recorder: Optional[MatchRecorder] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        """Open the JSONL file."""
        self.log_dir = Path(self.log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._jsonl_file = open(self.path, 'a')
        self._recorder = MatchRecorder(self.white_player, self.black_player)

    @property
    def path(self) -> Path:
        return self.log_dir / f"{self.run_name}_results.jsonl"

    def on_game_won(self, color: Color, match: MatchState) -> None:
        self._recorder.on_game_won(color, match)
        self._write({
            "type": "game_won",
            "winner": self._recorder.players[color],
            "color": color.value,
            "match_format": match.match_format,
            **match.scores(),
        })

    def on_match_won(self, color: Color, final_scores: Dict[str, int]) -> None:
        self._recorder.on_match_won(color, final_scores)
        self._write({"type": "match_won", **asdict(self._recorder.results[-1])})

    def _write(self, entry: Dict[str, Any]) -> None:
        if self._jsonl_file is None:
            raise ValueError(f"Match log {self.path} is closed")
        entry = {"elapsed": time.time() - self._start_time, **entry}
        self._jsonl_file.write(json.dumps(entry) + '\n')
        self._jsonl_file.flush()

        self._event_count += 1
        if self.console_interval and self._event_count % self.console_interval == 0:
            self._log_console(entry)

    def _log_console(self, entry: Dict[str, Any]) -> None:
        """Log an entry to console in readable format."""
        details = " | ".join(
            f"{k}: {v}" for k, v in entry.items() if k not in ("type", "elapsed", "timestamp")
        )
        print(f"[{entry['elapsed']:8.1f}s] {entry['type']}: {details}")

    def close(self) -> None:
        """Close the JSONL file."""
        if self._jsonl_file is not None:
            self._jsonl_file.close()
            self._jsonl_file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def load_results(path: Path) -> List[MatchResult]:
    """Read the match results back from a JSONL log."""
    results = []
    with open(path) as f:
        for line in f:
            if not line.strip():
                continue
            entry = json.loads(line)
            if entry.get("type") != "match_won":
                continue
            fields = {k: entry[k] for k in MatchResult.__dataclass_fields__}
            results.append(MatchResult(**fields))
    return results
