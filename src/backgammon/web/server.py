"""Web server exposing one match engine as a JSON API.

Usage:
    backgammon serve --port 8002 --format 7

Every endpoint answers with ``success``, ``message`` and the engine snapshot
(``state``). Rejected actions come back with ``success: False`` and the
engine's explanation; they are not HTTP errors.

The app holds a single engine per process and handles one request at a time
against it. Run it with a single worker thread.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

from backgammon.collaborators import MatchLog, RandomDice
from backgammon.core.engine import MatchEngine
from backgammon.core.types import ActionResult, BoardInvariantError, Color


@dataclass
class ServerConfig:
    """Settings for the web front end.

    Attributes:
        host: Host to bind to
        port: Port to bind to
        match_format: Best-of-N format for new matches
        debug: Run Flask in debug mode
        log_dir: Directory for the JSONL match log (None disables it)
        seed: Dice seed (None for random dice)
    """
    host: str = "localhost"
    port: int = 8002
    match_format: int = 7
    debug: bool = False
    log_dir: Optional[Path] = None
    seed: Optional[int] = None

    def __post_init__(self):
        assert 0 < self.port < 65536, f"Invalid port: {self.port}"
        assert self.match_format >= 1 and self.match_format % 2 == 1, (
            f"Match format must be a positive odd number, got {self.match_format}"
        )


# ==============================================================================
# RESPONSES
# ==============================================================================

def _engine() -> MatchEngine:
    return current_app.config["ENGINE"]


def _respond(result: ActionResult) -> Any:
    payload: Dict[str, Any] = {
        "success": result.accepted,
        "message": result.message,
        "events": [
            {"kind": event.kind.value, "color": event.color.value, "message": event.message}
            for event in result.events
        ],
        "state": _engine().snapshot().to_dict(),
    }
    if result.dice is not None:
        payload["dice"] = list(result.dice)
    return jsonify(payload)


def _error(message: str, status: int) -> Any:
    return jsonify({
        "success": False,
        "error": message,
        "state": _engine().snapshot().to_dict(),
    }), status


def _body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


# ==============================================================================
# APP FACTORY
# ==============================================================================

def create_app(engine: Optional[MatchEngine] = None, match_format: int = 7) -> Flask:
    """Build the Flask app around an engine.

    Args:
        engine: Engine to serve; a new one with random dice if None
        match_format: Default format for ``/api/new_match``

    Returns:
        Flask application
    """
    app = Flask(__name__)
    app.config["ENGINE"] = engine or MatchEngine(dice_source=RandomDice())
    app.config["MATCH_FORMAT"] = match_format

    @app.errorhandler(ValueError)
    def bad_request(error):
        return _error(str(error), 400)

    @app.errorhandler(BoardInvariantError)
    def engine_fault(error):
        return _error(f"Engine halted: {error}", 500)

    @app.route('/api/state', methods=['GET'])
    def api_state():
        """Current snapshot plus the sources the player may pick."""
        eng = _engine()
        return jsonify({
            "success": True,
            "message": eng.message,
            "movable_sources": eng.movable_sources(),
            "state": eng.snapshot().to_dict(),
        })

    @app.route('/api/new_match', methods=['POST'])
    def api_new_match():
        """Start a match.

        Request JSON:
            format: Odd best-of-N format (optional)
        """
        match_format = _body().get("format", app.config["MATCH_FORMAT"])
        return _respond(_engine().start_match(match_format))

    @app.route('/api/roll', methods=['POST'])
    def api_roll():
        """Roll for the current player.

        Request JSON:
            dice: Two explicit faces (optional)
        """
        dice = _body().get("dice")
        if dice is None:
            return _respond(_engine().roll())
        if not isinstance(dice, list) or len(dice) != 2:
            raise ValueError(f"'dice' must be a list of two faces, got {dice!r}")
        return _respond(_engine().roll(dice[0], dice[1]))

    @app.route('/api/select', methods=['POST'])
    def api_select():
        """Click a point (0 = bar, 25 = bear-off area).

        Request JSON:
            point: Point number
        """
        point = _body().get("point")
        if isinstance(point, bool) or not isinstance(point, int):
            raise ValueError(f"'point' must be an integer, got {point!r}")
        return _respond(_engine().select(point))

    @app.route('/api/undo', methods=['POST'])
    def api_undo():
        return _respond(_engine().undo())

    @app.route('/api/end_turn', methods=['POST'])
    def api_end_turn():
        return _respond(_engine().end_turn())

    @app.route('/api/resign', methods=['POST'])
    def api_resign():
        """Resign the current game.

        Request JSON:
            color: Resigning color (optional, defaults to the player to act)
        """
        color = _body().get("color")
        return _respond(_engine().resign(Color(color) if color else None))

    return app


# ==============================================================================
# MAIN
# ==============================================================================

def serve(config: ServerConfig) -> None:
    """Run the development server until interrupted."""
    match_log = None
    engine = MatchEngine(dice_source=RandomDice(config.seed))
    if config.log_dir is not None:
        match_log = MatchLog(log_dir=Path(config.log_dir))
        engine.add_listener(match_log)

    app = create_app(engine, match_format=config.match_format)

    print(f"\n🎲 Backgammon server starting...")
    print(f"   Match format: best of {config.match_format}")
    if match_log is not None:
        print(f"   Match log: {match_log.path}")
    print(f"   URL: http://{config.host}:{config.port}")
    print(f"\n   Press Ctrl+C to stop\n")

    try:
        app.run(host=config.host, port=config.port, debug=config.debug, threaded=False)
    finally:
        if match_log is not None:
            match_log.close()
