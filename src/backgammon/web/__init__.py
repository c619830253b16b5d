"""Flask JSON front end for the match engine."""

from backgammon.web.server import ServerConfig, create_app

__all__ = ["ServerConfig", "create_app"]
