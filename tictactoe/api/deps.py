from __future__ import annotations

from fastapi.requests import HTTPConnection

from tictactoe.game_store import StateStore
from tictactoe.websocket_hub import StateChangeHub


# One store and one hub per process, created by the app lifespan (see tictactoe.main).
def get_store(conn: HTTPConnection) -> StateStore:
    return conn.app.state.store


def get_hub(conn: HTTPConnection) -> StateChangeHub:
    return conn.app.state.hub
