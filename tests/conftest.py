from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from tictactoe.api.models import Move
from tictactoe.game_store import StateStore
from tictactoe.players import DEFAULT_PLAYERS

P1, P2 = DEFAULT_PLAYERS


def make_moves(*square_ids: int) -> tuple[Move, ...]:
    """Alternating moves starting with player 1."""

    return tuple(Move(player=DEFAULT_PLAYERS[i % 2], square_id=sq) for i, sq in enumerate(square_ids))


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def store(r: fakeredis.FakeRedis) -> StateStore:
    return StateStore(r=r, storage_key="test-game-state")


@pytest.fixture()
def client_and_redis(monkeypatch: pytest.MonkeyPatch) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    from tictactoe.main import create_app

    monkeypatch.setenv("TICTACTOE_STORAGE_KEY", "api-game-state")
    monkeypatch.setenv("TICTACTOE_CHANGE_POLL_MS", "10")
    r = fakeredis.FakeRedis(decode_responses=True)

    with TestClient(create_app(redis_factory=lambda: r)) as c:
        yield c, r
