from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status

from tictactoe.api.deps import get_hub, get_store
from tictactoe.api.models import CurrentGame, GameState, GameStats, MoveRequest
from tictactoe.errors import StorageWriteError
from tictactoe.game_store import StateStore
from tictactoe.websocket_hub import StateChangeHub

router = APIRouter()


async def _run_command(store: StateStore, hub: StateChangeHub, command: Callable[[], None]) -> CurrentGame:
    """Run a store command and translate its errors. The hub pushes the change to websockets."""

    try:
        command()
    except StorageWriteError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    finally:
        # The background watcher would deliver it too, just later.
        await hub.flush()
    return store.current_game()


@router.websocket("/ws/game")
async def game_updates_ws(websocket: WebSocket, hub: StateChangeHub = Depends(get_hub)) -> None:
    await hub.connect(websocket)
    try:
        # Inbound frames are ignored; the socket only carries state_changed pushes.
        async for _ in websocket.iter_text():
            pass
    finally:
        await hub.disconnect(websocket)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/game", response_model=CurrentGame)
async def current_game_route(store: StateStore = Depends(get_store)) -> CurrentGame:
    return store.current_game()


@router.get("/stats", response_model=GameStats)
async def current_stats_route(store: StateStore = Depends(get_store)) -> GameStats:
    return store.current_stats()


@router.get("/state", response_model=GameState)
async def state_route(store: StateStore = Depends(get_store)) -> GameState:
    return store.state()


@router.post("/game/moves", response_model=CurrentGame)
async def record_move_route(
    payload: MoveRequest,
    store: StateStore = Depends(get_store),
    hub: StateChangeHub = Depends(get_hub),
) -> CurrentGame:
    return await _run_command(store, hub, lambda: store.record_move(payload.square_id))


@router.post("/game/reset", response_model=CurrentGame)
async def reset_route(store: StateStore = Depends(get_store), hub: StateChangeHub = Depends(get_hub)) -> CurrentGame:
    return await _run_command(store, hub, store.reset)


@router.post("/round/new", response_model=CurrentGame)
async def new_round_route(store: StateStore = Depends(get_store), hub: StateChangeHub = Depends(get_hub)) -> CurrentGame:
    return await _run_command(store, hub, store.new_round)
