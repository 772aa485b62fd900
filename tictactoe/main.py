import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager, suppress

import redis
from fastapi import FastAPI

from tictactoe.api.routes import router
from tictactoe.game_store import StateStore
from tictactoe.infra.redis_client import create_redis
from tictactoe.settings import get_change_poll_interval, get_storage_key
from tictactoe.websocket_hub import StateChangeHub

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(*, redis_factory: Callable[[], redis.Redis] = create_redis) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        r = redis_factory()
        store = StateStore(r=r, storage_key=get_storage_key())
        hub = StateChangeHub(store=store, poll_interval=get_change_poll_interval())
        app.state.store = store
        app.state.hub = hub

        watcher = asyncio.create_task(hub.run())
        logger.info("Watching %s for changes from other processes", store.feed.key)
        try:
            yield
        finally:
            watcher.cancel()
            with suppress(asyncio.CancelledError):
                await watcher
            hub.close()
            r.close()

    app = FastAPI(title="tictactoe", version="0.1.0", lifespan=lifespan)
    app.include_router(router)

    @app.get("/info")
    async def info() -> dict[str, str]:
        return {"name": "tictactoe", "version": "0.1.0"}

    return app


app = create_app()
