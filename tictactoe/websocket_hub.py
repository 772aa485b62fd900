from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from tictactoe.game_store import StateStore

logger = logging.getLogger(__name__)


class StateChangeHub:
    """Pushes a `state_changed` message to every connected client of one StateStore.

    The hub subscribes to the store, so local commands and changes read from the
    feed (writes by other processes) both count. Each notification becomes one
    message per client; clients re-pull `/game` and `/stats` themselves.
    """

    def __init__(self, *, store: StateStore, poll_interval: float) -> None:
        self.store = store
        self.poll_interval = poll_interval

        self._sockets: set[WebSocket] = set()
        self._pending = 0
        self._lock = asyncio.Lock()
        self._unsubscribe = store.on_change(self._on_change)

    @property
    def payload(self) -> dict[str, object]:
        return {"type": "state_changed", "key": self.store.storage_key}

    @property
    def connection_count(self) -> int:
        return len(self._sockets)

    def _on_change(self) -> None:
        # Store callbacks are synchronous; delivery happens on the next flush.
        self._pending += 1

    async def connect(self, websocket: WebSocket) -> None:
        # Registered under the lock so a concurrent flush cannot skip a freshly accepted client.
        async with self._lock:
            await websocket.accept()
            self._sockets.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._sockets.discard(websocket)

    async def flush(self) -> int:
        """Deliver every pending notification. Returns how many were delivered."""

        async with self._lock:
            count, self._pending = self._pending, 0
            if not count:
                return 0

            for ws in list(self._sockets):
                try:
                    for _ in range(count):
                        await ws.send_json(self.payload)
                except Exception:
                    logger.info("Dropping closed websocket for %s", self.store.storage_key)
                    self._sockets.discard(ws)
            return count

    async def poll_once(self) -> int:
        """Read the change feed, then deliver. Returns the number of external changes seen."""

        observed = self.store.poll_external_changes()
        await self.flush()
        return observed

    async def run(self) -> None:
        """Watch the change feed until cancelled."""

        while True:
            await self.poll_once()
            await asyncio.sleep(self.poll_interval)

    def close(self) -> None:
        self._unsubscribe()
