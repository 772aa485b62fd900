from __future__ import annotations

import os

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_STORAGE_KEY = "game-state-key"
DEFAULT_CHANGE_STREAM_MAXLEN = 1000
DEFAULT_CHANGE_POLL_MS = 250


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def get_storage_key() -> str:
    return os.environ.get("TICTACTOE_STORAGE_KEY", DEFAULT_STORAGE_KEY)


def get_change_stream_maxlen() -> int:
    raw = os.environ.get("TICTACTOE_CHANGE_STREAM_MAXLEN")
    if not raw:
        return DEFAULT_CHANGE_STREAM_MAXLEN
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"TICTACTOE_CHANGE_STREAM_MAXLEN must be an integer (got {raw!r})") from e
    if value <= 0:
        raise ValueError("TICTACTOE_CHANGE_STREAM_MAXLEN must be positive")
    return value


def get_change_poll_interval() -> float:
    """Seconds between change-feed reads in the server's background watcher."""

    raw = os.environ.get("TICTACTOE_CHANGE_POLL_MS")
    if not raw:
        return DEFAULT_CHANGE_POLL_MS / 1000
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"TICTACTOE_CHANGE_POLL_MS must be an integer (got {raw!r})") from e
    if value <= 0:
        raise ValueError("TICTACTOE_CHANGE_POLL_MS must be positive")
    return value / 1000
