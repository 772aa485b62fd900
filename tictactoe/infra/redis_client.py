from __future__ import annotations

import redis

from tictactoe.settings import get_redis_url


def create_redis(url: str | None = None) -> redis.Redis:
    # decode_responses=True => the stored game state and stream fields come back as str
    return redis.Redis.from_url(url or get_redis_url(), decode_responses=True)
