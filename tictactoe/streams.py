from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

import redis

# Stream ids compare as "<ms>-<seq>"; this one sorts before every real entry.
STREAM_START_ID = "0-0"


@dataclass(frozen=True, slots=True)
class ChangeFeed:
    """Redis Stream announcing every committed write to one storage key.

    Each entry carries the `origin` id of the writer, so a reader can skip its
    own commits and react only to writes from other processes.
    """

    storage_key: str

    @property
    def key(self) -> str:
        return f"{self.storage_key}:changes"


@dataclass(frozen=True, slots=True)
class ChangeEntry:
    entry_id: str
    origin: str
    ts: str


def publish_change(*, r: redis.Redis, feed: ChangeFeed, origin: str, maxlen: int) -> str:
    """Append a change entry, trimming the stream to roughly `maxlen` entries."""

    fields = {"type": "state_changed", "origin": origin, "ts": datetime.now(tz=UTC).isoformat()}
    stream_id = r.xadd(feed.key, fields, maxlen=maxlen, approximate=False)
    return cast(str, stream_id)


def latest_change_id(*, r: redis.Redis, feed: ChangeFeed) -> str:
    entries = r.xrevrange(feed.key, count=1)
    if not entries:
        return STREAM_START_ID
    entry_id, _ = entries[0]
    return cast(str, entry_id)


def read_changes(*, r: redis.Redis, feed: ChangeFeed, after_id: str, count: int = 100) -> list[ChangeEntry]:
    """Non-blocking read of entries newer than `after_id`, oldest first."""

    out: list[ChangeEntry] = []
    for _stream, entries in r.xread({feed.key: after_id}, count=count) or []:
        for entry_id, fields in entries:
            out.append(ChangeEntry(entry_id=entry_id, origin=fields.get("origin", ""), ts=fields.get("ts", "")))
    return out
