from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from uuid import uuid4

import redis
from pydantic import ValidationError

from tictactoe.api.models import CompletedGame, CurrentGame, GameHistory, GameState, GameStats, Move, Player
from tictactoe.core.deriver import BOARD_SQUARES, derive_game, derive_stats
from tictactoe.errors import InvalidMoveError, StorageWriteError
from tictactoe.players import DEFAULT_PLAYERS, make_player_pair
from tictactoe.settings import get_change_stream_maxlen, get_storage_key
from tictactoe.streams import STREAM_START_ID, ChangeFeed, latest_change_id, publish_change, read_changes

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]
StateTransition = Callable[[GameState], GameState]


class StateStore:
    """Sole writer of the persisted GameState stored under one Redis key.

    Every command is load -> validate -> build a new snapshot -> SET -> notify.
    Derived views are recomputed from the stored snapshot on each call; nothing
    is cached here. There is no compare-and-swap: when two processes write the
    same key, the last write wins.
    """

    def __init__(
        self,
        *,
        r: redis.Redis,
        storage_key: str | None = None,
        players: Sequence[Player] = DEFAULT_PLAYERS,
        change_stream_maxlen: int | None = None,
    ) -> None:
        self.r = r
        self.storage_key = storage_key or get_storage_key()
        self.players = make_player_pair(players)
        self.feed = ChangeFeed(storage_key=self.storage_key)
        self.origin = uuid4().hex

        self._maxlen = change_stream_maxlen or get_change_stream_maxlen()
        self._callbacks: list[ChangeCallback] = []
        # Only changes committed after this store was created count as external.
        try:
            self._last_change_id = latest_change_id(r=r, feed=self.feed)
        except redis.RedisError:
            logger.warning("Could not read change feed %s", self.feed.key, exc_info=True)
            self._last_change_id = STREAM_START_ID

    # --- reads ---------------------------------------------------------------

    def state(self) -> GameState:
        return self._get_state()

    def current_game(self) -> CurrentGame:
        return derive_game(self._get_state(), self.players)

    def current_stats(self) -> GameStats:
        return derive_stats(self._get_state().history, self.players)

    # --- commands ------------------------------------------------------------

    def record_move(self, square_id: int) -> None:
        if not 1 <= square_id <= BOARD_SQUARES:
            raise InvalidMoveError(f"square_id must be between 1 and {BOARD_SQUARES} (got {square_id})")

        def _transition(prev: GameState) -> GameState:
            # Checked against the same snapshot the new state is built from.
            game = derive_game(prev, self.players)
            if game.status.is_complete:
                raise InvalidMoveError("Game is complete")
            if any(m.square_id == square_id for m in game.moves):
                raise InvalidMoveError(f"Square {square_id} is already taken")

            move = Move(player=game.current_player, square_id=square_id)
            logger.debug("player %s moves to square %s", move.player.id, square_id)
            return GameState(current_game_moves=(*prev.current_game_moves, move), history=prev.history)

        self._save_state(_transition)

    def reset(self) -> None:
        """Archive the current game if it is complete, then clear the board.

        An incomplete game is discarded without being archived.
        """

        self._save_state(self._reset_transition)

    def new_round(self) -> None:
        """Reset, then move the whole current round onto the end of all_games.

        Committed as a single write with a single notification.
        """

        def _transition(prev: GameState) -> GameState:
            after_reset = self._reset_transition(prev)
            history = after_reset.history
            return GameState(
                current_game_moves=after_reset.current_game_moves,
                history=GameHistory(
                    current_round_games=(),
                    all_games=(*history.all_games, *history.current_round_games),
                ),
            )

        self._save_state(_transition)

    def _reset_transition(self, prev: GameState) -> GameState:
        game = derive_game(prev, self.players)
        history = prev.history
        if game.status.is_complete:
            archived = CompletedGame(moves=game.moves, status=game.status)
            history = GameHistory(
                current_round_games=(*history.current_round_games, archived),
                all_games=history.all_games,
            )
        return GameState(current_game_moves=(), history=history)

    # --- notifications -------------------------------------------------------

    def on_change(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register `callback` to run after every committed change.

        Returns a function that unregisters it; calling that twice is harmless.
        """

        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def refresh(self) -> None:
        """Notify subscribers without writing, e.g. for the first render."""

        self._notify()

    def poll_external_changes(self) -> int:
        """Notify once per change committed by another store since the last poll.

        Returns how many external changes were observed. Our own commits are skipped.
        """

        try:
            entries = read_changes(r=self.r, feed=self.feed, after_id=self._last_change_id)
        except redis.RedisError:
            logger.warning("Could not read change feed %s", self.feed.key, exc_info=True)
            return 0

        observed = 0
        for entry in entries:
            self._last_change_id = entry.entry_id
            if entry.origin == self.origin:
                continue
            logger.info("State changed from another client (origin=%s); notifying subscribers", entry.origin)
            observed += 1
            self._notify()
        return observed

    def _notify(self) -> None:
        # Runs after the commit, so subscriber errors are logged rather than raised to the caller.
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Change subscriber %r failed", callback)

    # --- persistence ---------------------------------------------------------

    def _save_state(self, state_or_fn: GameState | StateTransition) -> GameState:
        prev = self._load_state_for_write()

        if isinstance(state_or_fn, GameState):
            new_state = state_or_fn
        elif callable(state_or_fn):
            new_state = state_or_fn(prev)
        else:
            raise TypeError(f"_save_state() takes a GameState or a transition function, not {type(state_or_fn).__name__}")

        try:
            self.r.set(self.storage_key, new_state.model_dump_json(by_alias=True))
        except redis.RedisError as e:
            raise StorageWriteError(f"Could not persist game state to {self.storage_key!r}: {e}") from e

        try:
            publish_change(r=self.r, feed=self.feed, origin=self.origin, maxlen=self._maxlen)
        except redis.RedisError:
            # The snapshot is committed; other processes only miss the signal.
            logger.warning("Could not publish change for %s", self.storage_key, exc_info=True)

        self._notify()
        return new_state

    def _load_state_for_write(self) -> GameState:
        """Read the snapshot a command builds on. Unlike `_get_state`, an unreachable store is an error.

        Falling back to defaults here would overwrite the saved history with an empty one.
        """

        try:
            raw = self.r.get(self.storage_key)
        except redis.RedisError as e:
            raise StorageWriteError(f"Could not load game state from {self.storage_key!r} before writing: {e}") from e
        return self._decode(raw)

    def _get_state(self) -> GameState:
        try:
            raw = self.r.get(self.storage_key)
        except redis.RedisError:
            logger.warning("Storage unavailable for %s; using an empty game state", self.storage_key, exc_info=True)
            return GameState()
        return self._decode(raw)

    def _decode(self, raw: str | None) -> GameState:
        if not raw:
            return GameState()

        try:
            return GameState.model_validate_json(raw)
        except ValidationError:
            logger.warning("Corrupt game state under %s; using an empty game state", self.storage_key, exc_info=True)
            return GameState()
