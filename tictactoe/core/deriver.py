"""Pure derivations over a GameState snapshot.

Nothing here reads storage or keeps state; callers pass the snapshot (or its
moves) and the fixed player pair explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence

from tictactoe.api.models import CurrentGame, GameHistory, GameState, GameStats, GameStatus, Move, Player, PlayerStats
from tictactoe.players import PlayerPair

BOARD_SQUARES = 9

# Squares are numbered row-major from the top-left corner:
#   1 2 3
#   4 5 6
#   7 8 9
WINNING_PATTERNS: tuple[frozenset[int], ...] = (
    frozenset({1, 2, 3}),
    frozenset({1, 5, 9}),
    frozenset({1, 4, 7}),
    frozenset({2, 5, 8}),
    frozenset({3, 5, 7}),
    frozenset({3, 6, 9}),
    frozenset({4, 5, 6}),
    frozenset({7, 8, 9}),
)


def current_player(moves: Sequence[Move], players: PlayerPair) -> Player:
    """Player 1 moves on even move counts, player 2 on odd ones."""

    return players[len(moves) % 2]


def next_player(moves: Sequence[Move], players: PlayerPair) -> Player:
    return players[(len(moves) + 1) % 2]


def squares_for(moves: Sequence[Move], player: Player) -> frozenset[int]:
    return frozenset(m.square_id for m in moves if m.player.id == player.id)


def has_winning_pattern(squares: frozenset[int]) -> bool:
    return any(pattern <= squares for pattern in WINNING_PATTERNS)


def winner(moves: Sequence[Move], players: PlayerPair) -> Player | None:
    """Return the player holding a full winning triple, if any.

    Both players are checked. If both hold a triple (impossible under strict
    alternation) the later-checked player, player 2, is returned.
    """

    found: Player | None = None
    for player in players:
        if has_winning_pattern(squares_for(moves, player)):
            found = player
    return found


def is_complete(moves: Sequence[Move], players: PlayerPair) -> bool:
    return winner(moves, players) is not None or len(moves) == BOARD_SQUARES


def derive_status(moves: Sequence[Move], players: PlayerPair) -> GameStatus:
    won_by = winner(moves, players)
    return GameStatus(is_complete=won_by is not None or len(moves) == BOARD_SQUARES, winner=won_by)


def derive_game(state: GameState, players: PlayerPair) -> CurrentGame:
    moves = state.current_game_moves
    return CurrentGame(
        moves=moves,
        current_player=current_player(moves, players),
        next_player=next_player(moves, players),
        status=derive_status(moves, players),
    )


def derive_stats(history: GameHistory, players: PlayerPair) -> GameStats:
    """Scoreboard for the current round. Archived rounds in `all_games` are not counted."""

    games = history.current_round_games
    with_stats = tuple(
        PlayerStats(
            **player.model_dump(),
            wins=sum(1 for g in games if g.status.winner is not None and g.status.winner.id == player.id),
        )
        for player in players
    )
    ties = sum(1 for g in games if g.status.winner is None)
    return GameStats(players_with_stats=with_stats, ties=ties)
