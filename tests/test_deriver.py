from __future__ import annotations

import pytest

from conftest import P1, P2, make_moves
from tictactoe.api.models import CompletedGame, GameHistory, GameState, GameStatus, Move, Player
from tictactoe.core.deriver import (
    WINNING_PATTERNS,
    current_player,
    derive_game,
    derive_stats,
    is_complete,
    next_player,
    winner,
)
from tictactoe.players import DEFAULT_PLAYERS


@pytest.mark.parametrize("n", range(10))
def test_current_player_alternates_starting_with_player_one(n: int) -> None:
    moves = make_moves(*[1, 2, 3, 5, 4, 6, 8, 7, 9][:n])

    assert current_player(moves, DEFAULT_PLAYERS) == (P1 if n % 2 == 0 else P2)
    assert next_player(moves, DEFAULT_PLAYERS) == (P2 if n % 2 == 0 else P1)


def test_there_are_eight_winning_triples() -> None:
    assert set(WINNING_PATTERNS) == {
        frozenset({1, 2, 3}),
        frozenset({4, 5, 6}),
        frozenset({7, 8, 9}),
        frozenset({1, 4, 7}),
        frozenset({2, 5, 8}),
        frozenset({3, 6, 9}),
        frozenset({1, 5, 9}),
        frozenset({3, 5, 7}),
    }


@pytest.mark.parametrize("pattern", sorted(sorted(p) for p in WINNING_PATTERNS))
def test_player_one_wins_with_each_triple(pattern: list[int]) -> None:
    # Player 2 fills squares that never complete a line with the others they hold.
    spare = [sq for sq in range(1, 10) if sq not in pattern]
    moves = make_moves(pattern[0], spare[0], pattern[1], spare[1], pattern[2])

    assert winner(moves, DEFAULT_PLAYERS) == P1
    assert is_complete(moves, DEFAULT_PLAYERS) is True


@pytest.mark.parametrize("pattern", sorted(sorted(p) for p in WINNING_PATTERNS))
def test_player_two_wins_with_each_triple(pattern: list[int]) -> None:
    moves = tuple(Move(player=P2, square_id=sq) for sq in pattern)

    assert winner(moves, DEFAULT_PLAYERS) == P2


def test_row_one_two_three_wins_for_player_one() -> None:
    moves = make_moves(1, 5, 2, 9, 3)

    assert winner(moves, DEFAULT_PLAYERS) == P1
    assert is_complete(moves, DEFAULT_PLAYERS) is True


def test_full_board_without_a_line_is_a_tie() -> None:
    # X O X / X O O / O X X
    moves = make_moves(1, 2, 3, 5, 4, 6, 8, 7, 9)

    assert winner(moves, DEFAULT_PLAYERS) is None
    assert is_complete(moves, DEFAULT_PLAYERS) is True


def test_eight_moves_without_a_line_is_not_complete() -> None:
    moves = make_moves(1, 2, 3, 5, 4, 6, 8, 7)

    assert winner(moves, DEFAULT_PLAYERS) is None
    assert is_complete(moves, DEFAULT_PLAYERS) is False


def test_empty_board_is_not_complete() -> None:
    assert winner((), DEFAULT_PLAYERS) is None
    assert is_complete((), DEFAULT_PLAYERS) is False


def test_both_players_holding_a_line_resolves_to_player_two() -> None:
    # Not reachable through the store; forced here to pin the tie-break.
    moves = (
        Move(player=P1, square_id=1),
        Move(player=P1, square_id=2),
        Move(player=P1, square_id=3),
        Move(player=P2, square_id=7),
        Move(player=P2, square_id=8),
        Move(player=P2, square_id=9),
    )

    assert winner(moves, DEFAULT_PLAYERS) == P2


def test_derive_game_reports_players_and_status() -> None:
    state = GameState(current_game_moves=make_moves(1, 5, 2, 9, 3))

    game = derive_game(state, DEFAULT_PLAYERS)

    assert game.moves == state.current_game_moves
    assert game.current_player == P2
    assert game.next_player == P1
    assert game.status == GameStatus(is_complete=True, winner=P1)


def _completed(winner_player: Player | None) -> CompletedGame:
    if winner_player is None:
        return CompletedGame(moves=make_moves(1, 2, 3, 5, 4, 6, 8, 7, 9), status=GameStatus(is_complete=True, winner=None))
    return CompletedGame(moves=(), status=GameStatus(is_complete=True, winner=winner_player))


def test_stats_count_wins_and_ties_for_current_round() -> None:
    history = GameHistory(
        current_round_games=(_completed(P1), _completed(P2), _completed(None), _completed(P1)),
        all_games=(_completed(P2), _completed(P2)),
    )

    stats = derive_stats(history, DEFAULT_PLAYERS)

    assert stats.wins_by_player == {1: 2, 2: 1}
    assert stats.model_dump(by_alias=True)["winsByPlayer"] == {1: 2, 2: 1}
    assert stats.ties == 1
    assert [p.name for p in stats.players_with_stats] == ["Player 1", "Player 2"]
    assert stats.players_with_stats[0].icon_class == "fa-x"


def test_stats_for_empty_round() -> None:
    stats = derive_stats(GameHistory(), DEFAULT_PLAYERS)

    assert stats.wins_by_player == {1: 0, 2: 0}
    assert stats.ties == 0
