from __future__ import annotations

from collections.abc import Sequence

from tictactoe.api.models import Player

PlayerPair = tuple[Player, Player]


DEFAULT_PLAYERS: PlayerPair = (
    Player(id=1, name="Player 1", icon_class="fa-x", color_class="turquoise"),
    Player(id=2, name="Player 2", icon_class="fa-o", color_class="yellow"),
)


def make_player_pair(players: Sequence[Player]) -> PlayerPair:
    """Validate and order the fixed player set.

    Exactly two players with ids 1 and 2. Player 1 always moves first, so the
    pair is returned sorted by id regardless of the input order.
    """

    if len(players) != 2:
        raise ValueError(f"Exactly 2 players required (got {len(players)})")

    first, second = sorted(players, key=lambda p: p.id)
    if (first.id, second.id) != (1, 2):
        raise ValueError(f"Player ids must be 1 and 2 (got {first.id}, {second.id})")
    return first, second
